"""Domain-level error codes (machine-readable).

Error codes follow ENTITY_ACTION_REASON naming convention.
Used with Result types and rendered into problem details responses.
"""

from enum import Enum


class ErrorCode(Enum):
    """Domain-level error codes (machine-readable).

    Error codes follow ENTITY_ACTION_REASON naming convention.
    """

    # Validation errors
    STREAM_UID_MISSING = "stream_uid_missing"
    CHANNEL_MISSING = "channel_missing"
    REPLICATION_MESSAGE_INVALID = "replication_message_invalid"

    # Authorization errors
    CHANNEL_SUBSCRIPTION_DENIED = "channel_subscription_denied"
