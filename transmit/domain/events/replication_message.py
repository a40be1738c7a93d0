"""Envelope for broadcasts replicated between instances.

Every locally originated broadcast is published on the replication topic as
``{"channel": ..., "payload": ..., "from": <instance id>}``. Receivers use
``from`` to drop messages they published themselves.
"""

import json
from dataclasses import dataclass
from typing import Any

from transmit.core.enums import ErrorCode
from transmit.core.errors import ValidationError
from transmit.core.result import Failure, Result, Success


@dataclass(frozen=True, kw_only=True, slots=True)
class ReplicationMessage:
    """Broadcast relayed through the external transport.

    Attributes:
        channel: Concrete channel name.
        payload: Broadcast payload (JSON serializable).
        from_: Instance id of the publishing instance (``from`` on the wire).
    """

    channel: str
    payload: Any
    from_: str

    def to_dict(self) -> dict[str, Any]:
        """Convert to wire dictionary."""
        return {"channel": self.channel, "payload": self.payload, "from": self.from_}

    @classmethod
    def from_raw(
        cls, raw: str | bytes | dict[str, Any]
    ) -> Result["ReplicationMessage", ValidationError]:
        """Parse a message received from the transport.

        Args:
            raw: JSON text (str or bytes) or an already decoded dictionary.

        Returns:
            Success(ReplicationMessage) or Failure(ValidationError) when the
            message is not JSON, not an object, or lacks a string channel.
        """
        data: Any = raw
        if isinstance(raw, (str, bytes)):
            try:
                data = json.loads(raw)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                return Failure(
                    error=ValidationError(
                        code=ErrorCode.REPLICATION_MESSAGE_INVALID,
                        message="Replication message is not valid JSON",
                        details={"error": str(e)},
                    )
                )

        if not isinstance(data, dict):
            return Failure(
                error=ValidationError(
                    code=ErrorCode.REPLICATION_MESSAGE_INVALID,
                    message="Replication message must be a JSON object",
                )
            )

        channel = data.get("channel")
        if not isinstance(channel, str) or not channel:
            return Failure(
                error=ValidationError(
                    code=ErrorCode.REPLICATION_MESSAGE_INVALID,
                    message="Replication message has no channel",
                    field="channel",
                )
            )

        origin = data.get("from")
        return Success(
            value=cls(
                channel=channel,
                payload=data.get("payload"),
                from_="" if origin is None else str(origin),
            )
        )
