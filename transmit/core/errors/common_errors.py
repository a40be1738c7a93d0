"""Common error classes used across layers.

Error Types:
- ValidationError: Input validation failures (malformed requests, malformed
  replication messages)
- AuthorizationError: Subscription denied by a channel authorization check

Usage:
    from transmit.core.errors import ValidationError
    from transmit.core.enums import ErrorCode
    from transmit.core.result import Failure

    return Failure(error=ValidationError(
        code=ErrorCode.CHANNEL_MISSING,
        message="Missing channel",
        field="channel",
    ))
"""

from dataclasses import dataclass

from transmit.core.errors.domain_error import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class ValidationError(DomainError):
    """Input validation failure.

    Attributes:
        code: ErrorCode enum.
        message: Human-readable message.
        field: Field name that failed validation.
        details: Additional context.
    """

    field: str | None = None


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthorizationError(DomainError):
    """Subscription refused (denied by callback or unknown stream).

    Attributes:
        code: ErrorCode enum.
        message: Human-readable message.
        channel: Channel the subscription targeted.
        details: Additional context.
    """

    channel: str
