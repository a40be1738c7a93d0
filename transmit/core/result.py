"""Success/Failure values for operations whose failure is expected.

Parsing a replication message from the transport is the main producer:
a malformed message is an ordinary outcome, so it comes back as a
``Failure`` carrying a ``DomainError`` instead of raising.

    match ReplicationMessage.from_raw(raw):
        case Success(value=message):
            await transmit.broadcast(message.channel, message.payload, internal=True)
        case Failure(error=error):
            logger.warning("replication_message_dropped", error_code=error.code.value)
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True, slots=True, kw_only=True)
class Success(Generic[T]):
    """Operation succeeded with ``value``."""

    value: T


@dataclass(frozen=True, slots=True, kw_only=True)
class Failure(Generic[E]):
    """Operation failed with ``error`` (a DomainError in this package)."""

    error: E


Result = Success[T] | Failure[E]
