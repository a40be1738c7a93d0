"""Base domain event class.

Domain events represent "things that happened" and are always named in past
tense (e.g., StreamConnected, ChannelSubscribed).

Architecture:
    - Frozen dataclass (immutable after creation)
    - Auto-generated event_id (UUID) for event tracking
    - Occurred_at timestamp (UTC) for event ordering
    - All events inherit from this base class

Usage:
    >>> @dataclass(frozen=True, kw_only=True, slots=True)
    >>> class StreamConnected(DomainEvent):
    ...     uid: str
    >>>
    >>> event = StreamConnected(uid="abc")
    >>> print(event.event_id)  # Auto-generated UUID
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import UUID, uuid4


@dataclass(frozen=True, kw_only=True, slots=True)
class DomainEvent:
    """Base class for all domain events.

    All domain events MUST:
        1. Inherit from this base class
        2. Use past tense naming
        3. Be frozen dataclasses (immutable after creation)
        4. Use kw_only=True (force keyword arguments for clarity)

    Attributes:
        event_id: Unique identifier for this event instance.
        occurred_at: Timestamp when the event occurred (UTC).
    """

    event_id: UUID = field(default_factory=uuid4)
    """Unique identifier for this event instance."""

    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    """Timestamp when the event occurred (UTC timezone)."""
