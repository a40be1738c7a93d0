"""Event bus protocol (port) for lifecycle hook events.

The coordinator publishes typed events (StreamConnected, ChannelSubscribed,
...) and observers subscribe by event class. Dispatch is keyed by type, not
by string name.

Implementations:
    - InMemoryEventBus: transmit/infrastructure/events/in_memory_event_bus.py
"""

from collections.abc import Awaitable, Callable
from typing import Protocol

from transmit.domain.events.base_event import DomainEvent

# Type alias for event handler functions
EventHandler = Callable[[DomainEvent], Awaitable[None]]
"""Type alias for async event handler functions.

Event handlers must:
    - Accept single DomainEvent parameter (or specific event subclass)
    - Return None (side-effects only)
    - Be async (async def)
"""


class EventBusProtocol(Protocol):
    """Protocol for event bus implementations."""

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> None:
        """Register handler for an exact event class.

        Args:
            event_type: Class of event to handle (e.g., StreamConnected).
            handler: Async function called with the event.
        """
        ...

    def unsubscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> bool:
        """Remove a previously registered handler.

        Returns:
            True if the handler was registered, False otherwise.
        """
        ...

    async def publish(self, event: DomainEvent) -> None:
        """Publish event to all handlers registered for type(event).

        Must never raise: handler failures are logged (fail-open).
        """
        ...
