"""In-memory event bus for lifecycle hooks.

Implements EventBusProtocol with a dictionary-based handler registry keyed
by event class. Observers of StreamConnected, ChannelSubscribed, etc. never
affect the coordinator: their failures are logged and swallowed.

Architecture:
    - Dictionary-based handler registry (event class -> list of handlers)
    - Fail-open behavior (one handler failure doesn't break others)
    - Concurrent handler execution (asyncio.gather)

Usage:
    >>> bus = InMemoryEventBus(logger=logger)
    >>> bus.subscribe(StreamConnected, on_connect)
    >>> await bus.publish(StreamConnected(uid="abc"))
"""

import asyncio
from collections import defaultdict

from transmit.domain.events.base_event import DomainEvent
from transmit.domain.protocols.event_bus_protocol import EventHandler
from transmit.domain.protocols.logger_protocol import LoggerProtocol


class InMemoryEventBus:
    """In-memory event bus with fail-open behavior.

    Thread Safety:
        NOT thread-safe (single-threaded async design). The coordinator owns
        the bus and only touches it from the event loop.

    Attributes:
        _handlers: Event class -> list of async handlers.
        _logger: Logger for handler failures.
    """

    def __init__(self, logger: LoggerProtocol) -> None:
        self._handlers: dict[type[DomainEvent], list[EventHandler]] = defaultdict(list)
        self._logger = logger

    def subscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> None:
        """Register event handler for specific event type.

        Args:
            event_type: Class of event to handle. Only exact type matches
                (no inheritance matching).
            handler: Async function called when event is published.

        Notes:
            - No duplicate detection (same handler can be registered twice)
        """
        self._handlers[event_type].append(handler)

    def unsubscribe(
        self,
        event_type: type[DomainEvent],
        handler: EventHandler,
    ) -> bool:
        """Remove the first registration of handler for event_type."""
        handlers = self._handlers.get(event_type)
        if not handlers or handler not in handlers:
            return False
        handlers.remove(handler)
        return True

    async def publish(self, event: DomainEvent) -> None:
        """Publish event to all registered handlers.

        Handler exceptions are logged but NOT propagated to the publisher.
        No handlers registered is a no-op.

        Args:
            event: Event instance; handlers registered for type(event) run.
        """
        event_type = type(event)
        handlers = list(self._handlers.get(event_type, []))

        if not handlers:
            return

        self._logger.debug(
            "event_publishing",
            event_type=event_type.__name__,
            event_id=str(event.event_id),
            handler_count=len(handlers),
        )

        results = await asyncio.gather(
            *(handler(event) for handler in handlers),
            return_exceptions=True,
        )

        for idx, result in enumerate(results):
            if isinstance(result, Exception):
                self._logger.warning(
                    "event_handler_failed",
                    event_type=event_type.__name__,
                    event_id=str(event.event_id),
                    handler_name=getattr(handlers[idx], "__name__", repr(handlers[idx])),
                    error_type=type(result).__name__,
                    error_message=str(result),
                )
