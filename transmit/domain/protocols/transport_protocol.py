"""Replication transport protocol (port).

The coordinator relays locally originated broadcasts through an external
pub/sub transport so that every instance fans out to its own subscribers.
The transport is an opaque publish/subscribe pair.

Implementations:
    - RedisTransport: transmit/infrastructure/transport/redis_transport.py
    - InMemoryTransport: transmit/infrastructure/transport/in_memory_transport.py

Contract:
    - At-least-once, no ordering guarantee
    - Fail-open: publish/subscribe failures are logged, never raised, and the
      engine degrades to single-instance broadcast
"""

from collections.abc import Awaitable, Callable
from typing import Any, Protocol

TransportHandler = Callable[[str | bytes], Awaitable[None]]
"""Async callback receiving the raw (serialized) message."""


class TransportProtocol(Protocol):
    """Protocol for replication transports."""

    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        """Serialize and publish a message on a topic.

        Args:
            topic: Pub/sub topic name.
            message: JSON serializable message.
        """
        ...

    async def subscribe(self, topic: str, handler: TransportHandler) -> None:
        """Deliver every raw message received on a topic to handler.

        Args:
            topic: Pub/sub topic name.
            handler: Async callback receiving the raw message.
        """
        ...

    async def close(self) -> None:
        """Stop listeners and release connections."""
        ...
