"""Redis pub/sub replication transport implementing TransportProtocol.

Relays broadcasts between Transmit instances through Redis pub/sub.

Architecture:
    - Implements TransportProtocol without inheritance (structural typing)
    - One PubSub connection per transport, one background listener task
    - Fail-open design: Redis errors are logged but never raised, so the
      engine degrades to single-instance broadcast
"""

import asyncio
import json
from typing import Any

from redis.asyncio import Redis
from redis.asyncio.client import PubSub
from redis.exceptions import RedisError

from transmit.domain.protocols.logger_protocol import LoggerProtocol
from transmit.domain.protocols.transport_protocol import TransportHandler


class RedisTransport:
    """Redis implementation of TransportProtocol.

    Attributes:
        _redis: Async Redis client instance.
        _pubsub: Lazily created PubSub shared by all topic subscriptions.
        _handlers: Topic -> handlers receiving the raw message.
        _listener: Background task reading from ``_pubsub``.
        _logger: Logger instance.
    """

    def __init__(
        self,
        redis_client: "Redis[bytes]",  # type: ignore[type-arg]
        logger: LoggerProtocol,
    ) -> None:
        self._redis = redis_client
        self._pubsub: PubSub | None = None
        self._handlers: dict[str, list[TransportHandler]] = {}
        self._listener: asyncio.Task[None] | None = None
        self._logger = logger

    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        """Publish JSON-encoded message to topic.

        Note:
            Fail-open: errors are logged but not raised.
        """
        try:
            await self._redis.publish(topic, json.dumps(message))
            self._logger.debug("transport_message_published", topic=topic)
        except (TypeError, ValueError) as e:
            self._logger.warning(
                "transport_message_not_serializable",
                topic=topic,
                error_type=type(e).__name__,
                error_message=str(e),
            )
        except RedisError as e:
            self._logger.warning(
                "transport_publish_failed",
                topic=topic,
                error_type=type(e).__name__,
                error_message=str(e),
            )

    async def subscribe(self, topic: str, handler: TransportHandler) -> None:
        """Subscribe handler to topic and make sure the listener runs.

        Note:
            Fail-open: when Redis is unreachable the handler stays
            registered but receives nothing.
        """
        self._handlers.setdefault(topic, []).append(handler)

        try:
            if self._pubsub is None:
                self._pubsub = self._redis.pubsub()
            await self._pubsub.subscribe(topic)
        except RedisError as e:
            self._logger.warning(
                "transport_subscribe_failed",
                topic=topic,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return

        if self._listener is None or self._listener.done():
            self._listener = asyncio.create_task(
                self._listen(self._pubsub), name="transmit-transport-listener"
            )
        self._logger.info("transport_subscribed", topic=topic)

    async def close(self) -> None:
        """Stop the listener and release Redis connections."""
        if self._listener is not None and not self._listener.done():
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
        self._listener = None

        try:
            if self._pubsub is not None:
                await self._pubsub.unsubscribe()
                await self._pubsub.aclose()  # type: ignore[no-untyped-call]
            await self._redis.aclose()
        except RedisError as e:
            self._logger.warning(
                "transport_close_failed",
                error_type=type(e).__name__,
                error_message=str(e),
            )
        finally:
            self._pubsub = None
            self._handlers.clear()

    async def _listen(self, pubsub: PubSub) -> None:
        try:
            async for message in pubsub.listen():
                if message["type"] != "message":
                    continue

                topic = message["channel"]
                if isinstance(topic, bytes):
                    topic = topic.decode("utf-8")

                for handler in list(self._handlers.get(topic, [])):
                    try:
                        await handler(message["data"])
                    except Exception as e:
                        self._logger.error(
                            "transport_handler_failed", error=e, topic=topic
                        )
        except RedisError as e:
            self._logger.error("transport_listener_failed", error=e)
        except asyncio.CancelledError:
            self._logger.debug("transport_listener_cancelled")
            raise
