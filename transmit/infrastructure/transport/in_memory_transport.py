"""In-memory replication transport.

Single-process only. Several Transmit instances sharing one
InMemoryTransport behave like instances sharing a broker, which makes it
useful for local development and multi-instance tests. Like Redis, it
delivers a message to the publisher's own subscription too.
"""

import json
from typing import Any

from transmit.domain.protocols.logger_protocol import LoggerProtocol
from transmit.domain.protocols.transport_protocol import TransportHandler


class InMemoryTransport:
    """Process-local pub/sub.

    Messages are serialized exactly as RedisTransport does, so handlers see
    the same raw JSON text.
    """

    def __init__(self, logger: LoggerProtocol) -> None:
        self._handlers: dict[str, list[TransportHandler]] = {}
        self._logger = logger

    async def publish(self, topic: str, message: dict[str, Any]) -> None:
        """Deliver message to every handler of topic, sequentially.

        Handler failures are logged and do not stop delivery to the rest.
        """
        try:
            raw = json.dumps(message)
        except (TypeError, ValueError) as e:
            self._logger.warning(
                "transport_message_not_serializable",
                topic=topic,
                error_type=type(e).__name__,
                error_message=str(e),
            )
            return

        for handler in list(self._handlers.get(topic, [])):
            try:
                await handler(raw)
            except Exception as e:
                self._logger.error("transport_handler_failed", error=e, topic=topic)

    async def subscribe(self, topic: str, handler: TransportHandler) -> None:
        self._handlers.setdefault(topic, []).append(handler)

    async def close(self) -> None:
        self._handlers.clear()
