"""Infrastructure dependency factories.

- get_logger(): structlog console adapter (JSON outside development)
- get_transport(): Redis pub/sub when REDIS_URL is set, in-memory otherwise
"""

from functools import lru_cache
from typing import TYPE_CHECKING

from transmit.core.config import get_settings

if TYPE_CHECKING:
    from transmit.domain.protocols.logger_protocol import LoggerProtocol
    from transmit.domain.protocols.transport_protocol import TransportProtocol


@lru_cache()
def get_logger() -> "LoggerProtocol":
    """Return the application-scoped logger singleton.

    Adapter selection is centralized here (composition root):
    - development: ConsoleAdapter (human-readable)
    - testing/ci/production: ConsoleAdapter (JSON)

    Returns:
        LoggerProtocol: Logger instance implementing the protocol.
    """
    from transmit.infrastructure.logging.console_adapter import ConsoleAdapter

    settings = get_settings()
    return ConsoleAdapter(
        use_json=not settings.is_development,
        level=settings.log_level,
    )


@lru_cache()
def get_transport() -> "TransportProtocol":
    """Return the replication transport singleton.

    Returns:
        RedisTransport when ``redis_url`` is configured, otherwise an
        InMemoryTransport (broadcasts stay on this instance).
    """
    settings = get_settings()
    logger = get_logger()

    if settings.redis_url is None:
        from transmit.infrastructure.transport.in_memory_transport import (
            InMemoryTransport,
        )

        return InMemoryTransport(logger=logger)

    from redis.asyncio import ConnectionPool, Redis

    from transmit.infrastructure.transport.redis_transport import RedisTransport

    # Pub/sub holds a long-lived connection: no socket timeout
    pool = ConnectionPool.from_url(
        settings.redis_url,
        max_connections=10,
        decode_responses=False,
        socket_connect_timeout=5,
        socket_timeout=None,
        socket_keepalive=True,
    )
    redis_client: Redis[bytes] = Redis(connection_pool=pool)  # type: ignore[type-arg]

    return RedisTransport(redis_client=redis_client, logger=logger)
