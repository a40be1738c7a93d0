"""Broadcast coordinator factory (app-scoped singleton)."""

from functools import lru_cache

from transmit.application.transmit import Transmit
from transmit.core.config import get_settings
from transmit.core.container.infrastructure import get_logger, get_transport


@lru_cache()
def get_transmit() -> Transmit:
    """Get the Transmit singleton.

    Also used as a FastAPI dependency; tests override it with
    ``app.dependency_overrides[get_transmit]``.

    Returns:
        Transmit wired with settings, logger and replication transport.
    """
    settings = get_settings()
    return Transmit(
        transport=get_transport(),
        logger=get_logger(),
        transport_channel=settings.transmit_transport_channel,
        max_queue_size=settings.transmit_max_queue_size,
        ping_interval_seconds=settings.transmit_ping_interval_seconds,
    )
