"""Container module - Centralized dependency injection.

Application-scoped singletons, created lazily through lru_cache factories:

    from transmit.core.container import get_logger, get_transmit

Modules:
- infrastructure: logger, replication transport
- transmit: the broadcast coordinator
"""

from transmit.core.container.infrastructure import get_logger, get_transport
from transmit.core.container.transmit import get_transmit

__all__ = ["get_logger", "get_transport", "get_transmit"]
