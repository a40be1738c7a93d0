"""Replication transports implementing TransportProtocol."""

from transmit.infrastructure.transport.in_memory_transport import InMemoryTransport
from transmit.infrastructure.transport.redis_transport import RedisTransport

__all__ = ["InMemoryTransport", "RedisTransport"]
