"""Domain protocols (ports).

Infrastructure adapters implement these protocols through structural typing
(no inheritance).
"""

from transmit.domain.protocols.event_bus_protocol import EventBusProtocol, EventHandler
from transmit.domain.protocols.logger_protocol import LoggerProtocol
from transmit.domain.protocols.transport_protocol import (
    TransportHandler,
    TransportProtocol,
)

__all__ = [
    "EventBusProtocol",
    "EventHandler",
    "LoggerProtocol",
    "TransportHandler",
    "TransportProtocol",
]
