"""Domain events and wire messages."""

from transmit.domain.events.base_event import DomainEvent
from transmit.domain.events.replication_message import ReplicationMessage
from transmit.domain.events.sse_message import SSEMessage
from transmit.domain.events.transmit_events import (
    ChannelBroadcasted,
    ChannelSubscribed,
    ChannelUnsubscribed,
    StreamConnected,
    StreamDisconnected,
)

__all__ = [
    "DomainEvent",
    "ReplicationMessage",
    "SSEMessage",
    "StreamConnected",
    "StreamDisconnected",
    "ChannelSubscribed",
    "ChannelUnsubscribed",
    "ChannelBroadcasted",
]
