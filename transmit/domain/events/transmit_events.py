"""Lifecycle hook events emitted by the broadcast coordinator.

Observers subscribe by event class (typed dispatch) instead of by string
name:

    >>> transmit.on(ChannelSubscribed, audit_subscription)

Events:
    StreamConnected       - stream attached and registered
    StreamDisconnected    - underlying connection closed
    ChannelSubscribed     - subscription accepted (emitted before membership update)
    ChannelUnsubscribed   - unsubscription requested
    ChannelBroadcasted    - local fan-out finished for a broadcast
"""

from dataclasses import dataclass
from typing import Any

from transmit.domain.events.base_event import DomainEvent


@dataclass(frozen=True, kw_only=True, slots=True)
class StreamConnected(DomainEvent):
    """A client stream was accepted.

    Attributes:
        uid: Client-supplied stream id.
    """

    uid: str


@dataclass(frozen=True, kw_only=True, slots=True)
class StreamDisconnected(DomainEvent):
    """A client stream was closed.

    Attributes:
        uid: Client-supplied stream id.
    """

    uid: str


@dataclass(frozen=True, kw_only=True, slots=True)
class ChannelSubscribed(DomainEvent):
    """A subscription passed authorization.

    Attributes:
        uid: Stream id.
        channel: Concrete channel name.
    """

    uid: str
    channel: str


@dataclass(frozen=True, kw_only=True, slots=True)
class ChannelUnsubscribed(DomainEvent):
    """An unsubscription was requested.

    Attributes:
        uid: Stream id.
        channel: Concrete channel name.
    """

    uid: str
    channel: str


@dataclass(frozen=True, kw_only=True, slots=True)
class ChannelBroadcasted(DomainEvent):
    """A payload was fanned out to the local subscribers of a channel.

    Attributes:
        channel: Concrete channel name.
        payload: Broadcast payload (JSON serializable).
    """

    channel: str
    payload: Any
