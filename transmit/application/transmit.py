"""Broadcast coordinator.

Transmit owns the stream registry, the secure channel store, the instance
identity and the replication transport. It drives:

    connect      create_stream -> registry.add -> StreamConnected
    disconnect   close_stream -> registry.remove -> StreamDisconnected (once)
    subscribe    secure channel match -> authorization callback
                 -> ChannelSubscribed -> registry.add_channel_to_stream
    unsubscribe  ChannelUnsubscribed -> registry.remove_channel_from_stream
    broadcast    local fan-out -> transport publish (local origin only)
                 -> ChannelBroadcasted

Security is opt-in: a channel matching no pattern registered through
``authorize_channel`` can be joined by any stream.

Concurrency:
    Single event loop. Registry and store mutations never span an await,
    so fan-out always iterates a consistent snapshot. Suspension happens
    only in authorization callbacks, hook dispatch and transport I/O.
"""

import inspect
import weakref
from collections.abc import Awaitable, Callable
from typing import Any

from uuid_extensions import uuid7

from transmit.core.constants import (
    PING_INTERVAL_DISABLED,
    STREAM_MAX_QUEUE_SIZE_DEFAULT,
    TRANSPORT_CHANNEL_DEFAULT,
)
from transmit.core.result import Failure, Success
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
from transmit.domain.protocols.event_bus_protocol import EventBusProtocol, EventHandler
from transmit.domain.protocols.logger_protocol import LoggerProtocol
from transmit.domain.protocols.transport_protocol import TransportProtocol
from transmit.infrastructure.events.in_memory_event_bus import InMemoryEventBus
from transmit.infrastructure.sse.secure_channel_store import (
    ChannelMatch,
    SecureChannelStore,
)
from transmit.infrastructure.sse.stream import Stream
from transmit.infrastructure.sse.stream_registry import StreamRegistry

AuthorizationCallback = Callable[[Any, dict[str, str]], bool | Awaitable[bool]]
"""Channel authorization check.

Called with the caller's authorization context (the HTTP request in the web
layer) and the params extracted from the channel name. May be sync or async.
"""


class Transmit:
    """Server-push broadcast coordinator.

    Example:
        >>> transmit = Transmit(transport=None, logger=logger)
        >>> transmit.authorize_channel("users/:id", can_read_user)
        >>> stream = await transmit.create_stream("client-1")
        >>> await transmit.subscribe_to_channel("client-1", "users/42", request)
        True
        >>> await transmit.broadcast("users/42", {"status": "online"})
    """

    def __init__(
        self,
        *,
        transport: TransportProtocol | None,
        logger: LoggerProtocol,
        event_bus: EventBusProtocol | None = None,
        transport_channel: str = TRANSPORT_CHANNEL_DEFAULT,
        max_queue_size: int = STREAM_MAX_QUEUE_SIZE_DEFAULT,
        ping_interval_seconds: float = PING_INTERVAL_DISABLED,
        instance_id: str | None = None,
    ) -> None:
        """Initialize the coordinator.

        Args:
            transport: Replication transport, or None for single-instance use.
            logger: Structured logger.
            event_bus: Hook event bus (in-memory bus when omitted).
            transport_channel: Topic used for replication.
            max_queue_size: Per-stream frame buffer bound.
            ping_interval_seconds: Keep-alive comment interval (0 disables).
            instance_id: Identity override; a UUID v7 is generated otherwise.
        """
        self._id = instance_id or str(uuid7())
        self._transport = transport
        self._transport_channel = transport_channel
        self._logger = logger.bind(instance_id=self._id)
        self._event_bus: EventBusProtocol = event_bus or InMemoryEventBus(logger=logger)
        self._registry = StreamRegistry(logger=self._logger)
        self._secure_channels = SecureChannelStore()
        self._callbacks: dict[str, AuthorizationCallback] = {}
        self._max_queue_size = max_queue_size
        self._ping_interval = ping_interval_seconds
        self._disconnected: weakref.WeakSet[Stream] = weakref.WeakSet()
        self._started = False

    @property
    def instance_id(self) -> str:
        """Process-lifetime identity tagging replicated broadcasts."""
        return self._id

    @property
    def stream_count(self) -> int:
        return len(self._registry)

    def get_stream(self, uid: str) -> Stream | None:
        return self._registry.get(uid)

    def subscribers(self, channel: str) -> list[str]:
        """Uids of the local streams subscribed to channel."""
        return [stream.uid for stream in self._registry.find_by_channel(channel)]

    # =========================================================================
    # Hooks
    # =========================================================================

    def on(self, event_type: type[DomainEvent], handler: EventHandler) -> None:
        """Observe a lifecycle event (StreamConnected, ChannelSubscribed, ...)."""
        self._event_bus.subscribe(event_type, handler)

    def off(self, event_type: type[DomainEvent], handler: EventHandler) -> bool:
        return self._event_bus.unsubscribe(event_type, handler)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Listen for broadcasts replicated by other instances. Idempotent."""
        if self._started:
            return
        self._started = True
        if self._transport is None:
            self._logger.info("transmit_started", replication=False)
            return
        await self._transport.subscribe(self._transport_channel, self._on_replicated)
        self._logger.info(
            "transmit_started", replication=True, topic=self._transport_channel
        )

    async def shutdown(self) -> None:
        """Close every stream and the transport."""
        for stream in self._registry.all():
            await self.close_stream(stream)
        if self._transport is not None:
            await self._transport.close()
        self._started = False
        self._logger.info("transmit_stopped")

    async def create_stream(self, uid: str) -> Stream:
        """Accept a client connection.

        A stream already registered under uid is disconnected first (closed,
        removed from its channels, StreamDisconnected emitted) so observers
        see its disconnect before the successor's StreamConnected.

        Args:
            uid: Client-supplied stream id.

        Returns:
            Registered stream; the HTTP layer drains ``stream.frames()``.
        """
        previous = self._registry.get(uid)
        if previous is not None:
            self._logger.warning(
                "stream_uid_replaced", uid=uid, dropped_channels=sorted(previous.channels)
            )
            await self.close_stream(previous)

        stream = Stream(
            uid,
            max_queue_size=self._max_queue_size,
            ping_interval_seconds=self._ping_interval,
        )
        self._registry.add(stream)
        self._logger.info("stream_connected", uid=uid, stream_count=len(self._registry))
        await self._event_bus.publish(StreamConnected(uid=uid))
        return stream

    async def close_stream(self, stream: Stream) -> bool:
        """Handle the underlying connection closing.

        Safe to call several times and for streams that were never fully
        registered: StreamDisconnected is emitted once per stream.

        Returns:
            True the first time for a given stream, False afterwards.
        """
        if stream in self._disconnected:
            return False
        self._disconnected.add(stream)
        self._registry.remove(stream)
        stream.close()
        self._logger.info(
            "stream_disconnected", uid=stream.uid, stream_count=len(self._registry)
        )
        await self._event_bus.publish(StreamDisconnected(uid=stream.uid))
        return True

    # =========================================================================
    # Channels
    # =========================================================================

    def authorize_channel(self, channel: str, callback: AuthorizationCallback) -> None:
        """Mark a channel pattern as secure.

        Registering the same pattern again replaces its callback and keeps
        its matching priority.

        Raises:
            InvalidChannelPatternError: If the pattern cannot be compiled.
        """
        self._secure_channels.add(channel)
        self._callbacks[channel] = callback

    async def subscribe_to_channel(
        self, uid: str, channel: str, context: Any = None
    ) -> bool:
        """Subscribe a stream to a channel, running authorization if needed.

        Args:
            uid: Stream id.
            channel: Concrete channel name.
            context: Authorization context handed to the callback.

        Returns:
            False when denied, when the matching pattern has no callback, or
            when no stream is registered under uid; True otherwise.
        """
        definition = self._secure_channels.match(channel)
        if definition is not None:
            if not await self._authorize(definition, channel, context):
                return False

        await self._event_bus.publish(ChannelSubscribed(uid=uid, channel=channel))
        subscribed = self._registry.add_channel_to_stream(uid, channel)
        if not subscribed:
            self._logger.debug("subscribe_unknown_stream", uid=uid, channel=channel)
        return subscribed

    async def unsubscribe_from_channel(self, uid: str, channel: str) -> bool:
        """Unsubscribe a stream. No authorization is checked.

        Returns:
            False if no stream is registered under uid, True otherwise.
        """
        await self._event_bus.publish(ChannelUnsubscribed(uid=uid, channel=channel))
        return self._registry.remove_channel_from_stream(uid, channel)

    async def _authorize(self, match: ChannelMatch, channel: str, context: Any) -> bool:
        callback = self._callbacks.get(match.pattern)
        if callback is None:
            self._logger.warning(
                "channel_callback_missing", channel=channel, pattern=match.pattern
            )
            return False

        try:
            result = callback(context, match.params)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            self._logger.error(
                "channel_authorization_failed",
                error=e,
                channel=channel,
                pattern=match.pattern,
            )
            return False

        if not result:
            self._logger.debug("channel_authorization_denied", channel=channel)
        return bool(result)

    # =========================================================================
    # Broadcast
    # =========================================================================

    async def broadcast(
        self,
        channel: str,
        payload: Any,
        *,
        internal: bool = False,
        origin_id: str | None = None,
    ) -> None:
        """Deliver payload to the channel's subscribers on every instance.

        Each local subscriber receives ``{"channel": ..., "payload": ...}``
        as the message data. A failing subscriber is logged and skipped.

        Args:
            channel: Concrete channel name.
            payload: JSON serializable payload.
            internal: True when received from the transport; the message is
                then not published again.
            origin_id: Instance id of the publisher; messages carrying this
                instance's own id are ignored.
        """
        if origin_id is not None and origin_id == self._id:
            self._logger.debug("broadcast_self_origin_ignored", channel=channel)
            return

        try:
            frame = SSEMessage(data={"channel": channel, "payload": payload}).encode()
        except (TypeError, ValueError) as e:
            self._logger.error("broadcast_encode_failed", error=e, channel=channel)
            return

        subscribers = self._registry.find_by_channel(channel)
        delivered = 0
        for stream in subscribers:
            try:
                if stream.write_frame(frame):
                    delivered += 1
            except Exception as e:
                self._logger.warning(
                    "broadcast_write_failed",
                    uid=stream.uid,
                    channel=channel,
                    error_type=type(e).__name__,
                    error_message=str(e),
                )

        self._logger.debug(
            "broadcast_fanned_out",
            channel=channel,
            subscriber_count=len(subscribers),
            delivered=delivered,
            internal=internal,
        )

        if not internal and self._transport is not None:
            replication = ReplicationMessage(channel=channel, payload=payload, from_=self._id)
            try:
                await self._transport.publish(self._transport_channel, replication.to_dict())
            except Exception as e:
                self._logger.error("broadcast_replication_failed", error=e, channel=channel)

        await self._event_bus.publish(ChannelBroadcasted(channel=channel, payload=payload))

    async def _on_replicated(self, raw: str | bytes) -> None:
        match ReplicationMessage.from_raw(raw):
            case Failure(error=error):
                self._logger.warning(
                    "replication_message_dropped",
                    error_code=error.code.value,
                    reason=error.message,
                )
            case Success(value=message):
                await self.broadcast(
                    message.channel,
                    message.payload,
                    internal=True,
                    origin_id=message.from_,
                )
