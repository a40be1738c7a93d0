"""Unit tests for the Transmit broadcast coordinator.

Tests cover:
- Stream lifecycle (connect, disconnect exactly once, uid reuse)
- Subscribe/unsubscribe, including unknown uids
- Secure channels: sync and async callbacks, denial, callback errors,
  patterns registered without a usable callback
- Broadcast fan-out, subscriber isolation and backpressure
- Replication between instances sharing a transport, self-origin dedup
- Malformed replication messages
- Hook ordering relative to registry mutations

Architecture:
    - Coordinator with mocked logger
    - InMemoryTransport shared between instances stands in for Redis
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.conftest import drain
from transmit.application.transmit import Transmit
from transmit.core.constants import PRIMING_FRAME
from transmit.core.errors import InvalidChannelPatternError
from transmit.domain.events import (
    ChannelBroadcasted,
    ChannelSubscribed,
    ChannelUnsubscribed,
    DomainEvent,
    StreamConnected,
    StreamDisconnected,
)
from transmit.domain.events.sse_message import SSEMessage
from transmit.infrastructure.sse.stream import Stream, StreamState
from transmit.infrastructure.transport.in_memory_transport import InMemoryTransport


async def delivered(stream) -> list[dict]:
    """Close the stream and decode the data of every broadcast it received."""
    frames = await drain(stream)
    assert frames[0] == PRIMING_FRAME
    messages = []
    for frame in frames[1:]:
        text = frame.decode("utf-8")
        assert text.startswith("data: ") and text.endswith("\n\n")
        messages.append(json.loads(text[len("data: "):-2]))
    return messages


async def _take(stream, count):
    taken = 0
    async for frame in stream.frames():
        yield frame
        taken += 1
        if taken == count:
            return


def recorder(transmit: Transmit, *event_types: type[DomainEvent]) -> list[DomainEvent]:
    events: list[DomainEvent] = []

    async def record(event: DomainEvent) -> None:
        events.append(event)

    for event_type in event_types:
        transmit.on(event_type, record)
    return events


# =============================================================================
# Stream lifecycle
# =============================================================================


@pytest.mark.unit
class TestStreamLifecycle:
    async def test_create_stream_registers_and_emits(self, transmit):
        events = recorder(transmit, StreamConnected)

        stream = await transmit.create_stream("a")

        assert transmit.get_stream("a") is stream
        assert transmit.stream_count == 1
        assert [type(e) for e in events] == [StreamConnected]
        assert events[0].uid == "a"

    async def test_close_stream_leaves_every_channel(self, transmit):
        stream = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")
        await transmit.subscribe_to_channel("a", "sports")

        await transmit.close_stream(stream)

        assert transmit.subscribers("news") == []
        assert transmit.subscribers("sports") == []
        assert transmit.get_stream("a") is None
        assert stream.state is StreamState.CLOSED

    async def test_disconnect_emitted_exactly_once(self, transmit):
        events = recorder(transmit, StreamDisconnected)
        stream = await transmit.create_stream("a")

        assert await transmit.close_stream(stream) is True
        assert await transmit.close_stream(stream) is False
        assert len(events) == 1

    async def test_uid_reuse_evicts_previous_stream(self, transmit):
        old = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        new = await transmit.create_stream("a")

        assert transmit.get_stream("a") is new
        assert old.is_closed
        assert transmit.subscribers("news") == []

    async def test_uid_reuse_disconnects_previous_before_connecting(self, transmit):
        events = recorder(transmit, StreamConnected, StreamDisconnected)
        old = await transmit.create_stream("a")
        await transmit.create_stream("a")

        # Late close from the replaced connection's handler
        assert await transmit.close_stream(old) is False

        assert [(type(e), e.uid) for e in events] == [
            (StreamConnected, "a"),
            (StreamDisconnected, "a"),
            (StreamConnected, "a"),
        ]

    async def test_close_never_registered_stream(self, transmit):
        events = recorder(transmit, StreamDisconnected)
        await transmit.create_stream("a")
        stray = Stream("x")

        assert await transmit.close_stream(stray) is True
        assert await transmit.close_stream(stray) is False
        assert [e.uid for e in events] == ["x"]
        assert transmit.stream_count == 1
        assert stray.is_closed

    async def test_closing_evicted_stream_keeps_successor(self, transmit):
        old = await transmit.create_stream("a")
        new = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        await transmit.close_stream(old)

        assert transmit.get_stream("a") is new
        assert transmit.subscribers("news") == ["a"]

    async def test_shutdown_closes_streams_and_transport(self, mock_logger):
        transport = MagicMock()
        transport.subscribe = AsyncMock()
        transport.close = AsyncMock()
        transmit = Transmit(transport=transport, logger=mock_logger)
        await transmit.start()
        stream = await transmit.create_stream("a")

        await transmit.shutdown()

        assert stream.is_closed
        assert transmit.stream_count == 0
        transport.close.assert_awaited_once()


# =============================================================================
# Subscriptions
# =============================================================================


@pytest.mark.unit
class TestSubscriptions:
    async def test_public_channel_subscribe(self, transmit):
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "news") is True
        assert transmit.subscribers("news") == ["a"]

    async def test_subscribe_unknown_uid_returns_false(self, transmit):
        assert await transmit.subscribe_to_channel("ghost", "news") is False
        assert transmit.subscribers("news") == []

    async def test_unsubscribe(self, transmit):
        await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        assert await transmit.unsubscribe_from_channel("a", "news") is True
        assert transmit.subscribers("news") == []

    async def test_unsubscribe_unknown_uid_returns_false(self, transmit):
        assert await transmit.unsubscribe_from_channel("ghost", "news") is False

    async def test_subscribed_hook_fires_before_membership_change(self, transmit):
        await transmit.create_stream("a")
        seen: list[list[str]] = []

        async def on_subscribed(event: DomainEvent) -> None:
            seen.append(transmit.subscribers("news"))

        transmit.on(ChannelSubscribed, on_subscribed)
        await transmit.subscribe_to_channel("a", "news")

        assert seen == [[]]
        assert transmit.subscribers("news") == ["a"]

    async def test_unsubscribed_hook_fires(self, transmit):
        events = recorder(transmit, ChannelUnsubscribed)
        await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        await transmit.unsubscribe_from_channel("a", "news")

        assert [(e.uid, e.channel) for e in events] == [("a", "news")]

    async def test_off_removes_hook(self, transmit):
        events: list[DomainEvent] = []

        async def record(event: DomainEvent) -> None:
            events.append(event)

        transmit.on(StreamConnected, record)
        assert transmit.off(StreamConnected, record) is True
        await transmit.create_stream("a")

        assert events == []


# =============================================================================
# Authorization
# =============================================================================


@pytest.mark.unit
class TestAuthorization:
    async def test_sync_callback_allows_with_params(self, transmit):
        calls: list[tuple[object, dict[str, str]]] = []

        def can_read(context, params):
            calls.append((context, params))
            return params["id"] == "42"

        transmit.authorize_channel("users/:id", can_read)
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "users/42", "ctx") is True
        assert calls == [("ctx", {"id": "42"})]

    async def test_sync_callback_denies(self, transmit):
        transmit.authorize_channel("users/:id", lambda context, params: False)
        events = recorder(transmit, ChannelSubscribed)
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "users/1") is False
        assert transmit.subscribers("users/1") == []
        assert events == []

    async def test_async_callback(self, transmit):
        async def can_read(context, params):
            return context == "admin"

        transmit.authorize_channel("admin/*", can_read)
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "admin/reports/q1", "guest") is False
        assert await transmit.subscribe_to_channel("a", "admin/reports/q1", "admin") is True

    async def test_callback_exception_is_denial(self, transmit, mock_logger):
        def broken(context, params):
            raise RuntimeError("auth backend down")

        transmit.authorize_channel("private", broken)
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "private") is False
        assert mock_logger.error.call_args.args[0] == "channel_authorization_failed"

    async def test_truthy_result_coerced(self, transmit):
        transmit.authorize_channel("private", lambda context, params: 1)
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "private") is True

    async def test_first_registered_pattern_decides(self, transmit):
        transmit.authorize_channel("users/:id", lambda context, params: False)
        transmit.authorize_channel("users/public", lambda context, params: True)
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "users/public") is False

    async def test_reregistering_replaces_callback(self, transmit):
        transmit.authorize_channel("private", lambda context, params: False)
        transmit.authorize_channel("private", lambda context, params: True)
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "private") is True

    async def test_pattern_without_callback_denies(self, transmit, mock_logger):
        # Pattern known to the store but no callback recorded for it
        transmit._secure_channels.add("orphan")
        await transmit.create_stream("a")

        assert await transmit.subscribe_to_channel("a", "orphan") is False
        assert mock_logger.warning.call_args.args[0] == "channel_callback_missing"

    def test_invalid_pattern_rejected(self, transmit):
        with pytest.raises(InvalidChannelPatternError):
            transmit.authorize_channel("files/*/tail", lambda context, params: True)

    async def test_unsubscribe_skips_authorization(self, transmit):
        callback = MagicMock(return_value=True)
        transmit.authorize_channel("private", callback)
        await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "private")
        callback.reset_mock()

        assert await transmit.unsubscribe_from_channel("a", "private") is True
        callback.assert_not_called()


# =============================================================================
# Broadcast
# =============================================================================


@pytest.mark.unit
class TestBroadcast:
    async def test_only_subscribers_receive(self, transmit):
        a = await transmit.create_stream("a")
        b = await transmit.create_stream("b")
        await transmit.subscribe_to_channel("a", "news")

        await transmit.broadcast("news", {"headline": "hi"})

        assert await delivered(a) == [{"channel": "news", "payload": {"headline": "hi"}}]
        assert await delivered(b) == []

    async def test_exact_channel_name_only(self, transmit):
        a = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "users/1")

        await transmit.broadcast("users/:id", "x")
        await transmit.broadcast("users", "x")

        assert await delivered(a) == []

    async def test_broadcast_without_subscribers_is_noop(self, transmit):
        events = recorder(transmit, ChannelBroadcasted)

        await transmit.broadcast("empty", 1)

        assert [(e.channel, e.payload) for e in events] == [("empty", 1)]

    async def test_messages_keep_order(self, transmit):
        a = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        for n in range(3):
            await transmit.broadcast("news", n)

        assert [m["payload"] for m in await delivered(a)] == [0, 1, 2]

    async def test_backpressure_on_one_stream_spares_others(self, mock_logger):
        transmit = Transmit(transport=None, logger=mock_logger, max_queue_size=1)
        slow = await transmit.create_stream("slow")
        fast = await transmit.create_stream("fast")
        await transmit.subscribe_to_channel("slow", "news")
        await transmit.subscribe_to_channel("fast", "news")

        await transmit.broadcast("news", 1)
        # Drain "fast" only; "slow" keeps its first frame queued
        fast_frames = [frame async for frame in _take(fast, 2)]
        await transmit.broadcast("news", 2)

        assert fast.pending == 1
        assert slow.pending == 1
        assert len(fast_frames) == 2
        warning = mock_logger.warning.call_args
        assert warning.args[0] == "broadcast_write_failed"
        assert warning.kwargs["uid"] == "slow"
        assert warning.kwargs["error_type"] == "StreamBackpressureError"

    async def test_payload_encoded_once_for_all_subscribers(self, transmit, monkeypatch):
        for uid in ("a", "b", "c"):
            await transmit.create_stream(uid)
            await transmit.subscribe_to_channel(uid, "news")
        encodes: list[SSEMessage] = []
        original = SSEMessage.encode

        def counting_encode(message: SSEMessage) -> bytes:
            encodes.append(message)
            return original(message)

        monkeypatch.setattr(SSEMessage, "encode", counting_encode)

        await transmit.broadcast("news", {"n": 1})

        assert len(encodes) == 1
        for uid in ("a", "b", "c"):
            assert await delivered(transmit.get_stream(uid)) == [
                {"channel": "news", "payload": {"n": 1}}
            ]

    async def test_unserializable_payload_logged_once(self, mock_logger):
        transport = MagicMock()
        transport.publish = AsyncMock()
        transmit = Transmit(transport=transport, logger=mock_logger)
        events = recorder(transmit, ChannelBroadcasted)
        for uid in ("a", "b"):
            await transmit.create_stream(uid)
            await transmit.subscribe_to_channel(uid, "news")

        await transmit.broadcast("news", object())

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args[0] == "broadcast_encode_failed"
        mock_logger.warning.assert_not_called()
        transport.publish.assert_not_awaited()
        assert events == []

    async def test_self_origin_is_ignored(self, transmit):
        a = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        await transmit.broadcast("news", 1, internal=True, origin_id=transmit.instance_id)

        assert await delivered(a) == []

    async def test_local_broadcast_is_replicated(self, mock_logger):
        transport = MagicMock()
        transport.publish = AsyncMock()
        transmit = Transmit(
            transport=transport,
            logger=mock_logger,
            transport_channel="topic",
            instance_id="me",
        )

        await transmit.broadcast("news", {"n": 1})

        transport.publish.assert_awaited_once_with(
            "topic", {"channel": "news", "payload": {"n": 1}, "from": "me"}
        )

    async def test_internal_broadcast_is_not_republished(self, mock_logger):
        transport = MagicMock()
        transport.publish = AsyncMock()
        transmit = Transmit(transport=transport, logger=mock_logger, instance_id="me")

        await transmit.broadcast("news", 1, internal=True, origin_id="other")

        transport.publish.assert_not_awaited()

    async def test_transport_failure_does_not_break_local_delivery(self, mock_logger):
        transport = MagicMock()
        transport.publish = AsyncMock(side_effect=RuntimeError("broker gone"))
        transmit = Transmit(transport=transport, logger=mock_logger)
        a = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        await transmit.broadcast("news", 1)

        assert len(await delivered(a)) == 1
        assert mock_logger.error.call_args.args[0] == "broadcast_replication_failed"


# =============================================================================
# Replication
# =============================================================================


@pytest.mark.unit
class TestReplication:
    @pytest.fixture
    async def pair(self, mock_logger):
        transport = InMemoryTransport(logger=mock_logger)
        first = Transmit(transport=transport, logger=mock_logger, instance_id="first")
        second = Transmit(transport=transport, logger=mock_logger, instance_id="second")
        await first.start()
        await second.start()
        return first, second

    async def test_broadcast_reaches_other_instance_once(self, pair):
        first, second = pair
        local = await first.create_stream("local")
        remote = await second.create_stream("remote")
        await first.subscribe_to_channel("local", "news")
        await second.subscribe_to_channel("remote", "news")

        await first.broadcast("news", "hello")

        # The transport loops the message back to "first": dedup keeps it single
        assert await delivered(local) == [{"channel": "news", "payload": "hello"}]
        assert await delivered(remote) == [{"channel": "news", "payload": "hello"}]

    async def test_replicated_broadcast_emits_hook(self, pair):
        first, second = pair
        events = recorder(second, ChannelBroadcasted)

        await first.broadcast("news", 1)

        assert [(e.channel, e.payload) for e in events] == [("news", 1)]

    async def test_start_is_idempotent(self, pair):
        first, second = pair
        remote = await second.create_stream("remote")
        await second.subscribe_to_channel("remote", "news")
        await second.start()

        await first.broadcast("news", 1)

        assert len(await delivered(remote)) == 1

    @pytest.mark.parametrize(
        "raw",
        [b"not json", "[1, 2]", '{"payload": 1}', '{"channel": "", "payload": 1}'],
    )
    async def test_malformed_message_dropped(self, transmit, mock_logger, raw):
        a = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        await transmit._on_replicated(raw)

        assert await delivered(a) == []
        warning = mock_logger.warning.call_args
        assert warning.args[0] == "replication_message_dropped"
        assert warning.kwargs["error_code"] == "replication_message_invalid"

    async def test_message_without_origin_is_delivered(self, transmit):
        a = await transmit.create_stream("a")
        await transmit.subscribe_to_channel("a", "news")

        await transmit._on_replicated('{"channel": "news", "payload": 7}')

        assert await delivered(a) == [{"channel": "news", "payload": 7}]
