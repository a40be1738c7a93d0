"""Client stream: one long-lived Server-Sent Events connection.

A Stream buffers encoded frames in an asyncio.Queue. The HTTP layer drains
it through ``frames()``, which always starts with the priming frame so that
clients waiting for the first byte consider the connection open.

Lifecycle:
    CONNECTING -> OPEN (first frame pulled) -> CLOSED (close() called)

There is no reconnect state: a reconnecting client is a new Stream, possibly
with a reused uid.
"""

import asyncio
from collections.abc import AsyncIterator, Mapping
from enum import StrEnum

from transmit.core.constants import (
    PING_FRAME,
    PING_INTERVAL_DISABLED,
    PRIMING_FRAME,
    SSE_RESPONSE_HEADERS,
    STREAM_MAX_QUEUE_SIZE_DEFAULT,
)
from transmit.core.errors import StreamBackpressureError
from transmit.domain.events.sse_message import SSEMessage


def sse_headers(forward_headers: Mapping[str, str] | None = None) -> dict[str, str]:
    """Build response headers for an event stream.

    Args:
        forward_headers: Extra headers to send (e.g. CORS). SSE headers win
            on conflict.

    Returns:
        Header dictionary for the streaming response.
    """
    headers = dict(forward_headers or {})
    lowered = {name.lower() for name in SSE_RESPONSE_HEADERS}
    for name in list(headers):
        if name.lower() in lowered:
            del headers[name]
    headers.update(SSE_RESPONSE_HEADERS)
    return headers


class StreamState(StrEnum):
    """Per-connection lifecycle state."""

    CONNECTING = "connecting"
    OPEN = "open"
    CLOSED = "closed"


class Stream:
    """Outbound SSE connection to a single client.

    The ``channels`` set is mutated only by StreamRegistry.

    Attributes:
        uid: Client-supplied id (unique among live streams).
        channels: Channel names this stream is subscribed to.
    """

    def __init__(
        self,
        uid: str,
        *,
        max_queue_size: int = STREAM_MAX_QUEUE_SIZE_DEFAULT,
        ping_interval_seconds: float = PING_INTERVAL_DISABLED,
    ) -> None:
        self.uid = uid
        self.channels: set[str] = set()
        self._max_queue_size = max_queue_size
        self._ping_interval = ping_interval_seconds
        # None is the end-of-stream sentinel
        self._queue: asyncio.Queue[bytes | None] = asyncio.Queue()
        self._state = StreamState.CONNECTING

    def __repr__(self) -> str:
        return f"Stream(uid={self.uid!r}, state={self._state.value})"

    @property
    def state(self) -> StreamState:
        return self._state

    @property
    def is_closed(self) -> bool:
        return self._state is StreamState.CLOSED

    @property
    def pending(self) -> int:
        """Number of frames queued and not yet pulled by the transport."""
        return self._queue.qsize()

    def write_message(self, message: SSEMessage) -> bool:
        """Encode and queue a message.

        Args:
            message: Message to send.

        Returns:
            True if queued, False if the stream is already closed.

        Raises:
            StreamBackpressureError: If the client is not draining the queue.
        """
        return self.write_frame(message.encode())

    def write_frame(self, frame: bytes) -> bool:
        """Queue an already encoded frame.

        Fan-out encodes a broadcast once and hands the same bytes to every
        subscriber.

        Raises:
            StreamBackpressureError: If the client is not draining the queue.
        """
        if self.is_closed:
            return False
        if self._queue.qsize() >= self._max_queue_size:
            raise StreamBackpressureError(self.uid, self._max_queue_size)
        self._queue.put_nowait(frame)
        return True

    def close(self) -> bool:
        """Close the stream. Idempotent.

        Frames already queued are still yielded by ``frames()`` before it
        ends.

        Returns:
            True on the first call, False if already closed.
        """
        if self.is_closed:
            return False
        self._state = StreamState.CLOSED
        self._queue.put_nowait(None)
        return True

    async def frames(self) -> AsyncIterator[bytes]:
        """Yield the byte frames to write on the wire.

        Yields the priming frame first, then queued frames in write order.
        When ``ping_interval_seconds`` is positive and no frame arrives in
        that time, a keep-alive comment is yielded instead.
        """
        if self._state is StreamState.CONNECTING:
            self._state = StreamState.OPEN
        yield PRIMING_FRAME

        timeout = self._ping_interval if self._ping_interval > 0 else None
        while True:
            try:
                frame = await asyncio.wait_for(self._queue.get(), timeout=timeout)
            except TimeoutError:
                yield PING_FRAME
                continue
            if frame is None:
                return
            yield frame
