"""Registry of live streams and the channel membership index.

The registry is the only component that mutates stream membership. It keeps
two indices:

    _streams:  uid -> Stream
    _channels: channel -> set[uid]

Every operation is O(1) amortized, except ``find_by_channel`` which is
O(subscribers) and returns a snapshot list, so fan-out can iterate while
subscribe/unsubscribe mutate the index.

Thread Safety:
    NOT thread-safe. Owned by the coordinator and only touched from the
    event loop, with no await between reads and writes.
"""

from transmit.domain.protocols.logger_protocol import LoggerProtocol
from transmit.infrastructure.sse.stream import Stream


class StreamRegistry:
    """Live streams indexed by uid and by channel."""

    def __init__(self, logger: LoggerProtocol) -> None:
        self._streams: dict[str, Stream] = {}
        self._channels: dict[str, set[str]] = {}
        self._logger = logger

    def __len__(self) -> int:
        return len(self._streams)

    def get(self, uid: str) -> Stream | None:
        return self._streams.get(uid)

    def all(self) -> list[Stream]:
        """Snapshot of every live stream."""
        return list(self._streams.values())

    def add(self, stream: Stream) -> Stream | None:
        """Register a stream under its uid.

        A live stream already registered under the same uid is evicted first:
        it is removed from every channel and closed, so the channel index
        never keeps a reference to a replaced stream.

        Args:
            stream: Stream to register.

        Returns:
            The evicted stream, or None when the uid was free.
        """
        previous = self._streams.get(stream.uid)
        if previous is stream:
            return None
        if previous is not None:
            self.remove(previous)
            previous.close()
            self._logger.warning(
                "stream_uid_replaced",
                uid=stream.uid,
                dropped_channels=sorted(previous.channels),
            )
        self._streams[stream.uid] = stream
        return previous

    def remove(self, stream: Stream) -> bool:
        """Unregister a stream and drop it from every channel.

        Only acts when ``stream`` is the instance currently indexed under
        its uid, so the close handler of an evicted stream cannot remove
        its successor. Removing an absent stream is a no-op.

        Returns:
            True if the stream was registered, False otherwise.
        """
        if self._streams.get(stream.uid) is not stream:
            return False
        del self._streams[stream.uid]
        for channel in stream.channels:
            self._discard_member(channel, stream.uid)
        stream.channels.clear()
        return True

    def add_channel_to_stream(self, uid: str, channel: str) -> bool:
        """Subscribe a stream to a channel. Idempotent.

        Returns:
            False if no stream is registered under uid, True otherwise.
        """
        stream = self._streams.get(uid)
        if stream is None:
            return False
        stream.channels.add(channel)
        self._channels.setdefault(channel, set()).add(uid)
        return True

    def remove_channel_from_stream(self, uid: str, channel: str) -> bool:
        """Unsubscribe a stream from a channel. Idempotent.

        Returns:
            False if no stream is registered under uid, True otherwise
            (including when it was not subscribed).
        """
        stream = self._streams.get(uid)
        if stream is None:
            return False
        stream.channels.discard(channel)
        self._discard_member(channel, uid)
        return True

    def find_by_channel(self, channel: str) -> list[Stream]:
        """Return the live streams subscribed to exactly this channel name.

        No pattern expansion happens here; patterns are resolved once, at
        subscribe time.

        Returns:
            Snapshot list (possibly empty).
        """
        uids = self._channels.get(channel)
        if not uids:
            return []
        return [self._streams[uid] for uid in list(uids) if uid in self._streams]

    def _discard_member(self, channel: str, uid: str) -> None:
        members = self._channels.get(channel)
        if members is None:
            return
        members.discard(uid)
        if not members:
            del self._channels[channel]
