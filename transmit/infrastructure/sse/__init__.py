"""SSE infrastructure package.

- Stream: one long-lived client connection (frame queue + memberships)
- StreamRegistry: live streams and the channel membership index
- SecureChannelStore: channel patterns that require authorization
"""

from transmit.infrastructure.sse.secure_channel_store import (
    ChannelMatch,
    SecureChannelStore,
)
from transmit.infrastructure.sse.stream import Stream, StreamState, sse_headers
from transmit.infrastructure.sse.stream_registry import StreamRegistry

__all__ = [
    "ChannelMatch",
    "SecureChannelStore",
    "Stream",
    "StreamRegistry",
    "StreamState",
    "sse_headers",
]
