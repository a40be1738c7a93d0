"""Centralized constants for internal implementation details.

This module contains constants that are internal implementation details,
NOT environment-specific configuration. For environment-specific settings,
use `transmit/core/config.py` instead.

Categories:
- SSE framing: priming and heartbeat frames, response headers
- Replication: default pub/sub topic
- Limits: per-stream queue bounds
"""

# =============================================================================
# SSE (Server-Sent Events)
# =============================================================================

PRIMING_FRAME: bytes = b":ok\n\n"
"""First frame written to every stream.

Some EventSource implementations (Safari) do not fire ``open`` until the
first byte arrives.
"""

PING_FRAME: bytes = b": ping\n\n"
"""Keep-alive comment frame sent to idle streams."""

SSE_RESPONSE_HEADERS: dict[str, str] = {
    "Cache-Control": "private, no-cache, no-store, must-revalidate, max-age=0, no-transform",
    "Connection": "keep-alive",
    "Content-Type": "text/event-stream",
    "Expire": "0",
    "Pragma": "no-cache",
    # https://www.nginx.com/resources/wiki/start/topics/examples/x-accel/#x-accel-buffering
    "X-Accel-Buffering": "no",
}
"""Headers sent (and flushed) before the priming frame."""

SSE_MEDIA_TYPE: str = "text/event-stream"
"""Content type of the event stream response."""


# =============================================================================
# Replication
# =============================================================================

TRANSPORT_CHANNEL_DEFAULT: str = "transmit::broadcast"
"""Default pub/sub topic used to replicate broadcasts between instances."""


# =============================================================================
# Limits
# =============================================================================

STREAM_MAX_QUEUE_SIZE_DEFAULT: int = 1000
"""Default number of undelivered frames buffered per stream."""

PING_INTERVAL_DISABLED: float = 0
"""Ping interval value that disables keep-alive comments."""
