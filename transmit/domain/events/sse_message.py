"""Server-Sent Events (SSE) message and wire encoder.

SSE messages are the wire format sent to clients. They are distinct from
domain events, which represent internal occurrences.

Wire Format (WHATWG event stream), fields in this order, each optional:
    : <comment>
    event: <event_name>
    id: <event_id>
    retry: <reconnect_ms>
    data: <line 1>
    data: <line N>
    <blank line>

Reference:
    - https://html.spec.whatwg.org/multipage/server-sent-events.html
"""

import json
import re
from dataclasses import dataclass
from typing import Any

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def data_lines(data: Any) -> str:
    """Render a data value as ``data:`` lines.

    Strings are split on any line-ending convention (CRLF, CR, LF) and each
    line is emitted verbatim, so N input lines produce N ``data:`` lines.
    Any other value is first serialized to compact JSON.

    Args:
        data: String or JSON serializable value.

    Returns:
        Concatenated ``data: <line>\\n`` lines.
    """
    if not isinstance(data, str):
        data = json.dumps(data, separators=(",", ":"))
    return "".join(f"data: {line}\n" for line in _LINE_BREAK.split(data))


@dataclass(frozen=True, kw_only=True, slots=True)
class SSEMessage:
    """Single outbound SSE message.

    Immutable after creation (frozen dataclass).

    Attributes:
        data: Payload. Strings are sent as-is, other values as JSON.
        comment: Comment line (ignored by EventSource clients).
        event: Event name (``event:`` field).
        id: Event id (``id:`` field, sets Last-Event-ID on the client).
        retry: Reconnection delay hint in milliseconds.

    Example:
        >>> SSEMessage(data={"channel": "news", "payload": {"text": "hi"}}).to_sse_format()
        'data: {"channel":"news","payload":{"text":"hi"}}\\n\\n'
    """

    data: Any = None
    comment: str | None = None
    event: str | None = None
    id: str | None = None
    retry: int | None = None

    def to_sse_format(self) -> str:
        """Serialize to SSE wire format.

        Returns:
            SSE-formatted string ready for streaming.

        Note:
            - Empty comment/event/id strings are omitted
            - ``retry`` is emitted whenever set, zero included
            - ``data`` is omitted when None or the empty string; empty
              containers are still sent (``data: {}``)
            - Output always ends with exactly one blank line
        """
        parts: list[str] = []
        if self.comment:
            parts.append(f": {self.comment}\n")
        if self.event:
            parts.append(f"event: {self.event}\n")
        if self.id:
            parts.append(f"id: {self.id}\n")
        if self.retry is not None:
            parts.append(f"retry: {self.retry}\n")
        if self.data is not None and self.data != "":
            parts.append(data_lines(self.data))
        parts.append("\n")
        return "".join(parts)

    def encode(self) -> bytes:
        """Encode to UTF-8 bytes for the response body."""
        return self.to_sse_format().encode("utf-8")
