"""Exceptions raised for programmer errors and per-stream delivery faults.

Expected outcomes (denied subscription, unknown stream id) are booleans or
Result values, never exceptions. These exceptions cover misuse that should
surface loudly (bad channel pattern) and delivery faults that fan-out
catches per subscriber.
"""


class TransmitError(Exception):
    """Base exception for transmit operations."""

    pass


class InvalidChannelPatternError(TransmitError):
    """Channel pattern could not be compiled."""

    def __init__(self, pattern: str, reason: str) -> None:
        super().__init__(f"Invalid channel pattern '{pattern}': {reason}")
        self.pattern = pattern
        self.reason = reason


class StreamBackpressureError(TransmitError):
    """Stream queue is full; the client is not draining frames."""

    def __init__(self, uid: str, queue_size: int) -> None:
        super().__init__(f"Stream '{uid}' queue is full ({queue_size} frames)")
        self.uid = uid
        self.queue_size = queue_size
