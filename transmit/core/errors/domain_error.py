"""Expected failures carried as data.

A DomainError is returned inside ``Failure`` or rendered by the HTTP layer
as problem details. It is never raised; misuse of the API (bad channel
patterns, overflowing streams) raises a TransmitError instead.
"""

from dataclasses import dataclass

from transmit.core.enums import ErrorCode


@dataclass(frozen=True, slots=True, kw_only=True)
class DomainError:
    """Base of the returned error values (not an Exception).

    Attributes:
        code: Machine-readable code, also used in the problem ``type`` URN.
        message: Human-readable explanation.
        details: Extra context for logs (e.g. the JSON decoder message).
    """

    code: ErrorCode
    message: str
    details: dict[str, str] | None = None

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"
