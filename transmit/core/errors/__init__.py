"""Core errors package.

Exports all core-level error classes for convenient importing.

Usage:
    from transmit.core.errors import DomainError, ValidationError
"""

from transmit.core.errors.common_errors import AuthorizationError, ValidationError
from transmit.core.errors.domain_error import DomainError
from transmit.core.errors.transmit_error import (
    InvalidChannelPatternError,
    StreamBackpressureError,
    TransmitError,
)

__all__ = [
    "DomainError",
    "ValidationError",
    "AuthorizationError",
    "TransmitError",
    "InvalidChannelPatternError",
    "StreamBackpressureError",
]
