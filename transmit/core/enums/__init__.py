"""Core enums package."""

from transmit.core.enums.environment import Environment
from transmit.core.enums.error_code import ErrorCode

__all__ = ["Environment", "ErrorCode"]
