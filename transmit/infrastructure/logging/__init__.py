"""Logging adapters implementing LoggerProtocol."""

from transmit.infrastructure.logging.console_adapter import ConsoleAdapter

__all__ = ["ConsoleAdapter"]
