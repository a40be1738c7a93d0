"""Application layer: the broadcast coordinator."""

from transmit.application.transmit import AuthorizationCallback, Transmit

__all__ = ["AuthorizationCallback", "Transmit"]
