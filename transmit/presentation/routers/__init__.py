"""HTTP routers."""

from transmit.presentation.routers.transmit import router

__all__ = ["router"]
