"""
Main FastAPI application entry point.

Mounts the transmit router under the configured prefix and ties the
broadcast coordinator to the application lifespan:
- Startup: subscribe to the replication topic
- Shutdown: close every stream and the transport

Run with:
    uvicorn transmit.main:app
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from transmit.core.config import get_settings
from transmit.core.container import get_transmit
from transmit.presentation.routers import router as transmit_router


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan context manager.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application lifetime.
    """
    transmit = app.dependency_overrides.get(get_transmit, get_transmit)()
    await transmit.start()

    yield

    await transmit.shutdown()


def create_app() -> FastAPI:
    """Build the FastAPI application from settings."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Server-push broadcast engine over Server-Sent Events",
        version=settings.app_version,
        lifespan=lifespan,
    )
    app.include_router(transmit_router, prefix=settings.transmit_route_prefix)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Health check endpoint for monitoring and load balancers."""
        return {"status": "healthy"}

    return app


app = create_app()
