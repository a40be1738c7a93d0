"""
Configuration management using Pydantic Settings.

This module provides type-safe, validated configuration loading from environment
variables.

Architecture:
- Flat Settings structure (no nesting)
- All config loaded from environment variables
- Type validation via Pydantic

Usage:
    from transmit.core.config import get_settings

    settings = get_settings()
    if settings.redis_url is None:
        # Single-instance mode (in-memory replication transport)
        ...
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from transmit.core.constants import (
    PING_INTERVAL_DISABLED,
    STREAM_MAX_QUEUE_SIZE_DEFAULT,
    TRANSPORT_CHANNEL_DEFAULT,
)
from transmit.core.enums import Environment


class Settings(BaseSettings):
    """
    Main application settings (flat structure).

    Configuration precedence:
        1. Environment variables
        2. Default values

    Returns:
        Settings: Application configuration loaded from environment.
    """

    # Environment detection
    environment: Environment = Field(
        default=Environment.DEVELOPMENT,
        description="Application environment (development, testing, ci, production)",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    # Application metadata
    app_name: str = Field(
        default="Transmit",
        description="Application name",
    )
    app_version: str = Field(
        default="0.1.0",
        description="Application version",
    )

    # Replication transport (Redis pub/sub)
    redis_url: str | None = Field(
        default=None,
        description="Redis connection URL (e.g., redis://host:port/db). "
        "When unset, broadcasts are not replicated to other instances.",
    )
    transmit_transport_channel: str = Field(
        default=TRANSPORT_CHANNEL_DEFAULT,
        description="Pub/sub topic used to replicate broadcasts between instances",
    )

    # HTTP surface
    transmit_route_prefix: str = Field(
        default="/__transmit",
        description="Route prefix for the events/subscribe/unsubscribe endpoints",
    )

    # Streams
    transmit_ping_interval_seconds: float = Field(
        default=PING_INTERVAL_DISABLED,
        description="Seconds of inactivity before a keep-alive comment is sent (0 disables)",
    )
    transmit_max_queue_size: int = Field(
        default=STREAM_MAX_QUEUE_SIZE_DEFAULT,
        description="Maximum undelivered frames buffered per stream",
    )

    model_config = SettingsConfigDict(
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("transmit_ping_interval_seconds")
    @classmethod
    def validate_ping_interval(cls, v: float) -> float:
        """
        Validate ping interval is not negative.

        Args:
            v: Interval in seconds.

        Returns:
            float: Validated interval.

        Raises:
            ValueError: If interval is negative.
        """
        if v < 0:
            raise ValueError("transmit_ping_interval_seconds must be >= 0")
        return v

    @field_validator("transmit_max_queue_size")
    @classmethod
    def validate_max_queue_size(cls, v: int) -> int:
        """
        Validate queue size is positive.

        Args:
            v: Maximum queued frames per stream.

        Returns:
            int: Validated size.

        Raises:
            ValueError: If size is not positive.
        """
        if v < 1:
            raise ValueError("transmit_max_queue_size must be >= 1")
        return v

    @field_validator("transmit_route_prefix")
    @classmethod
    def validate_route_prefix(cls, v: str) -> str:
        """Normalize prefix to a leading slash without a trailing one."""
        return "/" + v.strip("/")

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        """Check if running in testing or CI environment."""
        return self.environment in (Environment.TESTING, Environment.CI)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Application settings singleton.
    """
    return Settings()
