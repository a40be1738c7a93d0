"""Deployment environment, read from ENVIRONMENT.

Only DEVELOPMENT changes behavior: logs are rendered for humans there and
as JSON everywhere else.
"""

from enum import StrEnum


class Environment(StrEnum):
    """Where the process runs."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    CI = "ci"
    PRODUCTION = "production"
