"""Runtime configuration for the household calendar service.

Settings are read from environment variables (optionally loaded from a
``.env`` file via python-dotenv) into a pydantic model so that invalid values
fail loudly at startup rather than deep inside a request.

Recognised variables:
    HOUSEHOLD_DATABASE_URL: SQLAlchemy database URL.
    HOUSEHOLD_EXPANSION_CAP: Maximum dates enumerated per expansion or span.
    HOUSEHOLD_LOG_LEVEL: Root logging level name.
"""

import os
from functools import lru_cache

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator


ENV_PREFIX = "HOUSEHOLD_"


class Settings(BaseModel):
    """Validated service settings.

    Args:
        database_url: SQLAlchemy URL of the backing database.
        expansion_cap: Global safety cap on enumerated dates.
        log_level: Logging level name applied at startup.
    """

    database_url: str = Field(
        default="sqlite:///./household.db", description="SQLAlchemy database URL"
    )
    expansion_cap: int = Field(
        default=365, ge=1, description="Safety cap on enumerated dates"
    )
    log_level: str = Field(default="INFO", description="Root logging level")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, level: str) -> str:
        """Normalise and check the logging level name.

        Args:
            level: Level name from the environment.

        Returns:
            The upper-cased level name.

        Raises:
            ValueError: If the name is not a standard logging level.
        """
        normalised = level.strip().upper()
        if normalised not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {level}")
        return normalised


def load_settings() -> Settings:
    """Build settings from the process environment.

    Returns:
        A freshly validated Settings instance.
    """
    load_dotenv()
    values = {}
    for name in Settings.model_fields:
        raw = os.environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None:
            values[name] = raw
    return Settings(**values)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, loading them on first use."""
    return load_settings()
