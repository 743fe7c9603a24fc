"""
Configuration management for the Entity Map library.

Uses pydantic-settings to load configuration from environment variables
with sensible defaults for development.

Only ambient concerns (logging and diagnostics) live here. The shape of an
individual map (cardinality-many attributes, index field, aggregator) is
always carried by the EntityMap value itself.
"""

import logging

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    # Application
    APP_NAME: str = "Entity Map"
    APP_VERSION: str = "0.1.0"

    # ==========================================================================
    # Logging Configuration
    # ==========================================================================

    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True  # Structured JSON output; plain text when False
    LOG_SERVICE_NAME: str = "entitymap"  # "service" field on JSON log lines
    TESTING: bool = False  # Simplified text format for pytest runs

    # ==========================================================================
    # Projection Diagnostics
    # ==========================================================================

    # Log (DEBUG) each entity the aggregator cannot represent
    LOG_DROPPED_AGGREGATES: bool = True
    # Log (WARNING) when two entities resolve to the same index key
    LOG_INDEX_COLLISIONS: bool = True

    model_config = SettingsConfigDict(
        env_prefix="ENTITYMAP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @field_validator("LOG_LEVEL", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the level name and reject names logging doesn't know."""
        level = str(v).strip().upper()
        if not isinstance(logging.getLevelName(level), int):
            raise ValueError(f"Unknown log level: {v}")
        return level


# Global settings instance
settings = Settings()
