"""
Client configuration using Pydantic Settings.
Ambient options (logging, HTTP timeout, token lifetime) are loaded from
environment variables with sensible defaults. The registry host and its
credential are never read from the environment.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from provisioning_service._version import __version__


class Settings(BaseSettings):
    """
    Client settings loaded from ``PROVISIONING_*`` environment variables.
    """

    model_config = SettingsConfigDict(
        env_prefix="PROVISIONING_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ==========================================================================
    # Logging
    # ==========================================================================
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # ==========================================================================
    # Transport
    # ==========================================================================
    request_timeout_seconds: float = Field(default=30.0, gt=0)
    user_agent: str = Field(default=f"provisioning-service-client/{__version__}")

    # ==========================================================================
    # Credentials
    # ==========================================================================
    sas_token_ttl_seconds: int = Field(
        default=3600,
        ge=60,
        description="Lifetime of shared access signatures derived from a connection string",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get cached client settings.

    Using lru_cache ensures settings are loaded once and reused,
    avoiding repeated environment variable parsing.
    """
    return Settings()
