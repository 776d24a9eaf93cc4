"""
Sinkswap Configuration Module.

Implements the Nested Settings Pattern: each concern lives in its own
sub-module with its own environment variable prefix.

Multi-Environment Support:
    Set `SINKSWAP_ENV` to one of: development, testing, staging, production
    The system will load .env files in this order (later overrides earlier):
    1. .env
    2. .env.local
    3. .env.{environment}
    4. .env.{environment}.local

Usage:
    from sinkswap.config import settings

    settings.logging.file   # "" when logging to stdout only
    settings.logging.level
"""

from functools import cached_property

from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import get_env_files
from .logging import LogFormat, LoggingSettings, LogLevel


class Settings(BaseSettings):
    """
    Composite settings aggregating the configuration domains.

    Environment-aware loading:
        Settings are loaded from multiple .env files based on SINKSWAP_ENV.
        See module docstring for file resolution order.
    """

    model_config = SettingsConfigDict(
        env_file=get_env_files(),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Composed sub-settings (each loads from its own env prefix)
    @cached_property
    def logging(self) -> LoggingSettings:
        return LoggingSettings(_env_file=get_env_files())


# Singleton instance
settings = Settings()

__all__ = [
    "Settings",
    "settings",
    "LoggingSettings",
    "LogLevel",
    "LogFormat",
    "get_env_files",
]
