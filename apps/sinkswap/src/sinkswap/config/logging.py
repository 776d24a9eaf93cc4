"""
Logging Configuration.
"""

from enum import Enum

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .environment import get_env_files


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogFormat(str, Enum):
    CONSOLE = "console"
    JSON = "json"


class LoggingSettings(BaseSettings):
    """Logging infrastructure configuration.

    ``file`` is the one field the sink registry re-reads on every reload.
    An empty string disables the log file and leaves output on stdout only.
    """

    model_config = SettingsConfigDict(
        env_prefix="SINKSWAP_LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    level: LogLevel = Field(default=LogLevel.INFO, description="Log level")
    format: LogFormat = Field(default=LogFormat.CONSOLE, description="Output format for stdout and the log file")
    file: str = Field(default="", description="Log file path, empty means stdout only")
    console_timestamp_format: str = Field(
        default="%Y-%m-%d %H:%M:%S",
        description="Console timestamp format",
    )
    console_level_width: int = Field(default=8, description="Console level column width")
    console_logger_width: int = Field(default=32, description="Console component column width")
    console_separator: str = Field(default=" | ", description="Console column separator")

    def refresh(self) -> None:
        """Re-read environment variables and env files into this instance.

        Updates happen in place so every holder of this object (the sink
        registry in particular) sees the new values on its next read.
        """
        fresh = type(self)(_env_file=get_env_files())
        for name in type(self).model_fields:
            setattr(self, name, getattr(fresh, name))
