"""
Settings and loggers for the ff-record command line tools.

Library classes take explicit constructor arguments and never read these.
Values come from FF_RECORD_* environment variables or a local .env file.
"""

from functools import lru_cache
from pathlib import Path

from ff_logger import ConsoleLogger
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.console import Console

from . import __version__

console = Console()


class RecordSettings(BaseSettings):
    """CLI configuration using Pydantic Settings."""

    model_config = SettingsConfigDict(
        env_prefix="FF_RECORD_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Code generation output
    models_dir: Path = Path("src/models")
    migrations_dir: Path = Path("src/migrations")

    log_level: str = "INFO"


# Initialize the default logger with application context
default_logger = ConsoleLogger(
    name="default_logger",
    level="INFO",
    context={"app_name": "ff-record", "version": __version__},
)


@lru_cache
def get_settings() -> RecordSettings:
    """Get cached settings instance."""
    settings = RecordSettings()

    # Update logger configuration based on settings
    default_logger.level = settings.log_level.upper()

    return settings


@lru_cache(maxsize=128)
def get_logger(scope: str) -> ConsoleLogger:
    """Get a scoped logger for a CLI component, e.g. "generators"."""
    return ConsoleLogger(
        name=scope,
        level=get_settings().log_level.upper(),
        context={"app_name": "ff-record", "component": scope},
    )
