"""
Converge Settings - Configuration management using Pydantic Settings.

Loads configuration from environment variables and .env files.
"""

from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Find project root (where .env file is located)
PROJECT_ROOT = Path(__file__).parent.parent

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class ConvergeSettings(BaseSettings):
    """
    Converge configuration settings.

    Settings are loaded from:
    1. Environment variables (highest priority)
    2. .env file in current directory
    3. Default values (lowest priority)
    """

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_prefix="CV_",  # All Converge env vars must start with CV_
    )

    # Logging Configuration
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR) (env: CV_LOG_LEVEL)",
    )

    # External tools
    brew_executable: str = Field(
        default="brew",
        description="Homebrew executable used to probe and install packages (env: CV_BREW_EXECUTABLE)",
    )

    defaults_executable: str = Field(
        default="defaults",
        description="macOS defaults executable for preference reads/writes (env: CV_DEFAULTS_EXECUTABLE)",
    )

    # Download Configuration
    fetch_timeout_seconds: float = Field(
        default=60.0,
        description="Timeout for a single download attempt (env: CV_FETCH_TIMEOUT_SECONDS)",
    )

    fetch_max_retries: int = Field(
        default=3,
        ge=0,
        description="Retries after a transient download failure (env: CV_FETCH_MAX_RETRIES)",
    )

    cache_dir: Path = Field(
        default=Path.home() / "Library" / "Caches" / "converge",
        description="Directory for downloaded archives and installers (env: CV_CACHE_DIR)",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(LOG_LEVELS)}, got {value!r}"
            )
        return level


# Global settings instance
_settings: ConvergeSettings | None = None


def get_settings() -> ConvergeSettings:
    """
    Get the global settings instance.

    Creates the settings instance on first call, then returns cached instance.

    Returns:
        ConvergeSettings instance
    """
    global _settings
    if _settings is None:
        _settings = ConvergeSettings()
    return _settings


def reload_settings() -> ConvergeSettings:
    """
    Reload settings from environment/files.

    Useful for testing or when .env file changes.

    Returns:
        Fresh ConvergeSettings instance
    """
    global _settings
    _settings = ConvergeSettings()
    return _settings
