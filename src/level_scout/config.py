# ABOUTME: Application configuration using Pydantic Settings for environment variables
# ABOUTME: Provides type-safe access to API keys, rate limits, retry policy and logging config

from pathlib import Path
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Config(BaseSettings):
    """Application configuration with environment variable support."""

    model_config = SettingsConfigDict(
        env_prefix="LEVEL_SCOUT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",  # Ignore unknown environment variables
    )

    # External service credentials and endpoints
    youtube_api_key: str = Field(default="", description="YouTube Data API v3 key for video metadata")
    youtube_base_url: str = Field(
        default="https://www.googleapis.com/youtube/v3", description="Base URL of the YouTube Data API"
    )
    openai_api_key: str = Field(default="", description="OpenAI API key for semantic level extraction")
    openai_model: str = Field(default="gpt-4o-mini", description="Model used for semantic level extraction")
    gdbrowser_base_url: str = Field(default="https://gdbrowser.com/api", description="GDBrowser API base URL")
    request_timeout: float = Field(default=10.0, description="Per-request HTTP timeout in seconds")

    # Rate limiting (one limiter per external dependency)
    rate_limit_window_seconds: float = Field(default=60.0, description="Reservoir refill period in seconds")
    youtube_rate_limit_per_minute: int = Field(default=50, description="YouTube calls allowed per window")
    youtube_max_concurrent: int = Field(default=5, description="Concurrent in-flight YouTube calls")
    youtube_min_interval: float = Field(default=0.0, description="Minimum seconds between YouTube calls")
    openai_rate_limit_per_minute: int = Field(default=20, description="OpenAI calls allowed per window")
    openai_max_concurrent: int = Field(default=3, description="Concurrent in-flight OpenAI calls")
    openai_min_interval: float = Field(default=0.0, description="Minimum seconds between OpenAI calls")
    gdbrowser_rate_limit_per_minute: int = Field(default=30, description="GDBrowser calls allowed per window")
    gdbrowser_max_concurrent: int = Field(default=2, description="Concurrent in-flight GDBrowser calls")
    gdbrowser_min_interval: float = Field(
        default=2.0, description="Minimum seconds between GDBrowser calls to respect their servers"
    )

    # Pipeline tuning
    description_max_chars: int = Field(
        default=2000, description="Video description length sent to the model before truncation"
    )
    retry_attempts: int = Field(default=3, description="Attempts for level lookups on transient failures")
    retry_base_delay: float = Field(default=1.0, description="Initial backoff delay in seconds, doubled per attempt")
    max_videos_per_message: int = Field(default=3, description="Videos handled per inbound message, extras dropped")
    max_pattern_candidates: int | None = Field(
        default=None, description="Cap on pattern-stage candidates validated per run (None means unbounded)"
    )

    # Logging Configuration
    log_mode: Literal["interactive", "production"] = Field(default="interactive", description="Logging output mode")

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO", description="Logging verbosity level"
    )

    log_file: Path | None = Field(default=None, description="Custom log file path (overrides default)")


# Global config instance - lazy loaded when first accessed
_config_instance: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance.

    Creates the config on first access, subsequent calls return the same instance.

    Returns:
        Config: The application configuration instance
    """
    global _config_instance
    if _config_instance is None:
        _config_instance = Config()
    return _config_instance


def reload_config() -> Config:
    """Reload configuration from environment variables.

    Useful for testing or when environment variables change at runtime.

    Returns:
        Config: A fresh configuration instance
    """
    global _config_instance
    _config_instance = Config()
    return _config_instance
