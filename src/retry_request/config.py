"""
Configuration settings for retry-request.

All settings are loaded from environment variables prefixed with
``RETRY_REQUEST_`` and fall back to sensible defaults.
Use .env file for local development.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Library settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="RETRY_REQUEST_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Logging ===
    LOG_LEVEL: str = "INFO"
    ENVIRONMENT: str = "development"

    # === Retry & Backoff ===
    RETRIES: int = Field(default=2, ge=0)
    BACKOFF_BASE_MS: int = Field(default=1000, ge=0)  # doubled per attempt
    BACKOFF_JITTER_MS: int = Field(default=1000, ge=1)  # upper bound (exclusive)

    # === Default HTTP requester ===
    HTTP_TIMEOUT: float = 30.0  # seconds, enforced by httpx, not by the retry loop
    HTTP_FOLLOW_REDIRECTS: bool = False

    # === Streaming ===
    STREAM_BUFFER_EVENTS: int = Field(default=64, ge=1)  # unread events before the transport is paused

    # === Monitoring ===
    METRICS_ENABLED: bool = True


# Global settings instance
settings = Settings()
