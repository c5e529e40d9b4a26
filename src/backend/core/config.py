"""
Application configuration using Pydantic Settings.

All configuration is loaded from environment variables or a local .env file.
"""

from functools import lru_cache

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Application
    APP_NAME: str = "LivePulse"
    APP_ENV: str = "development"
    DEBUG: bool = False

    # Database - SQLite for local runs, PostgreSQL (asyncpg) in deployment
    DATABASE_URL: str = "sqlite+aiosqlite:///./livepulse.db"
    DATABASE_ECHO: bool = False

    # Shared secrets (deployment-time configuration, never stored)
    # Empty ADMIN_SECRET disables the admin reset endpoint entirely
    ADMIN_SECRET: str = ""
    IP_SALT: str = ""

    # Admission rules
    MAX_VOTES_PER_NETWORK: int = 3

    # Live dashboard stream
    STREAM_POLL_INTERVAL_SECONDS: float = 1.0
    STREAM_KEEPALIVE_SECONDS: float = 15.0
    STATS_CACHE_ENABLED: bool = True

    # Questions seeded into an empty database at startup
    SEED_QUESTIONS_ON_STARTUP: bool = True
    DEFAULT_QUESTIONS: list[str] = [
        "How much did you enjoy the talk?",
        "Should new SaaS products start out as a monolith?",
        "Will you be vibe coding more often from now on?",
    ]

    # CORS - stored as comma-separated string to avoid pydantic-settings JSON parsing issues
    CORS_ORIGINS: str = "http://localhost:3000"

    @field_validator("MAX_VOTES_PER_NETWORK")
    @classmethod
    def validate_network_quota(cls, v: int) -> int:
        """A quota below one would reject every participant."""
        if v < 1:
            raise ValueError("MAX_VOTES_PER_NETWORK must be at least 1")
        return v

    @field_validator("STREAM_POLL_INTERVAL_SECONDS", "STREAM_KEEPALIVE_SECONDS")
    @classmethod
    def validate_positive_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("stream intervals must be positive")
        return v

    @property
    def cors_origins_list(self) -> list[str]:
        """Get CORS origins as a list."""
        import json

        try:
            return json.loads(self.CORS_ORIGINS)
        except json.JSONDecodeError:
            return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
