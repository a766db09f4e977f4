"""Application settings using Pydantic."""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Pipeline configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="CLAIMIFY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Context windows (preceding / following sentences)
    selection_preceding: int = Field(default=5, ge=0)
    selection_following: int = Field(default=5, ge=0)
    disambiguation_preceding: int = Field(default=5, ge=0)
    disambiguation_following: int = Field(default=0, ge=0)
    baseline_preceding: int = Field(default=5, ge=0)
    baseline_following: int = Field(default=5, ge=0)

    # Processing Configuration
    max_concurrency: int = Field(default=1, ge=1)

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
