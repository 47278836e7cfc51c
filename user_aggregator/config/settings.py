"""Application settings using Pydantic Settings for environment-based configuration."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SOURCE_URLS = [
    "https://randomuser.me/api/",
    "https://jsonplaceholder.typicode.com/users",
    "https://dummyjson.com/users",
    "https://reqres.in/api/users",
]


class Settings(BaseSettings):
    """
    Central configuration for the user aggregator.

    All settings can be overridden via environment variables.
    List values (e.g. SOURCE_URLS) are given as JSON arrays.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sources, in declaration order
    source_urls: list[str] = Field(default_factory=lambda: list(DEFAULT_SOURCE_URLS))

    # Output defaults (prompted for when unset)
    output_dir: str | None = None
    output_format: Literal["json", "csv"] | None = None

    # HTTP
    http_timeout_seconds: float = Field(default=30.0, gt=0.0, le=600.0)
    user_agent: str = "user-aggregator/0.1.0"

    @field_validator("output_format", mode="before")
    @classmethod
    def lowercase_format(cls, v: str | None) -> str | None:
        if isinstance(v, str):
            return v.strip().lower() or None
        return v

    @field_validator("source_urls")
    @classmethod
    def strip_source_urls(cls, v: list[str]) -> list[str]:
        """Drop blank entries and surrounding whitespace."""
        return [url.strip() for url in v if url and url.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are loaded only once.
    Clear cache with get_settings.cache_clear() if needed.
    """
    return Settings()
