"""Runtime configuration based on environment variables."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AnyHttpUrl, BaseModel, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseModel):
    max_entries: int = Field(default=50, ge=1, le=10_000)
    ttl_seconds: float = Field(default=300.0, gt=0)


class RecentSettings(BaseModel):
    max_items: int = Field(default=10, ge=1, le=100)
    storage_key: str = Field(default="RecentSearches", min_length=1, max_length=128)


class DatabaseSettings(BaseModel):
    dsn: str = Field(
        default="sqlite+aiosqlite:///mapsearch.db",
        description="SQLAlchemy async DSN for the blob store.",
    )
    echo: bool = False


class ProviderSettings(BaseModel):
    mapbox_access_token: SecretStr | None = None
    base_url: AnyHttpUrl = Field(default="https://api.mapbox.com/search/searchbox/v1/")
    request_timeout_seconds: float = Field(default=30.0, gt=0, le=120)
    result_limit: int = Field(default=10, ge=1, le=10)
    language: str = "en"
    country: str | None = None
    max_attempts: int = Field(default=3, ge=1, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0)

    @field_validator("country", mode="before")
    @classmethod
    def _empty_str_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class SearchSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="MAPSEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__"
    )

    environment: Literal["dev", "staging", "prod"] = "dev"
    default_language: str = "en"
    debounce_delay_seconds: float = Field(default=0.15, ge=0, le=5)
    max_suggestions: int = Field(default=3, ge=0, le=20)

    cache: CacheSettings = Field(default_factory=CacheSettings)
    recent: RecentSettings = Field(default_factory=RecentSettings)
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    provider: ProviderSettings = Field(default_factory=ProviderSettings)


@lru_cache
def get_settings() -> SearchSettings:
    """Return cached settings instance."""

    return SearchSettings()


__all__ = [
    "CacheSettings",
    "DatabaseSettings",
    "ProviderSettings",
    "RecentSettings",
    "SearchSettings",
    "get_settings",
]
