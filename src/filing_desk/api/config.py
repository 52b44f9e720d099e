"""HTTP service settings (``FILING_DESK_*`` environment variables)."""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ASYNC_DRIVER_PREFIX = "postgresql+asyncpg://"

# URL schemes rewritten to the asyncpg driver
_SYNC_SCHEMES = ("postgres://", "postgresql://", "postgresql+psycopg2://")


class Environment(StrEnum):
    """Where the service runs."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


class APIConfig(BaseSettings):
    """Settings for the filing-desk HTTP service.

    Example:
        FILING_DESK_DATABASE_URL=postgres://desk@db/filing_desk
        FILING_DESK_ENVIRONMENT=production
    """

    model_config = SettingsConfigDict(
        env_prefix="FILING_DESK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="127.0.0.1", description="Interface to bind")
    port: int = Field(default=8080, ge=1, le=65535)
    environment: Environment = Environment.DEVELOPMENT

    database_url: str = Field(
        default=f"{ASYNC_DRIVER_PREFIX}filing_desk:filing_desk@localhost:5432/filing_desk",
        description="Correspondence store; plain Postgres URLs are switched to asyncpg",
    )
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    pool_size: int = Field(default=5, ge=1, le=100)
    pool_max_overflow: int = Field(default=10, ge=0, le=100)
    pool_recycle_seconds: int = Field(default=1800, ge=60)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    @field_validator("database_url")
    @classmethod
    def use_async_driver(cls, v: str) -> str:
        """Rewrite synchronous Postgres URLs to the asyncpg driver."""
        for scheme in _SYNC_SCHEMES:
            if v.startswith(scheme):
                return ASYNC_DRIVER_PREFIX + v[len(scheme) :]
        return v

    @property
    def is_production(self) -> bool:
        return self.environment is Environment.PRODUCTION

    @property
    def docs_enabled(self) -> bool:
        """Interactive docs are served in development only."""
        return self.environment is Environment.DEVELOPMENT

    @property
    def log_json(self) -> bool:
        return self.log_format == "json"


@lru_cache
def get_api_config() -> APIConfig:
    """Get the cached service settings."""
    return APIConfig()
