"""Pipeline configuration using pydantic-settings."""

from __future__ import annotations

from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class PipelineConfig(BaseSettings):
    """Formatting-service and matching configuration loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Formatting service
    anthropic_api_key: str | None = Field(default=None, description="Anthropic API key")
    anthropic_model: str = Field(
        default="claude-sonnet-4-20250514", description="Model used for formatting"
    )
    anthropic_max_tokens: int = Field(default=4096, ge=256, le=64000)
    anthropic_temperature: float = Field(default=0.0, ge=0.0, le=1.0)
    anthropic_timeout: float | None = Field(
        default=None, gt=0, description="Request timeout in seconds (None = client default)"
    )

    # Contact matching
    self_aliases: Annotated[list[str], NoDecode] = Field(
        default_factory=list,
        description="First-person aliases (e.g. the user's first name) that never match a contact",
    )

    @field_validator("self_aliases", mode="before")
    @classmethod
    def split_aliases(cls, v: object) -> object:
        """Accept a comma-separated string as well as a list."""
        if isinstance(v, str):
            return [part.strip() for part in v.split(",") if part.strip()]
        return v

    @property
    def has_anthropic(self) -> bool:
        """Check if formatting-service credentials are configured."""
        return bool(self.anthropic_api_key)


@lru_cache
def get_pipeline_config() -> PipelineConfig:
    """Get cached pipeline configuration instance."""
    return PipelineConfig()
