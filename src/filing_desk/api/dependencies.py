"""FastAPI dependency injection providers."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from filing_desk.api.database import Database, get_database
from filing_desk.core.config import PipelineConfig, get_pipeline_config
from filing_desk.integrations.anthropic.client import (
    AnthropicFormattingClient,
    FormattingClient,
)
from filing_desk.repositories.contact import ContactRepository
from filing_desk.repositories.correspondence import CorrespondenceRepository
from filing_desk.services.formatter import CorrespondenceFormatter
from filing_desk.services.pipeline import CorrespondencePipeline

# Formatting client shared by all requests (set during app startup)
_formatting_client: FormattingClient | None = None


def set_formatting_client(client: FormattingClient | None) -> None:
    """Set the formatting client.

    Args:
        client: Client to use, or None to fall back to the Anthropic client.
    """
    global _formatting_client
    _formatting_client = client


def get_db() -> Database:
    """Get the database instance."""
    return get_database()


async def get_db_session(
    db: Annotated[Database, Depends(get_db)],
) -> AsyncGenerator[AsyncSession, None]:
    """Get an async database session.

    Yields:
        AsyncSession that is automatically closed on exit.
    """
    async with db.session() as session:
        yield session


def get_config() -> PipelineConfig:
    """Get pipeline configuration."""
    return get_pipeline_config()


def get_formatting_client(
    config: Annotated[PipelineConfig, Depends(get_config)],
) -> FormattingClient:
    """Get the formatting client, building the Anthropic client on first use."""
    global _formatting_client
    if _formatting_client is None:
        _formatting_client = AnthropicFormattingClient(config)
    return _formatting_client


def get_formatter(
    client: Annotated[FormattingClient, Depends(get_formatting_client)],
    config: Annotated[PipelineConfig, Depends(get_config)],
) -> CorrespondenceFormatter:
    """Get a formatter bound to the shared formatting client."""
    return CorrespondenceFormatter(client, self_aliases=config.self_aliases)


def get_pipeline(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    formatter: Annotated[CorrespondenceFormatter, Depends(get_formatter)],
    config: Annotated[PipelineConfig, Depends(get_config)],
) -> CorrespondencePipeline:
    """Get a pipeline wired to request-scoped repositories."""
    return CorrespondencePipeline(
        formatter=formatter,
        store=CorrespondenceRepository(session),
        contacts=ContactRepository(session),
        self_aliases=config.self_aliases,
    )


# Type aliases for dependency injection
DbDep = Annotated[Database, Depends(get_db)]
FormatterDep = Annotated[CorrespondenceFormatter, Depends(get_formatter)]
PipelineDep = Annotated[CorrespondencePipeline, Depends(get_pipeline)]
