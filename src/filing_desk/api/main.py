"""Application factory for the filing-desk HTTP service."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI

from filing_desk import __version__
from filing_desk.api.config import APIConfig, get_api_config
from filing_desk.api.database import Database, set_database
from filing_desk.api.dependencies import set_formatting_client
from filing_desk.api.middleware import setup_error_handlers, setup_logging
from filing_desk.api.routes import contacts_router, correspondence_router, health_router
from filing_desk.core.config import get_pipeline_config
from filing_desk.integrations.anthropic.client import AnthropicFormattingClient

logger = structlog.get_logger(__name__)

ROUTERS = (health_router, correspondence_router, contacts_router)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Connect the store and the formatting client for the app's lifetime."""
    config: APIConfig = app.state.config
    await logger.ainfo(
        "service_starting",
        environment=str(config.environment),
        host=config.host,
        port=config.port,
    )

    db = Database.from_config(config)
    await db.connect()
    set_database(db)
    app.state.db = db

    pipeline_config = get_pipeline_config()
    if not pipeline_config.has_anthropic:
        # Formatting requests fail individually; everything else still works
        await logger.awarning("formatting_service_unconfigured")
    set_formatting_client(AnthropicFormattingClient(pipeline_config))

    try:
        yield
    finally:
        set_formatting_client(None)
        set_database(None)
        await db.disconnect()
        await logger.ainfo("service_stopped")


def create_app(config: APIConfig | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        config: Service settings; read from the environment when omitted.
    """
    config = config or get_api_config()
    docs = config.docs_enabled

    app = FastAPI(
        title="filing-desk",
        summary="Format, attribute and file pasted correspondence",
        version=__version__,
        docs_url="/docs" if docs else None,
        redoc_url="/redoc" if docs else None,
        openapi_url="/openapi.json" if docs else None,
        lifespan=lifespan,
    )
    app.state.config = config

    setup_error_handlers(app)
    setup_logging(app, config)
    for router in ROUTERS:
        app.include_router(router)

    return app


def run_server(config: APIConfig | None = None) -> None:
    """Serve the app factory with uvicorn."""
    import uvicorn

    config = config or get_api_config()
    uvicorn.run(
        "filing_desk.api.main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.environment == "development",
        log_level=config.log_level.lower(),
    )
