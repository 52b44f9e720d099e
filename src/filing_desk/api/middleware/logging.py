"""Per-request log context and access logging."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING
from uuid import uuid4

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from asgi_correlation_id.context import correlation_id
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from filing_desk.core.logging import configure_structlog

if TYPE_CHECKING:
    from fastapi import FastAPI
    from starlette.requests import Request
    from starlette.responses import Response

    from filing_desk.api.config import APIConfig

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_ID_HEADER = "X-Correlation-ID"

logger = structlog.get_logger(__name__)


def _elapsed_ms(started: float) -> float:
    return round((time.perf_counter() - started) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds request and correlation IDs to every event logged during a request.

    Handlers and services log normally; ``merge_contextvars`` adds the IDs.
    Request bodies are never logged since they carry pasted correspondence.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            correlation_id=correlation_id.get(),
            method=request.method,
            path=request.url.path,
        )
        started = time.perf_counter()
        await logger.ainfo("request_received")

        try:
            response = await call_next(request)
        except Exception as exc:
            await logger.aerror(
                "request_errored", duration_ms=_elapsed_ms(started), error=str(exc)
            )
            raise

        await logger.ainfo(
            "request_handled",
            status_code=response.status_code,
            duration_ms=_elapsed_ms(started),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def setup_logging(app: FastAPI, config: APIConfig) -> None:
    """Configure structlog and install the logging middleware."""
    configure_structlog(json_format=config.log_json, log_level=config.log_level)

    # Starlette runs the last added middleware first: correlation ID before logging
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name=CORRELATION_ID_HEADER,
        generator=lambda: uuid4().hex,
    )
