"""Exception handlers turning every failure into Problem Details."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from http import HTTPStatus
from typing import Any

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from filing_desk.api.exceptions import (
    APIError,
    InvalidSubmissionError,
    ProblemDetail,
    api_error_from_domain,
)
from filing_desk.core.errors import FilingDeskError

logger = structlog.get_logger(__name__)

PROBLEM_JSON = "application/problem+json"


def problem_response(problem: ProblemDetail) -> JSONResponse:
    return JSONResponse(problem.to_dict(), status_code=problem.status, media_type=PROBLEM_JSON)


async def handle_api_error(request: Request, exc: APIError) -> JSONResponse:
    await logger.awarning(
        "request_rejected",
        status=exc.status_code,
        problem=exc.type_uri,
        detail=exc.detail,
        path=request.url.path,
    )
    return problem_response(exc.problem)


async def handle_domain_error(request: Request, exc: FilingDeskError) -> JSONResponse:
    """Domain errors a route did not translate itself."""
    return await handle_api_error(request, api_error_from_domain(exc))


async def handle_http_exception(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    try:
        title = HTTPStatus(exc.status_code).phrase
    except ValueError:
        title = "HTTP Error"
    detail = exc.detail if isinstance(exc.detail, str) else None
    await logger.awarning("http_error", status=exc.status_code, path=request.url.path)
    return problem_response(
        ProblemDetail(type="/errors/http", title=title, status=exc.status_code, detail=detail)
    )


async def handle_request_validation(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """List each failing field as ``{field, message, type}``."""
    errors = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ())) or "request",
            "message": error.get("msg", ""),
            "type": error.get("type", "unknown"),
        }
        for error in exc.errors()
    ]
    await logger.awarning(
        "request_invalid", error_count=len(errors), path=request.url.path
    )
    return problem_response(InvalidSubmissionError("Request validation failed", errors).problem)


async def handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    # Internal messages stay in the log
    await logger.aexception(
        "unhandled_exception", exc_type=type(exc).__name__, path=request.url.path
    )
    return problem_response(APIError("An unexpected error occurred").problem)


HANDLERS: tuple[tuple[type[Exception], Callable[[Request, Any], Awaitable[JSONResponse]]], ...] = (
    (APIError, handle_api_error),
    (FilingDeskError, handle_domain_error),
    (StarletteHTTPException, handle_http_exception),
    (RequestValidationError, handle_request_validation),
    (Exception, handle_unexpected),
)


def setup_error_handlers(app: FastAPI) -> None:
    for exc_class, handler in HANDLERS:
        app.add_exception_handler(exc_class, handler)
