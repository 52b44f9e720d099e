"""Liveness and readiness checks."""

from __future__ import annotations

from typing import Literal

import structlog
from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from filing_desk import __version__
from filing_desk.api.dependencies import DbDep

router = APIRouter(prefix="/health", tags=["health"])
logger = structlog.get_logger(__name__)


class LivenessResponse(BaseModel):
    status: Literal["ok"] = "ok"
    version: str = __version__


class ReadinessResponse(BaseModel):
    """Whether the service can take requests that touch the store."""

    ready: bool
    database: Literal["reachable", "unreachable"]


@router.get("", response_model=LivenessResponse, summary="Liveness check")
async def liveness() -> LivenessResponse:
    return LivenessResponse()


@router.get("/ready", response_model=ReadinessResponse, summary="Readiness check")
async def readiness(db: DbDep, response: Response) -> ReadinessResponse:
    """Report store reachability; 503 while the database cannot be reached."""
    reachable = await db.ping()
    if not reachable:
        await logger.awarning("service_not_ready")
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessResponse(
        ready=reachable,
        database="reachable" if reachable else "unreachable",
    )
