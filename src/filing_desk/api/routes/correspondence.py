"""Correspondence filing endpoints."""

from __future__ import annotations

import structlog
from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from filing_desk.api.dependencies import FormatterDep, PipelineDep
from filing_desk.api.exceptions import DuplicateCorrespondenceError, InvalidSubmissionError
from filing_desk.schemas.contacts import ContactMatchResult
from filing_desk.schemas.correspondence import (
    CommitMetadata,
    DuplicateCheckResult,
    FormattingStatus,
    StoredCorrespondence,
)
from filing_desk.schemas.formatting import (
    FormattedEntry,
    FormatterResponse,
    FormattingFailure,
    FormattingSuccess,
)
from filing_desk.schemas.thread import ThreadDetectionResult
from filing_desk.services.thread_detection import detect_thread_signals

router = APIRouter(prefix="/correspondence", tags=["correspondence"])
logger = structlog.get_logger(__name__)


class RawTextRequest(BaseModel):
    """Pasted text to analyze."""

    raw_text: str = Field(..., min_length=1, description="Text exactly as pasted")


class FormatRequest(RawTextRequest):
    """Request to format pasted text."""

    should_split: bool = Field(default=False, description="Ask for a thread split")


class MatchContactsRequest(BaseModel):
    """Split entries to attribute to contacts."""

    business_id: str
    entries: list[FormattedEntry]


class MatchContactsResponse(BaseModel):
    """One match per entry, same order."""

    matches: list[ContactMatchResult]


class DuplicateCheckRequest(RawTextRequest):
    """Request to check for an existing record."""

    business_id: str


class CommitRequest(BaseModel):
    """Request to file a submission.

    Without ``formatting`` the text is saved unformatted.
    """

    metadata: CommitMetadata
    formatting: FormatterResponse | None = None
    matches: list[ContactMatchResult] | None = None
    override_duplicate: bool = Field(
        default=False, description="Save even when a duplicate was detected"
    )


class CommitResponse(BaseModel):
    """Records created by a commit."""

    records: list[StoredCorrespondence]


class RetryResponse(BaseModel):
    """Outcome of retrying formatting for one record."""

    record: StoredCorrespondence
    error: str | None = None


@router.post(
    "/thread-signals",
    response_model=ThreadDetectionResult,
    summary="Detect thread signals",
)
async def thread_signals(request: RawTextRequest) -> ThreadDetectionResult:
    """Advise whether pasted text looks like several messages."""
    return detect_thread_signals(request.raw_text)


@router.post(
    "/format",
    response_model=FormattingSuccess | FormattingFailure,
    summary="Format pasted text",
)
async def format_correspondence(
    request: FormatRequest, formatter: FormatterDep
) -> FormattingSuccess | FormattingFailure:
    """Format pasted text once through the formatting service.

    Failures are returned in the body with ``should_save_unformatted``; the
    status code is 200 either way.
    """
    return await formatter.format(request.raw_text, request.should_split)


@router.post(
    "/match-contacts",
    response_model=MatchContactsResponse,
    summary="Match split entries to contacts",
)
async def match_contacts(
    request: MatchContactsRequest, pipeline: PipelineDep
) -> MatchContactsResponse:
    """Attribute each entry of a thread split to a known contact."""
    matches = await pipeline.match_entries_to_contacts(request.entries, request.business_id)
    return MatchContactsResponse(matches=matches)


@router.post(
    "/duplicates/check",
    response_model=DuplicateCheckResult,
    summary="Check for duplicates",
)
async def check_duplicate(
    request: DuplicateCheckRequest, pipeline: PipelineDep
) -> DuplicateCheckResult:
    """Check whether the text was already filed for the business."""
    return await pipeline.check_duplicate(request.raw_text, request.business_id)


@router.post(
    "",
    response_model=CommitResponse,
    status_code=status.HTTP_201_CREATED,
    summary="File correspondence",
)
async def commit_correspondence(request: CommitRequest, pipeline: PipelineDep) -> CommitResponse:
    """File a formatted or unformatted submission.

    Raises:
        DuplicateCorrespondenceError: If a duplicate exists and was not overridden.
        InvalidSubmissionError: If the formatting result cannot be filed.
    """
    metadata = request.metadata

    if not request.override_duplicate:
        check = await pipeline.check_duplicate(metadata.raw_text_original, metadata.business_id)
        if check.is_duplicate:
            raise DuplicateCorrespondenceError(
                existing_id=check.existing_entry.id if check.existing_entry else None,
                matched_by=check.matched_by,
            )

    if request.formatting is None:
        records = await pipeline.save_unformatted(metadata)
    else:
        try:
            plan = pipeline.build_commit_plan(request.formatting, metadata, request.matches)
        except ValueError as exc:
            raise InvalidSubmissionError(str(exc)) from exc
        records = await pipeline.commit(plan)

    await logger.ainfo(
        "correspondence_filed",
        business_id=metadata.business_id,
        record_count=len(records),
        formatted=request.formatting is not None,
        override_duplicate=request.override_duplicate,
    )
    return CommitResponse(records=records)


@router.post(
    "/{correspondence_id}/retry-formatting",
    response_model=RetryResponse,
    summary="Retry formatting",
)
async def retry_formatting(correspondence_id: str, pipeline: PipelineDep) -> RetryResponse:
    """Format a record that was saved without formatting."""
    record = await pipeline.retry_formatting(correspondence_id)
    error = None
    if record.formatting_status is FormattingStatus.FAILED:
        error = record.ai_metadata.get("retry_error")
    return RetryResponse(record=record, error=error)
