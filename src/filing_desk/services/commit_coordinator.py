"""Building the records to persist from a formatting result.

The coordinator is pure: it turns a formatting result plus submission
metadata into a ``CommitPlan`` (or a ``RetryUpdate``) and leaves all I/O to
the caller. ``raw_text_original`` is copied from the submission verbatim and
never touched again.
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime
from typing import Any

import structlog

from filing_desk.core.errors import RetryRejectedError
from filing_desk.core.fingerprint import content_fingerprint
from filing_desk.schemas.contacts import ContactMatchResult
from filing_desk.schemas.correspondence import (
    CommitMetadata,
    CommitPlan,
    CorrespondenceRecord,
    FormattingStatus,
    RetryUpdate,
    StoredCorrespondence,
)
from filing_desk.schemas.formatting import (
    FormattedEntry,
    FormatterResponse,
    FormattingFailure,
    FormattingResult,
    FormattingSuccess,
    ThreadSplitResponse,
)

logger = structlog.get_logger(__name__)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def parse_entry_date(value: str | None) -> datetime | None:
    """Parse an ISO-8601 date guess, returning None when absent or unparseable."""
    if not value:
        return None
    try:
        return _as_utc(datetime.fromisoformat(value.strip()))
    except ValueError:
        logger.info("entry_date_guess_unparseable", entry_date_guess=value[:64])
        return None


def resolve_entry_date(
    guess: str | None, fallback: datetime | None, now: datetime
) -> datetime:
    """AI guess, else the submitted date, else now."""
    parsed = parse_entry_date(guess)
    if parsed is not None:
        return parsed
    if fallback is not None:
        return _as_utc(fallback)
    return now


def _unwrap(result: FormattingResult | FormatterResponse) -> FormatterResponse:
    if isinstance(result, FormattingFailure):
        raise ValueError("Cannot build a commit plan from a failed formatting result")
    if isinstance(result, FormattingSuccess):
        return result.data
    return result


def _match_metadata(match: ContactMatchResult | None) -> dict[str, Any]:
    if match is None or match.contact_id is None:
        return {"matched": False}
    return {
        "matched": True,
        "matched_from": match.matched_from,
        "confidence": match.confidence,
    }


def _record_from_entry(
    entry: FormattedEntry,
    metadata: CommitMetadata,
    contact_id: str,
    content_hash: str,
    ai_metadata: dict[str, Any],
    now: datetime,
) -> CorrespondenceRecord:
    return CorrespondenceRecord(
        business_id=metadata.business_id,
        contact_id=contact_id,
        user_id=metadata.user_id,
        raw_text_original=metadata.raw_text_original,
        formatted_text_original=entry.formatted_text,
        formatted_text_current=entry.formatted_text,
        entry_date=resolve_entry_date(entry.entry_date_guess, metadata.entry_date, now),
        subject=entry.subject_guess,
        type=entry.entry_type_guess,
        direction=entry.direction_guess or metadata.direction,
        action_needed=metadata.action_needed,
        due_at=metadata.due_at,
        formatting_status=FormattingStatus.FORMATTED,
        content_hash=content_hash,
        ai_metadata=ai_metadata,
    )


def build_commit_plan(
    result: FormattingResult | FormatterResponse,
    metadata: CommitMetadata,
    matches: Sequence[ContactMatchResult] | None = None,
    now: datetime | None = None,
) -> CommitPlan:
    """Build the records for a formatted submission.

    Args:
        result: Successful formatting result (or its response).
        metadata: Submission metadata.
        matches: Contact matches for a thread split, one per entry.
        now: Current time (defaults to UTC now).

    Returns:
        CommitPlan with one record per entry and the business timestamp.

    Raises:
        ValueError: If the result is a failure or a split without entries.
    """
    response = _unwrap(result)
    now = now or datetime.now(UTC)
    records: list[CorrespondenceRecord] = []

    if isinstance(response, ThreadSplitResponse):
        if not response.entries:
            raise ValueError("Thread split contained no entries")
        matches = list(matches or [])
        if matches and len(matches) != len(response.entries):
            logger.warning(
                "contact_match_count_mismatch",
                entries=len(response.entries),
                matches=len(matches),
            )
        total = len(response.entries)
        for index, entry in enumerate(response.entries):
            match = matches[index] if index < len(matches) else None
            contact_id = metadata.contact_id
            if match is not None and match.confidence == "high" and match.contact_id:
                contact_id = match.contact_id
            records.append(
                _record_from_entry(
                    entry,
                    metadata,
                    contact_id=contact_id,
                    content_hash=content_fingerprint(entry.formatted_text),
                    ai_metadata={
                        "warnings": list(entry.warnings),
                        "split_from_thread": True,
                        "thread_position": index + 1,
                        "thread_total": total,
                        "matched_contact": _match_metadata(match),
                    },
                    now=now,
                )
            )
    else:
        records.append(
            _record_from_entry(
                response,
                metadata,
                contact_id=metadata.contact_id,
                content_hash=content_fingerprint(metadata.raw_text_original),
                ai_metadata={"warnings": list(response.warnings), "split_from_thread": False},
                now=now,
            )
        )

    return CommitPlan(
        business_id=metadata.business_id,
        records=records,
        last_contacted_at=max(record.entry_date for record in records),
    )


def build_unformatted_plan(metadata: CommitMetadata, now: datetime | None = None) -> CommitPlan:
    """Build the plan for saving text without formatting.

    Args:
        metadata: Submission metadata.
        now: Current time (defaults to UTC now).

    Returns:
        CommitPlan with a single unformatted record.
    """
    now = now or datetime.now(UTC)
    entry_date = _as_utc(metadata.entry_date) if metadata.entry_date else now
    record = CorrespondenceRecord(
        business_id=metadata.business_id,
        contact_id=metadata.contact_id,
        user_id=metadata.user_id,
        raw_text_original=metadata.raw_text_original,
        entry_date=entry_date,
        subject=metadata.subject,
        type=metadata.entry_type,
        direction=metadata.direction,
        action_needed=metadata.action_needed,
        due_at=metadata.due_at,
        formatting_status=FormattingStatus.UNFORMATTED,
        content_hash=content_fingerprint(metadata.raw_text_original),
        ai_metadata={"saved_without_formatting": True},
    )
    return CommitPlan(
        business_id=metadata.business_id, records=[record], last_contacted_at=entry_date
    )


def ensure_retryable(record: StoredCorrespondence) -> None:
    """Raise ``RetryRejectedError`` unless the record still needs formatting."""
    if record.formatting_status is FormattingStatus.FORMATTED:
        raise RetryRejectedError("Entry is already formatted")


def build_retry_update(
    record: StoredCorrespondence,
    result: FormattingResult,
    now: datetime | None = None,
) -> RetryUpdate:
    """Build the sibling-field update for a retry of formatting.

    Args:
        record: Stored record saved without formatting (or whose retry failed).
        result: Result of formatting ``record.raw_text_original``.
        now: Current time (defaults to UTC now).

    Returns:
        RetryUpdate; never includes ``raw_text_original``.

    Raises:
        RetryRejectedError: If the record is already formatted or the result
            is a thread split.
    """
    ensure_retryable(record)

    now = now or datetime.now(UTC)
    previous = dict(record.ai_metadata)

    if isinstance(result, FormattingFailure):
        return RetryUpdate(
            correspondence_id=record.id,
            formatting_status=FormattingStatus.FAILED,
            fields={
                "ai_metadata": {
                    **previous,
                    "retry_attempted": now.isoformat(),
                    "retry_error": result.error,
                }
            },
            error=result.error,
        )

    response = result.data
    if isinstance(response, ThreadSplitResponse):
        raise RetryRejectedError("Thread splitting not supported in retry formatting")

    return RetryUpdate(
        correspondence_id=record.id,
        formatting_status=FormattingStatus.FORMATTED,
        fields={
            "formatted_text_original": response.formatted_text,
            "formatted_text_current": response.formatted_text,
            "subject": response.subject_guess,
            "type": response.entry_type_guess,
            "entry_date": resolve_entry_date(response.entry_date_guess, record.entry_date, now),
            "ai_metadata": {
                **previous,
                "warnings": list(response.warnings),
                "retry_formatted": True,
                "retry_attempted": now.isoformat(),
            },
        },
    )
