"""Correspondence record, commit plan and duplicate-check schemas."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from filing_desk.schemas.formatting import Direction, EntryType


class FormattingStatus(str, Enum):
    """Where a record's display text came from."""

    FORMATTED = "formatted"
    UNFORMATTED = "unformatted"
    FAILED = "failed"


class ActionNeeded(str, Enum):
    """Follow-up flag chosen by the user at submission time."""

    NONE = "none"
    PROSPECT = "prospect"
    FOLLOW_UP = "follow_up"
    WAITING_ON_THEM = "waiting_on_them"
    INVOICE = "invoice"
    RENEWAL = "renewal"


class CorrespondenceRecord(BaseModel):
    """A correspondence record ready to be persisted.

    ``raw_text_original`` and ``formatted_text_original`` are write-once; the
    model is frozen so nothing in the pipeline can replace them.
    """

    model_config = ConfigDict(frozen=True)

    business_id: str
    contact_id: str
    user_id: str | None = None
    raw_text_original: str
    formatted_text_original: str | None = None
    formatted_text_current: str | None = None
    entry_date: datetime
    subject: str | None = None
    type: EntryType | None = None
    direction: Direction | None = None
    action_needed: ActionNeeded = ActionNeeded.NONE
    due_at: datetime | None = None
    formatting_status: FormattingStatus
    content_hash: str | None = None
    ai_metadata: dict[str, Any] = Field(default_factory=dict)


class StoredCorrespondence(CorrespondenceRecord):
    """A correspondence record as returned by the store."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    created_at: datetime | None = None

    @classmethod
    def from_orm_record(cls, obj: Any) -> StoredCorrespondence:
        """Create from an ORM row, stringifying UUID columns."""
        return cls(
            id=str(obj.id),
            business_id=str(obj.business_id),
            contact_id=str(obj.contact_id),
            user_id=str(obj.user_id) if obj.user_id else None,
            raw_text_original=obj.raw_text_original,
            formatted_text_original=obj.formatted_text_original,
            formatted_text_current=obj.formatted_text_current,
            entry_date=obj.entry_date,
            subject=obj.subject,
            type=obj.type,
            direction=obj.direction,
            action_needed=obj.action_needed,
            due_at=obj.due_at,
            formatting_status=obj.formatting_status,
            content_hash=obj.content_hash,
            ai_metadata=dict(obj.ai_metadata or {}),
            created_at=obj.created_at,
        )


class CommitMetadata(BaseModel):
    """Submission metadata supplied by the caller alongside the pasted text."""

    business_id: str
    contact_id: str = Field(..., description="Primary contact, used when no match applies")
    user_id: str | None = None
    raw_text_original: str = Field(..., min_length=1)
    entry_date: datetime | None = None
    entry_type: EntryType | None = None
    direction: Direction | None = None
    action_needed: ActionNeeded = ActionNeeded.NONE
    due_at: datetime | None = None
    subject: str | None = Field(None, max_length=500)


class CommitPlan(BaseModel):
    """Records to insert plus the business timestamp update."""

    business_id: str
    records: list[CorrespondenceRecord]
    last_contacted_at: datetime


class RetryUpdate(BaseModel):
    """Sibling-field update produced by a retry of formatting.

    Never carries ``raw_text_original``.
    """

    correspondence_id: str
    formatting_status: FormattingStatus
    fields: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None


class DuplicateCheckResult(BaseModel):
    """Outcome of the pre-commit duplicate check."""

    is_duplicate: bool
    existing_entry: StoredCorrespondence | None = None
    matched_by: Literal["fingerprint", "normalized_text"] | None = None
    degraded: bool = Field(
        default=False, description="True when the check failed open and was skipped"
    )
