"""Caller-facing facade over the correspondence normalization pipeline.

Wires the pure components (thread detection, formatting, matching,
extraction, planning) to the persistence and contacts collaborators.

Typical usage:
    pipeline = CorrespondencePipeline(formatter, store, contacts)
    result = await pipeline.format_correspondence(raw_text, should_split=True)
    matches = await pipeline.match_entries_to_contacts(result.data.entries, business_id)
    check = await pipeline.check_duplicate(raw_text, business_id)
    plan = pipeline.build_commit_plan(result, metadata, matches)
    stored = await pipeline.commit(plan)
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from typing import Any, Protocol

import structlog

from filing_desk.core.errors import ClassifiedError, ErrorKind, RecordNotFoundError
from filing_desk.core.result import Err, Ok, Result
from filing_desk.schemas.contacts import Contact, ContactExtractionResult, ContactMatchResult
from filing_desk.schemas.correspondence import (
    CommitMetadata,
    CommitPlan,
    CorrespondenceRecord,
    DuplicateCheckResult,
    StoredCorrespondence,
)
from filing_desk.schemas.formatting import (
    FormattedEntry,
    FormatterResponse,
    FormattingResult,
)
from filing_desk.schemas.thread import ThreadDetectionResult
from filing_desk.services import commit_coordinator, contact_extraction, contact_matching
from filing_desk.services.duplicate_detection import DuplicateDetector, DuplicateLookupStore
from filing_desk.services.formatter import CorrespondenceFormatter
from filing_desk.services.thread_detection import detect_thread_signals

logger = structlog.get_logger(__name__)


class CorrespondenceStore(DuplicateLookupStore, Protocol):
    """Persistence collaborator."""

    async def insert_correspondence(self, record: CorrespondenceRecord) -> StoredCorrespondence:
        """Insert one record."""
        ...

    async def insert_many(
        self, records: Sequence[CorrespondenceRecord]
    ) -> list[StoredCorrespondence]:
        """Insert several records together."""
        ...

    async def update_business_last_contacted(self, business_id: str, timestamp: datetime) -> None:
        """Move the business timestamp forward (never backwards)."""
        ...

    async def file_records(
        self,
        records: Sequence[CorrespondenceRecord],
        business_id: str,
        last_contacted_at: datetime,
    ) -> list[StoredCorrespondence]:
        """Insert records and move the business timestamp forward, atomically."""
        ...

    async def get_by_id(self, correspondence_id: str) -> StoredCorrespondence | None:
        """Fetch one record."""
        ...

    async def update_formatting(
        self, correspondence_id: str, fields: dict[str, Any]
    ) -> StoredCorrespondence:
        """Set formatting sibling fields on a record."""
        ...


class ContactDirectory(Protocol):
    """Contacts collaborator."""

    async def list_for_business(self, business_id: str) -> list[Contact]:
        """List known contacts for a business."""
        ...


class CorrespondencePipeline:
    """Entry point for filing pasted correspondence."""

    def __init__(
        self,
        formatter: CorrespondenceFormatter,
        store: CorrespondenceStore,
        contacts: ContactDirectory,
        self_aliases: Sequence[str] = (),
    ) -> None:
        """Initialize pipeline.

        Args:
            formatter: Formatter with an injected formatting client.
            store: Persistence collaborator.
            contacts: Contacts collaborator.
            self_aliases: Names that refer to the user and never match a contact.
        """
        self.formatter = formatter
        self.store = store
        self.contacts = contacts
        self.self_aliases = tuple(self_aliases)
        self.duplicates = DuplicateDetector(store)

    def detect_thread_signals(self, raw_text: str) -> ThreadDetectionResult:
        """Advise whether the text looks like several messages."""
        return detect_thread_signals(raw_text)

    async def format_correspondence(
        self, raw_text: str, should_split: bool = False
    ) -> FormattingResult:
        """Format text once through the formatting service; never raises."""
        return await self.formatter.format(raw_text, should_split)

    async def load_contacts(self, business_id: str) -> Result[list[Contact]]:
        """Load known contacts, converting collaborator failures to ``Err``."""
        try:
            return Ok(await self.contacts.list_for_business(business_id))
        except Exception as exc:
            return Err(
                ClassifiedError(
                    kind=ErrorKind.STORE_UNAVAILABLE,
                    message="Contacts unavailable",
                    detail=f"{type(exc).__name__}: {exc}",
                )
            )

    async def match_entries_to_contacts(
        self, entries: Sequence[FormattedEntry], business_id: str
    ) -> list[ContactMatchResult]:
        """Attribute split entries to known contacts of the business.

        A failed contacts load degrades to no matches.
        """
        result = await self.load_contacts(business_id)
        if isinstance(result, Err):
            await logger.awarning(
                "contact_load_failed",
                business_id=business_id,
                error=result.error.detail,
            )
        contacts = result.unwrap_or([])
        matches = contact_matching.match_entries_to_contacts(entries, contacts, self.self_aliases)
        await logger.ainfo(
            "contacts_matched",
            business_id=business_id,
            entries=len(entries),
            matched=sum(1 for m in matches if m.contact_id),
        )
        return matches

    def extract_contacts(self, text: str) -> ContactExtractionResult:
        """Extract contacts from a pasted legacy document."""
        return contact_extraction.extract_contacts(text)

    async def check_duplicate(self, raw_text: str, business_id: str) -> DuplicateCheckResult:
        """Check for an existing record with the same content; fails open."""
        return await self.duplicates.check_duplicate(raw_text, business_id)

    def build_commit_plan(
        self,
        result: FormattingResult | FormatterResponse,
        metadata: CommitMetadata,
        matches: Sequence[ContactMatchResult] | None = None,
    ) -> CommitPlan:
        """Build records for a formatted submission."""
        return commit_coordinator.build_commit_plan(result, metadata, matches)

    async def commit(self, plan: CommitPlan) -> list[StoredCorrespondence]:
        """Insert the plan's records and move the business timestamp forward together.

        Raises:
            DuplicateEntryError: If the store rejects a duplicate fingerprint.
        """
        stored = await self.store.file_records(
            plan.records, plan.business_id, plan.last_contacted_at
        )
        await logger.ainfo(
            "correspondence_committed",
            business_id=plan.business_id,
            record_count=len(stored),
            last_contacted_at=plan.last_contacted_at.isoformat(),
        )
        return stored

    async def save_unformatted(self, metadata: CommitMetadata) -> list[StoredCorrespondence]:
        """Save the submission as-is, without formatting."""
        return await self.commit(commit_coordinator.build_unformatted_plan(metadata))

    async def retry_formatting(self, correspondence_id: str) -> StoredCorrespondence:
        """Format a record that was saved unformatted (or whose retry failed).

        Args:
            correspondence_id: Record to format.

        Returns:
            The updated record; status ``failed`` when formatting failed again.

        Raises:
            RecordNotFoundError: If the record does not exist.
            RetryRejectedError: If the record is already formatted or the
                service answered with a thread split.
        """
        record = await self.store.get_by_id(correspondence_id)
        if record is None:
            raise RecordNotFoundError(correspondence_id)

        # Reject before spending a formatting call
        commit_coordinator.ensure_retryable(record)

        result = await self.formatter.format(record.raw_text_original, should_split=False)
        update = commit_coordinator.build_retry_update(record, result)

        updated = await self.store.update_formatting(
            correspondence_id,
            {**update.fields, "formatting_status": update.formatting_status},
        )
        await logger.ainfo(
            "retry_formatting_completed",
            correspondence_id=correspondence_id,
            formatting_status=update.formatting_status.value,
        )
        return updated
