"""Correspondence repository for database operations."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Any
from uuid import UUID

import structlog
from sqlalchemy import ColumnElement, func, or_, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from filing_desk.core.errors import DuplicateEntryError, RecordNotFoundError
from filing_desk.models.business import Business
from filing_desk.models.correspondence import Correspondence
from filing_desk.schemas.correspondence import CorrespondenceRecord, StoredCorrespondence

logger = structlog.get_logger(__name__)

# Columns a formatting update may touch
FORMATTING_FIELDS = frozenset(
    {
        "formatted_text_original",
        "formatted_text_current",
        "subject",
        "type",
        "entry_date",
        "formatting_status",
        "ai_metadata",
    }
)


def _uuid(value: str) -> UUID | None:
    try:
        return UUID(str(value))
    except ValueError:
        return None


def _column_value(value: Any) -> Any:
    return value.value if isinstance(value, Enum) else value


def normalized_text(column: Any) -> ColumnElement[str]:
    """SQL equivalent of ``normalize_for_comparison``: collapse whitespace, lowercase, trim."""
    return func.btrim(func.regexp_replace(func.lower(column), r"\s+", " ", "g"))


class CorrespondenceRepository:
    """Repository for correspondence database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def lookup_by_fingerprint(
        self, business_id: str, content_hash: str
    ) -> StoredCorrespondence | None:
        """Find the earliest record for a business with a content hash.

        Args:
            business_id: Business UUID string.
            content_hash: SHA-256 fingerprint.

        Returns:
            Stored record if found, None otherwise.
        """
        business_uuid = _uuid(business_id)
        if business_uuid is None:
            return None
        result = await self.session.execute(
            select(Correspondence)
            .where(
                Correspondence.business_id == business_uuid,
                Correspondence.content_hash == content_hash,
            )
            .order_by(Correspondence.created_at)
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return StoredCorrespondence.from_orm_record(row) if row else None

    async def lookup_by_normalized_text(
        self, business_id: str, normalized: str
    ) -> StoredCorrespondence | None:
        """Find a record whose normalized formatted text equals ``normalized``.

        Args:
            business_id: Business UUID string.
            normalized: Text already passed through ``normalize_for_comparison``.

        Returns:
            Stored record if found, None otherwise.
        """
        business_uuid = _uuid(business_id)
        if business_uuid is None or not normalized:
            return None
        result = await self.session.execute(
            select(Correspondence)
            .where(
                Correspondence.business_id == business_uuid,
                or_(
                    normalized_text(Correspondence.formatted_text_current) == normalized,
                    normalized_text(Correspondence.formatted_text_original) == normalized,
                ),
            )
            .order_by(Correspondence.created_at)
            .limit(1)
        )
        row = result.scalar_one_or_none()
        return StoredCorrespondence.from_orm_record(row) if row else None

    def _to_orm(self, record: CorrespondenceRecord) -> Correspondence:
        return Correspondence(
            business_id=UUID(record.business_id),
            contact_id=UUID(record.contact_id),
            user_id=UUID(record.user_id) if record.user_id else None,
            raw_text_original=record.raw_text_original,
            formatted_text_original=record.formatted_text_original,
            formatted_text_current=record.formatted_text_current,
            entry_date=record.entry_date,
            subject=record.subject,
            type=_column_value(record.type),
            direction=_column_value(record.direction),
            action_needed=_column_value(record.action_needed),
            due_at=record.due_at,
            formatting_status=_column_value(record.formatting_status),
            content_hash=record.content_hash,
            ai_metadata=dict(record.ai_metadata),
        )

    async def insert_correspondence(self, record: CorrespondenceRecord) -> StoredCorrespondence:
        """Insert one record.

        Raises:
            DuplicateEntryError: If the business already has this content hash.
        """
        stored = await self.insert_many([record])
        return stored[0]

    async def insert_many(
        self, records: Sequence[CorrespondenceRecord]
    ) -> list[StoredCorrespondence]:
        """Insert records in one transaction.

        Args:
            records: Records to insert.

        Returns:
            Stored records in input order.

        Raises:
            DuplicateEntryError: If any record collides on (business_id, content_hash).
        """
        return await self._persist(records)

    async def file_records(
        self,
        records: Sequence[CorrespondenceRecord],
        business_id: str,
        last_contacted_at: datetime,
    ) -> list[StoredCorrespondence]:
        """Insert records and advance the business timestamp in one transaction.

        Either both are written or neither is, so a failed commit can be
        retried without tripping the duplicate constraint.

        Raises:
            DuplicateEntryError: If any record collides on (business_id, content_hash).
        """
        return await self._persist(records, touch=(business_id, last_contacted_at))

    async def _persist(
        self,
        records: Sequence[CorrespondenceRecord],
        touch: tuple[str, datetime] | None = None,
    ) -> list[StoredCorrespondence]:
        rows = [self._to_orm(record) for record in records]
        self.session.add_all(rows)
        try:
            # Flush first so a fingerprint collision surfaces before the UPDATE
            await self.session.flush()
            if touch is not None:
                await self._advance_last_contacted(*touch)
            await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            first = records[0] if records else None
            await logger.awarning(
                "correspondence_insert_conflict",
                business_id=first.business_id if first else None,
                error=str(exc.orig),
            )
            raise DuplicateEntryError(
                first.business_id if first else "",
                first.content_hash if first else None,
            ) from exc

        for row in rows:
            await self.session.refresh(row)
        return [StoredCorrespondence.from_orm_record(row) for row in rows]

    async def update_business_last_contacted(self, business_id: str, timestamp: datetime) -> None:
        """Move ``last_contacted_at`` forward; a later stored value is kept.

        Args:
            business_id: Business UUID string.
            timestamp: Latest entry date of the commit.
        """
        if await self._advance_last_contacted(business_id, timestamp):
            await self.session.commit()

    async def _advance_last_contacted(self, business_id: str, timestamp: datetime) -> bool:
        business_uuid = _uuid(business_id)
        if business_uuid is None:
            return False
        await self.session.execute(
            update(Business)
            .where(Business.id == business_uuid)
            .values(last_contacted_at=func.greatest(Business.last_contacted_at, timestamp))
        )
        return True

    async def get_by_id(self, correspondence_id: str) -> StoredCorrespondence | None:
        """Get a record by ID.

        Returns:
            Stored record if found, None otherwise.
        """
        row = await self._get_row(correspondence_id)
        return StoredCorrespondence.from_orm_record(row) if row else None

    async def _get_row(self, correspondence_id: str) -> Correspondence | None:
        record_uuid = _uuid(correspondence_id)
        if record_uuid is None:
            return None
        result = await self.session.execute(
            select(Correspondence).where(Correspondence.id == record_uuid)
        )
        return result.scalar_one_or_none()

    async def update_formatting(
        self, correspondence_id: str, fields: dict[str, Any]
    ) -> StoredCorrespondence:
        """Set formatting fields on a record.

        ``raw_text_original`` is never written, and an existing
        ``formatted_text_original`` is never replaced.

        Args:
            correspondence_id: Record UUID string.
            fields: Column values keyed by column name.

        Returns:
            The updated record.

        Raises:
            RecordNotFoundError: If the record does not exist.
            ValueError: If a field outside the formatting columns is given.
        """
        unknown = set(fields) - FORMATTING_FIELDS
        if unknown:
            raise ValueError(f"Cannot update non-formatting fields: {sorted(unknown)}")

        row = await self._get_row(correspondence_id)
        if row is None:
            raise RecordNotFoundError(correspondence_id)

        for key, value in fields.items():
            if key == "formatted_text_original" and row.formatted_text_original is not None:
                continue
            setattr(row, key, _column_value(value))

        await self.session.commit()
        await self.session.refresh(row)
        return StoredCorrespondence.from_orm_record(row)
