"""Correspondence model."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from filing_desk.models.base import Base, TimestampsMixin, UUIDKeyMixin, business_fk


class Correspondence(UUIDKeyMixin, TimestampsMixin, Base):
    """One filed email, call or meeting.

    ``raw_text_original`` is written once at insert; formatting only sets the
    sibling ``formatted_*`` columns.
    """

    __tablename__ = "correspondence"
    __table_args__ = (
        UniqueConstraint("business_id", "content_hash", name="uq_correspondence_business_hash"),
        Index("ix_correspondence_business_entry_date", "business_id", "entry_date"),
    )

    business_id: Mapped[uuid.UUID] = business_fk()
    contact_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("contacts.id", ondelete="RESTRICT"),
        nullable=False,
    )
    user_id: Mapped[uuid.UUID | None] = mapped_column(UUID(as_uuid=True), nullable=True)
    raw_text_original: Mapped[str] = mapped_column(Text, nullable=False)
    formatted_text_original: Mapped[str | None] = mapped_column(Text, nullable=True)
    formatted_text_current: Mapped[str | None] = mapped_column(Text, nullable=True)
    entry_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    subject: Mapped[str | None] = mapped_column(String, nullable=True)
    type: Mapped[str | None] = mapped_column(String(16), nullable=True)
    direction: Mapped[str | None] = mapped_column(String(16), nullable=True)
    action_needed: Mapped[str] = mapped_column(
        String(32),
        default="none",
        server_default="none",
    )
    due_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    formatting_status: Mapped[str] = mapped_column(String(16), nullable=False)
    content_hash: Mapped[str | None] = mapped_column(String(64), nullable=True)
    ai_metadata: Mapped[dict[str, object]] = mapped_column(
        JSONB,
        default=dict,
        server_default="{}",
    )

    def __repr__(self) -> str:
        return (
            f"Correspondence(id={self.id}, business_id={self.business_id}, "
            f"status={self.formatting_status!r})"
        )
