"""Contact model."""

from __future__ import annotations

import uuid

from sqlalchemy import Index, String
from sqlalchemy.dialects.postgresql import ARRAY
from sqlalchemy.orm import Mapped, mapped_column

from filing_desk.models.base import Base, CreatedAtMixin, UUIDKeyMixin, business_fk


class Contact(UUIDKeyMixin, CreatedAtMixin, Base):
    """A known contact at a business.

    ``email`` and ``phone`` are the primary values; ``emails`` and ``phones``
    hold every alternative seen for the contact.
    """

    __tablename__ = "contacts"
    __table_args__ = (Index("ix_contacts_business_id", "business_id"),)

    business_id: Mapped[uuid.UUID] = business_fk()
    name: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str | None] = mapped_column(String)
    email: Mapped[str | None] = mapped_column(String)
    emails: Mapped[list[str]] = mapped_column(ARRAY(String), default=list, server_default="{}")
    phone: Mapped[str | None] = mapped_column(String)
    phones: Mapped[list[str]] = mapped_column(ARRAY(String), default=list, server_default="{}")

    def __repr__(self) -> str:
        return f"Contact({self.name!r}, id={self.id})"
