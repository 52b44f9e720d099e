"""Business model."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

from filing_desk.models.base import Base, TimestampsMixin, UUIDKeyMixin


class Business(UUIDKeyMixin, TimestampsMixin, Base):
    """A business that correspondence is filed against.

    ``last_contacted_at`` only moves forward; see
    ``CorrespondenceRepository.update_business_last_contacted``.
    """

    __tablename__ = "businesses"

    name: Mapped[str] = mapped_column(String, nullable=False)
    last_contacted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    def __repr__(self) -> str:
        return f"Business({self.name!r}, id={self.id})"
