"""Contact repository for database operations."""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filing_desk.models.contact import Contact as ContactModel
from filing_desk.schemas.contacts import Contact


class ContactRepository:
    """Repository for contact database operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def list_for_business(self, business_id: str) -> list[Contact]:
        """List contacts for a business in creation order.

        Args:
            business_id: Business UUID string.

        Returns:
            Contacts (empty when the ID is not a valid UUID).
        """
        try:
            business_uuid = UUID(business_id)
        except ValueError:
            return []
        result = await self.session.execute(
            select(ContactModel)
            .where(ContactModel.business_id == business_uuid)
            .order_by(ContactModel.created_at, ContactModel.name)
        )
        return [Contact.from_orm_contact(row) for row in result.scalars().all()]
