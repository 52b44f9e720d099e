"""SQLAlchemy models for filing-desk."""

from filing_desk.models.base import Base
from filing_desk.models.business import Business
from filing_desk.models.contact import Contact
from filing_desk.models.correspondence import Correspondence

__all__ = [
    "Base",
    "Business",
    "Contact",
    "Correspondence",
]
