"""Repository classes for data access."""

from filing_desk.repositories.contact import ContactRepository
from filing_desk.repositories.correspondence import CorrespondenceRepository

__all__ = [
    "ContactRepository",
    "CorrespondenceRepository",
]
