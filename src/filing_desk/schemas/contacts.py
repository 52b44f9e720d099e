"""Contact schemas: known contacts, extracted contacts and match results."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Contact(BaseModel):
    """A known contact for a business, as supplied by the contacts collaborator."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: str
    name: str
    role: str | None = None
    email: str | None = None
    emails: list[str] = Field(default_factory=list)
    phone: str | None = None
    phones: list[str] = Field(default_factory=list)

    @property
    def all_emails(self) -> list[str]:
        """Primary email followed by secondary emails."""
        addresses = [self.email] if self.email else []
        return addresses + [e for e in self.emails if e]

    @classmethod
    def from_orm_contact(cls, obj: Any) -> Contact:
        """Create from an ORM contact, stringifying the UUID primary key."""
        return cls(
            id=str(obj.id),
            name=obj.name,
            role=obj.role,
            email=obj.email,
            emails=list(obj.emails or []),
            phone=obj.phone,
            phones=list(obj.phones or []),
        )


class ExtractedContact(BaseModel):
    """A contact found in pasted legacy-document text. Never persisted directly."""

    model_config = ConfigDict(frozen=True)

    name: str
    email: str | None = None
    phone: str | None = None
    role: str | None = None
    raw_text: str


class ContactExtractionResult(BaseModel):
    """Contacts parsed from a document plus where they were found."""

    contacts: list[ExtractedContact]
    has_contacts_section: bool
    contacts_section_text: str | None = None


class ContactMatchResult(BaseModel):
    """Contact attribution for one split entry."""

    model_config = ConfigDict(frozen=True)

    contact_id: str | None = None
    contact_name: str | None = None
    matched_from: str | None = None
    confidence: Literal["high", "low"] = "low"

    @classmethod
    def no_match(cls) -> ContactMatchResult:
        """Result for an entry that matched no contact."""
        return cls(confidence="low")
