"""Shared test fixtures for filing-desk."""

from __future__ import annotations

import json
import uuid
from collections.abc import Callable, Iterator, Sequence
from datetime import UTC, datetime
from typing import Any

import pytest
import structlog

from filing_desk.core.errors import DuplicateEntryError, RecordNotFoundError
from filing_desk.core.fingerprint import normalize_for_comparison
from filing_desk.integrations.anthropic.client import FormattingInstruction
from filing_desk.schemas.contacts import Contact
from filing_desk.schemas.correspondence import CorrespondenceRecord, StoredCorrespondence

BUSINESS_ID = "6b2f1c1e-8d8a-4c55-9a57-0f3f0d7f2a11"
CONTACT_ID = "2d6c0c55-1f0a-4b7e-9d5b-3c1b2e0f9a22"


class FakeFormattingClient:
    """Formatting client returning canned responses and recording instructions."""

    def __init__(self, responses: Sequence[str | Exception] = ()) -> None:
        self.responses = list(responses)
        self.instructions: list[FormattingInstruction] = []

    async def complete(self, instruction: FormattingInstruction) -> str:
        self.instructions.append(instruction)
        if not self.responses:
            raise AssertionError("FakeFormattingClient has no response left")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class InMemoryCorrespondenceStore:
    """Correspondence store backed by a list, enforcing (business_id, content_hash)."""

    def __init__(self) -> None:
        self.records: list[StoredCorrespondence] = []
        self.last_contacted: dict[str, datetime] = {}
        self.fail_lookups = False
        self.fail_timestamp_update = False

    async def lookup_by_fingerprint(
        self, business_id: str, content_hash: str
    ) -> StoredCorrespondence | None:
        if self.fail_lookups:
            raise ConnectionError("store offline")
        for record in self.records:
            if record.business_id == business_id and record.content_hash == content_hash:
                return record
        return None

    async def lookup_by_normalized_text(
        self, business_id: str, normalized_text: str
    ) -> StoredCorrespondence | None:
        if self.fail_lookups:
            raise ConnectionError("store offline")
        for record in self.records:
            if record.business_id != business_id:
                continue
            for text in (record.formatted_text_current, record.formatted_text_original):
                if text is not None and normalize_for_comparison(text) == normalized_text:
                    return record
        return None

    async def insert_correspondence(self, record: CorrespondenceRecord) -> StoredCorrespondence:
        return (await self.insert_many([record]))[0]

    async def insert_many(
        self, records: Sequence[CorrespondenceRecord]
    ) -> list[StoredCorrespondence]:
        seen = {(r.business_id, r.content_hash) for r in self.records if r.content_hash}
        for record in records:
            key = (record.business_id, record.content_hash)
            if record.content_hash and key in seen:
                raise DuplicateEntryError(record.business_id, record.content_hash)
            seen.add(key)

        stored = [
            StoredCorrespondence(
                **record.model_dump(), id=str(uuid.uuid4()), created_at=datetime.now(UTC)
            )
            for record in records
        ]
        self.records.extend(stored)
        return stored

    async def update_business_last_contacted(self, business_id: str, timestamp: datetime) -> None:
        current = self.last_contacted.get(business_id)
        if current is None or timestamp > current:
            self.last_contacted[business_id] = timestamp

    async def file_records(
        self,
        records: Sequence[CorrespondenceRecord],
        business_id: str,
        last_contacted_at: datetime,
    ) -> list[StoredCorrespondence]:
        if self.fail_timestamp_update:
            raise ConnectionError("store offline")
        stored = await self.insert_many(records)
        await self.update_business_last_contacted(business_id, last_contacted_at)
        return stored

    async def get_by_id(self, correspondence_id: str) -> StoredCorrespondence | None:
        for record in self.records:
            if record.id == correspondence_id:
                return record
        return None

    async def update_formatting(
        self, correspondence_id: str, fields: dict[str, Any]
    ) -> StoredCorrespondence:
        for index, record in enumerate(self.records):
            if record.id == correspondence_id:
                values = dict(fields)
                if record.formatted_text_original is not None:
                    values.pop("formatted_text_original", None)
                updated = record.model_copy(update=values)
                self.records[index] = updated
                return updated
        raise RecordNotFoundError(correspondence_id)


class FakeContactDirectory:
    """Contacts collaborator with a fixed contact list."""

    def __init__(self, contacts: Sequence[Contact] = (), error: Exception | None = None) -> None:
        self.contacts = list(contacts)
        self.error = error

    async def list_for_business(self, business_id: str) -> list[Contact]:
        if self.error is not None:
            raise self.error
        return list(self.contacts)


def entry_payload(**overrides: Any) -> dict[str, Any]:
    """A contract-valid formatted entry as the formatting service would return it."""
    payload: dict[str, Any] = {
        "subject_guess": "Renewal quote",
        "entry_type_guess": "Email",
        "entry_date_guess": "2024-03-04",
        "direction_guess": "received",
        "formatted_text": "Hi Sam,\n\nPlease find the renewal quote attached.\n\nFreddie",
        "warnings": [],
        "extracted_names": {"sender": "Freddie", "recipient": "Sam"},
    }
    payload.update(overrides)
    return payload


@pytest.fixture(autouse=True)
def uncached_structlog(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Keep module loggers from caching one test's output configuration.

    A logger cached under a stdout renderer would keep printing to stdout in
    later tests, corrupting CLI JSON output.
    """
    configure = structlog.configure

    def _configure(**settings: Any) -> None:
        configure(**{**settings, "cache_logger_on_first_use": False})

    monkeypatch.setattr(structlog, "configure", _configure)
    yield
    structlog.reset_defaults()


@pytest.fixture
def business_id() -> str:
    """Business UUID used across tests."""
    return BUSINESS_ID


@pytest.fixture
def contact_id() -> str:
    """Primary contact UUID used across tests."""
    return CONTACT_ID


@pytest.fixture
def contacts() -> list[Contact]:
    """Known contacts for the test business."""
    return [
        Contact(
            id="c-frederick",
            name="Frederick Mitchell",
            role="Purchasing Manager",
            email="fred.mitchell@acme.co.uk",
            emails=["F.Mitchell@Acme-Group.com"],
        ),
        Contact(id="c-sarah", name="Sarah Jones", email="sarah@acme.co.uk"),
        Contact(id="c-tom", name="Tom Baker"),
    ]


@pytest.fixture
def store() -> InMemoryCorrespondenceStore:
    """Empty in-memory correspondence store."""
    return InMemoryCorrespondenceStore()


@pytest.fixture
def make_client() -> Callable[..., FakeFormattingClient]:
    """Factory for fake formatting clients."""

    def _make(*responses: str | Exception) -> FakeFormattingClient:
        return FakeFormattingClient(responses)

    return _make


@pytest.fixture
def single_entry_json() -> str:
    """A single-entry response serialized as the service would send it."""
    return json.dumps(entry_payload())


@pytest.fixture
def make_directory() -> Callable[..., FakeContactDirectory]:
    """Factory for fake contact directories."""

    def _make(
        contacts: Sequence[Contact] = (), error: Exception | None = None
    ) -> FakeContactDirectory:
        return FakeContactDirectory(contacts, error)

    return _make


@pytest.fixture
def make_entry() -> Callable[..., dict[str, Any]]:
    """Factory for contract-valid entry payloads."""
    return entry_payload
