"""Tests for contact extraction routes."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
import structlog
from fastapi.testclient import TestClient

from filing_desk.api.config import APIConfig
from filing_desk.api.main import create_app

DOCUMENT = (
    "Contacts:\n"
    "Tom Baker - Director\n"
    "tom@baker.co.uk\n"
    "\n"
    "Tom Baker - Director\n"
    "TOM@baker.co.uk\n"
    + "." * 30
    + "\nEmail from Sam to Tom Baker, 03/04/24\nHello\n"
)


@pytest.fixture
def client() -> Iterator[TestClient]:
    """Test client without lifespan."""
    yield TestClient(create_app(APIConfig(_env_file=None, log_format="console")))
    structlog.reset_defaults()


class TestExtractContacts:
    """Tests for POST /contacts/extract."""

    def test_deduped_by_default(self, client: TestClient) -> None:
        """Test repeated contacts are collapsed."""
        response = client.post("/contacts/extract", json={"text": DOCUMENT})

        assert response.status_code == 200
        body = response.json()
        assert body["has_contacts_section"] is True
        assert [c["name"] for c in body["contacts"]] == ["Tom Baker"]
        assert body["contacts"][0]["role"] == "Director"

    def test_without_dedupe(self, client: TestClient) -> None:
        """Test repeats are kept on request."""
        response = client.post("/contacts/extract", json={"text": DOCUMENT, "dedupe": False})

        assert len(response.json()["contacts"]) == 2

    def test_no_contacts(self, client: TestClient) -> None:
        """Test text without a contacts section."""
        response = client.post("/contacts/extract", json={"text": "Hi Tom, thanks."})

        body = response.json()
        assert body["contacts"] == []
        assert body["has_contacts_section"] is False
