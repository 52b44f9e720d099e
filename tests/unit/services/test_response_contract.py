"""Tests for formatter response contract validation."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from filing_desk.core.errors import MISSING, ContractViolation
from filing_desk.schemas.formatting import (
    Direction,
    EntryType,
    SingleEntryResponse,
    ThreadSplitResponse,
)
from filing_desk.services.response_contract import validate_formatter_response

EntryFactory = Callable[..., dict[str, Any]]


class TestSingleEntry:
    """Tests for single-entry responses."""

    def test_valid(self, make_entry: EntryFactory) -> None:
        """Test a complete entry validates."""
        response = validate_formatter_response(make_entry())

        assert isinstance(response, SingleEntryResponse)
        assert response.kind == "single"
        assert response.entry_type_guess is EntryType.EMAIL
        assert response.direction_guess is Direction.RECEIVED
        assert response.extracted_names is not None
        assert response.extracted_names.sender == "Freddie"

    def test_optional_fields_absent(self, make_entry: EntryFactory) -> None:
        """Test direction and names may be omitted."""
        payload = make_entry()
        del payload["direction_guess"]
        del payload["extracted_names"]

        response = validate_formatter_response(payload)

        assert response.direction_guess is None
        assert response.extracted_names is None

    def test_null_date(self, make_entry: EntryFactory) -> None:
        """Test a null date guess is allowed."""
        response = validate_formatter_response(make_entry(entry_date_guess=None))

        assert response.entry_date_guess is None

    def test_missing_entry_type_names_field(self, make_entry: EntryFactory) -> None:
        """Test a missing entry_type_guess is reported by name."""
        payload = make_entry()
        del payload["entry_type_guess"]

        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response(payload)

        assert exc_info.value.field == "entry_type_guess"
        assert exc_info.value.context == "Single entry"
        assert exc_info.value.actual is MISSING
        assert "entry_type_guess" in str(exc_info.value)

    def test_invalid_entry_type(self, make_entry: EntryFactory) -> None:
        """Test entry types outside the enum are rejected."""
        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response(make_entry(entry_type_guess="email"))

        assert exc_info.value.field == "entry_type_guess"

    def test_missing_date_key(self, make_entry: EntryFactory) -> None:
        """Test the date key must be present even when unknown."""
        payload = make_entry()
        del payload["entry_date_guess"]

        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response(payload)

        assert exc_info.value.field == "entry_date_guess"

    def test_subject_not_string(self, make_entry: EntryFactory) -> None:
        """Test values are not coerced."""
        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response(make_entry(subject_guess=42))

        assert exc_info.value.field == "subject_guess"

    def test_warnings_must_be_strings(self, make_entry: EntryFactory) -> None:
        """Test warnings must be a list of strings."""
        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response(make_entry(warnings=["ok", 3]))

        assert exc_info.value.field == "warnings"

    def test_invalid_direction(self, make_entry: EntryFactory) -> None:
        """Test direction values are limited."""
        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response(make_entry(direction_guess="inbound"))

        assert exc_info.value.field == "direction_guess"

    def test_extracted_name_not_string(self, make_entry: EntryFactory) -> None:
        """Test extracted names must be strings or null."""
        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response(
                make_entry(extracted_names={"sender": ["Freddie"], "recipient": None})
            )

        assert exc_info.value.field == "extracted_names.sender"

    def test_not_an_object(self) -> None:
        """Test non-object roots are rejected."""
        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response(["not", "an", "object"])

        assert exc_info.value.field == "root"


class TestThreadSplit:
    """Tests for thread-split responses."""

    def test_valid(self, make_entry: EntryFactory) -> None:
        """Test entries keep their order."""
        response = validate_formatter_response(
            {
                "entries": [make_entry(subject_guess="First"), make_entry(subject_guess="Second")],
                "warnings": ["Second message may be truncated"],
            }
        )

        assert isinstance(response, ThreadSplitResponse)
        assert [e.subject_guess for e in response.entries] == ["First", "Second"]
        assert response.warnings == ["Second message may be truncated"]

    def test_empty_entries_are_valid(self) -> None:
        """Test an empty entries list is structurally valid."""
        response = validate_formatter_response({"entries": [], "warnings": []})

        assert isinstance(response, ThreadSplitResponse)
        assert response.entries == []

    def test_entries_not_a_list(self) -> None:
        """Test entries must be a list."""
        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response({"entries": {"0": {}}, "warnings": []})

        assert exc_info.value.field == "entries"
        assert exc_info.value.context == "Thread split"

    def test_missing_warnings(self, make_entry: EntryFactory) -> None:
        """Test the split-level warnings list is required."""
        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response({"entries": [make_entry()]})

        assert exc_info.value.field == "warnings"

    def test_bad_entry_is_numbered(self, make_entry: EntryFactory) -> None:
        """Test the offending entry is identified by position."""
        bad = make_entry()
        del bad["formatted_text"]

        with pytest.raises(ContractViolation) as exc_info:
            validate_formatter_response({"entries": [make_entry(), bad], "warnings": []})

        assert exc_info.value.context == "Entry 2"
        assert exc_info.value.field == "formatted_text"
