"""Tests for Problem Details errors."""

from __future__ import annotations

import pytest

from filing_desk.api.exceptions import (
    APIError,
    ConflictError,
    DuplicateCorrespondenceError,
    InvalidSubmissionError,
    NotFoundError,
    ProblemDetail,
    ServiceUnavailableError,
    api_error_from_domain,
)
from filing_desk.core.errors import (
    ContractViolation,
    DuplicateEntryError,
    FilingDeskError,
    FormattingServiceError,
    RecordNotFoundError,
    RetryRejectedError,
)


class TestProblemDetail:
    """Tests for ProblemDetail.to_dict."""

    def test_without_detail(self) -> None:
        """Test detail is omitted when absent."""
        problem = ProblemDetail(type="/errors/http", title="Forbidden", status=403)

        assert problem.to_dict() == {"type": "/errors/http", "title": "Forbidden", "status": 403}

    def test_extensions_beside_standard_members(self) -> None:
        """Test extension members are flattened into the body."""
        problem = ProblemDetail(
            type="/errors/conflict",
            title="Conflict",
            status=409,
            detail="Already filed",
            extensions={"existing_id": "rec-1"},
        )

        assert problem.to_dict() == {
            "type": "/errors/conflict",
            "title": "Conflict",
            "status": 409,
            "detail": "Already filed",
            "existing_id": "rec-1",
        }


class TestAPIErrors:
    """Tests for the APIError hierarchy."""

    def test_base_error_is_internal(self) -> None:
        """Test the base class describes a 500."""
        error = APIError("went wrong", hint="retry later")

        assert error.status_code == 500
        assert str(error) == "went wrong"
        assert error.problem.type == "/errors/internal"
        assert error.problem.extensions == {"hint": "retry later"}

    def test_message_defaults_to_title(self) -> None:
        """Test an error without detail still has a message."""
        error = ServiceUnavailableError()

        assert str(error) == "Service Unavailable"
        assert "detail" not in error.problem.to_dict()

    @pytest.mark.parametrize(
        ("error", "status", "type_uri"),
        [
            (NotFoundError("Correspondence", "rec-1"), 404, "/errors/not-found"),
            (InvalidSubmissionError("bad split"), 422, "/errors/validation"),
            (ConflictError("clash"), 409, "/errors/conflict"),
            (ServiceUnavailableError(), 503, "/errors/service-unavailable"),
        ],
    )
    def test_status_and_type(self, error: APIError, status: int, type_uri: str) -> None:
        """Test each subclass fixes its status and problem type."""
        assert error.problem.status == status
        assert error.problem.type == type_uri

    def test_not_found_detail(self) -> None:
        """Test the missing resource is named."""
        error = NotFoundError("Correspondence", "rec-1")

        assert error.detail == "Correspondence rec-1 does not exist"
        assert error.extensions == {"resource": "Correspondence", "resource_id": "rec-1"}
        assert NotFoundError("Contact").detail == "No such Contact"

    def test_invalid_submission_lists_errors(self) -> None:
        """Test the error list defaults to empty."""
        assert InvalidSubmissionError("bad split").extensions == {"errors": []}

    def test_duplicate_points_at_existing_record(self) -> None:
        """Test duplicates carry the existing ID and the matching check."""
        error = DuplicateCorrespondenceError(existing_id="rec-1", matched_by="normalized_text")

        assert isinstance(error, ConflictError)
        assert error.problem.extensions == {"existing_id": "rec-1", "matched_by": "normalized_text"}
        assert "override_duplicate" in error.detail


class TestApiErrorFromDomain:
    """Tests for api_error_from_domain."""

    def test_duplicate_entry(self) -> None:
        """Test store duplicates become 409 with the content hash."""
        error = api_error_from_domain(DuplicateEntryError("biz", "hash-1"))

        assert isinstance(error, ConflictError)
        assert error.extensions == {"content_hash": "hash-1"}

    def test_record_not_found(self) -> None:
        """Test missing records become 404."""
        error = api_error_from_domain(RecordNotFoundError("rec-9"))

        assert isinstance(error, NotFoundError)
        assert error.extensions["resource_id"] == "rec-9"

    def test_retry_rejected(self) -> None:
        """Test rejected retries become 409 with the reason."""
        error = api_error_from_domain(RetryRejectedError("Entry is already formatted"))

        assert error.status_code == 409
        assert error.detail == "Entry is already formatted"

    def test_contract_violation(self) -> None:
        """Test contract violations become 422 naming the field."""
        exc = ContractViolation("single entry", "formatted_text", "a string", 12)

        error = api_error_from_domain(exc)

        assert isinstance(error, InvalidSubmissionError)
        assert error.extensions["errors"] == [
            {"field": "formatted_text", "message": "must be a string"}
        ]

    def test_formatting_service(self) -> None:
        """Test formatting service failures become 503."""
        assert api_error_from_domain(FormattingServiceError("down")).status_code == 503

    def test_unmapped(self) -> None:
        """Test other domain errors become 500 with their message."""
        error = api_error_from_domain(FilingDeskError("strange"))

        assert type(error) is APIError
        assert error.detail == "strange"
