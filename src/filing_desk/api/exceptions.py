"""HTTP errors rendered as RFC 7807 Problem Details.

Each ``APIError`` subclass fixes its status, title and problem type; the
instance carries the human-readable detail plus any extension members,
such as ``existing_id`` on a duplicate submission.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from filing_desk.core.errors import (
    ContractViolation,
    DuplicateEntryError,
    FilingDeskError,
    FormattingServiceError,
    RecordNotFoundError,
    RetryRejectedError,
)


@dataclass(frozen=True, slots=True)
class ProblemDetail:
    """Body of an ``application/problem+json`` response."""

    type: str
    title: str
    status: int
    detail: str | None = None
    extensions: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"type": self.type, "title": self.title, "status": self.status}
        if self.detail is not None:
            body["detail"] = self.detail
        # Extension members sit beside the standard ones
        return {**body, **self.extensions}


class APIError(Exception):
    """Base class; subclasses override the class attributes."""

    status: ClassVar[int] = 500
    title: ClassVar[str] = "Internal Server Error"
    type_uri: ClassVar[str] = "/errors/internal"

    def __init__(self, detail: str | None = None, **extensions: Any) -> None:
        super().__init__(detail or self.title)
        self.detail = detail
        self.extensions = extensions

    @property
    def status_code(self) -> int:
        return self.status

    @property
    def problem(self) -> ProblemDetail:
        return ProblemDetail(
            type=self.type_uri,
            title=self.title,
            status=self.status,
            detail=self.detail,
            extensions=dict(self.extensions),
        )


class NotFoundError(APIError):
    status = 404
    title = "Not Found"
    type_uri = "/errors/not-found"

    def __init__(self, resource: str, resource_id: str | None = None) -> None:
        detail = f"{resource} {resource_id} does not exist" if resource_id else f"No such {resource}"
        super().__init__(detail, resource=resource, resource_id=resource_id)


class InvalidSubmissionError(APIError):
    """The request parsed but cannot be acted on (422)."""

    status = 422
    title = "Invalid Submission"
    type_uri = "/errors/validation"

    def __init__(self, detail: str, errors: list[dict[str, Any]] | None = None) -> None:
        super().__init__(detail, errors=errors or [])


class ConflictError(APIError):
    status = 409
    title = "Conflict"
    type_uri = "/errors/conflict"


class DuplicateCorrespondenceError(ConflictError):
    """The submission matches a filed record and was not overridden."""

    def __init__(self, existing_id: str | None, matched_by: str | None) -> None:
        super().__init__(
            "This correspondence appears to have been filed already. "
            "Resubmit with override_duplicate to save it anyway.",
            existing_id=existing_id,
            matched_by=matched_by,
        )


class ServiceUnavailableError(APIError):
    status = 503
    title = "Service Unavailable"
    type_uri = "/errors/service-unavailable"


def api_error_from_domain(exc: FilingDeskError) -> APIError:
    """Pick the HTTP error for a domain exception that escaped a route.

    Unmapped domain errors become a plain 500 carrying the message.
    """
    if isinstance(exc, DuplicateEntryError):
        return ConflictError(
            "Correspondence with identical content is already filed for this business",
            content_hash=exc.content_hash,
        )
    if isinstance(exc, RecordNotFoundError):
        return NotFoundError("Correspondence", exc.record_id)
    if isinstance(exc, RetryRejectedError):
        return ConflictError(str(exc))
    if isinstance(exc, ContractViolation):
        return InvalidSubmissionError(
            str(exc), errors=[{"field": exc.field, "message": f"must be {exc.expected}"}]
        )
    if isinstance(exc, FormattingServiceError):
        return ServiceUnavailableError("The formatting service could not be reached")
    return APIError(str(exc))
