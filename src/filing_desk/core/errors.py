"""Domain exceptions and error classification for the normalization pipeline."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classified failure modes surfaced by the pipeline."""

    SERVICE_UNAVAILABLE = "service_unavailable"
    MALFORMED_RESPONSE = "malformed_response"
    SCHEMA_VIOLATION = "schema_violation"
    STORE_UNAVAILABLE = "store_unavailable"


@dataclass(frozen=True, slots=True)
class ClassifiedError:
    """A failure converted to a value.

    Attributes:
        kind: Failure category.
        message: Human-readable message safe to show to the end user.
        detail: Diagnostic detail for logs (never shown to the user).
    """

    kind: ErrorKind
    message: str
    detail: str | None = None


class FilingDeskError(Exception):
    """Base exception for filing-desk errors."""


class FormattingServiceError(FilingDeskError):
    """The external formatting service could not produce a text response."""


class ContractViolation(FilingDeskError, ValueError):
    """A parsed formatter response does not match the output contract."""

    def __init__(self, context: str, field: str, expected: str, actual: Any) -> None:
        """Initialize the violation.

        Args:
            context: Which object failed, e.g. "Single entry" or "Entry 2".
            field: Name of the offending field.
            expected: Description of the expected type or enum.
            actual: The offending value (or ``MISSING``).
        """
        self.context = context
        self.field = field
        self.expected = expected
        self.actual = actual
        shown = "<missing>" if actual is MISSING else repr(actual)
        super().__init__(f"{context}: {field} must be {expected} (got {shown})")


class _Missing:
    """Sentinel for absent keys."""

    def __repr__(self) -> str:
        return "<missing>"


MISSING: Any = _Missing()


class DuplicateEntryError(FilingDeskError):
    """The store rejected a record whose fingerprint already exists for the business."""

    def __init__(self, business_id: str, content_hash: str | None) -> None:
        """Initialize duplicate error.

        Args:
            business_id: Business the record was filed against.
            content_hash: Fingerprint that collided.
        """
        self.business_id = business_id
        self.content_hash = content_hash
        super().__init__(f"Correspondence already exists for business {business_id}")


class RecordNotFoundError(FilingDeskError):
    """A correspondence record could not be found."""

    def __init__(self, record_id: str) -> None:
        self.record_id = record_id
        super().__init__(f"Correspondence {record_id} not found")


class RetryRejectedError(FilingDeskError, ValueError):
    """Retry formatting is not possible for this record or result."""
