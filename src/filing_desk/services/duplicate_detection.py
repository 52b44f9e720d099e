"""Pre-commit duplicate detection.

Two lookups against the store, scoped to one business:

1. Exact fingerprint (SHA-256 of the trimmed raw text)
2. Normalized-text equality against stored formatted text, only when the
   fingerprint lookup found nothing

The check is advisory and fails open: when the store is unreachable the
submission is treated as new and the result is marked ``degraded``.
"""

from __future__ import annotations

from typing import Literal, Protocol

import structlog

from filing_desk.core.errors import ClassifiedError, ErrorKind
from filing_desk.core.fingerprint import content_fingerprint, normalize_for_comparison
from filing_desk.core.result import Err, Ok, Result
from filing_desk.schemas.correspondence import DuplicateCheckResult, StoredCorrespondence

logger = structlog.get_logger(__name__)

MatchedBy = Literal["fingerprint", "normalized_text"]


class DuplicateLookupStore(Protocol):
    """Store lookups used by duplicate detection."""

    async def lookup_by_fingerprint(
        self, business_id: str, content_hash: str
    ) -> StoredCorrespondence | None:
        """Find a record for the business with this content hash."""
        ...

    async def lookup_by_normalized_text(
        self, business_id: str, normalized_text: str
    ) -> StoredCorrespondence | None:
        """Find a record whose normalized formatted text equals the given text."""
        ...


class DuplicateDetector:
    """Checks pasted text against previously filed correspondence."""

    def __init__(self, store: DuplicateLookupStore) -> None:
        """Initialize detector.

        Args:
            store: Store providing fingerprint and normalized-text lookups.
        """
        self.store = store

    async def check_duplicate(self, raw_text: str, business_id: str) -> DuplicateCheckResult:
        """Check whether text was already filed for a business.

        Args:
            raw_text: Text exactly as pasted.
            business_id: Business the text would be filed against.

        Returns:
            DuplicateCheckResult; never raises.
        """
        if not raw_text.strip():
            return DuplicateCheckResult(is_duplicate=False)

        result = await self.find_existing(raw_text, business_id)
        if isinstance(result, Err):
            await logger.awarning(
                "duplicate_check_failed",
                business_id=business_id,
                error_kind=result.error.kind.value,
                error=result.error.detail,
            )
            return DuplicateCheckResult(is_duplicate=False, degraded=True)

        match = result.value
        if match is None:
            return DuplicateCheckResult(is_duplicate=False)

        existing, matched_by = match
        await logger.ainfo(
            "duplicate_found",
            business_id=business_id,
            existing_id=existing.id,
            matched_by=matched_by,
        )
        return DuplicateCheckResult(
            is_duplicate=True, existing_entry=existing, matched_by=matched_by
        )

    async def find_existing(
        self, raw_text: str, business_id: str
    ) -> Result[tuple[StoredCorrespondence, MatchedBy] | None]:
        """Run both lookups, converting store failures to ``Err``."""
        try:
            existing = await self.store.lookup_by_fingerprint(
                business_id, content_fingerprint(raw_text)
            )
            if existing is not None:
                return Ok((existing, "fingerprint"))

            existing = await self.store.lookup_by_normalized_text(
                business_id, normalize_for_comparison(raw_text)
            )
            if existing is not None:
                return Ok((existing, "normalized_text"))
        except Exception as exc:
            return Err(
                ClassifiedError(
                    kind=ErrorKind.STORE_UNAVAILABLE,
                    message="Duplicate check unavailable",
                    detail=f"{type(exc).__name__}: {exc}",
                )
            )
        return Ok(None)
