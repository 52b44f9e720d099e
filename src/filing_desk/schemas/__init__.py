"""Pydantic schemas for filing-desk."""

from filing_desk.schemas.contacts import (
    Contact,
    ContactExtractionResult,
    ContactMatchResult,
    ExtractedContact,
)
from filing_desk.schemas.correspondence import (
    ActionNeeded,
    CommitMetadata,
    CommitPlan,
    CorrespondenceRecord,
    DuplicateCheckResult,
    FormattingStatus,
    RetryUpdate,
    StoredCorrespondence,
)
from filing_desk.schemas.formatting import (
    Direction,
    EntryType,
    ExtractedNames,
    FormattedEntry,
    FormatterResponse,
    FormattingFailure,
    FormattingResult,
    FormattingSuccess,
    SingleEntryResponse,
    ThreadSplitResponse,
)
from filing_desk.schemas.thread import Confidence, ThreadDetectionResult

__all__ = [
    "ActionNeeded",
    "CommitMetadata",
    "CommitPlan",
    "Confidence",
    "Contact",
    "ContactExtractionResult",
    "ContactMatchResult",
    "CorrespondenceRecord",
    "Direction",
    "DuplicateCheckResult",
    "EntryType",
    "ExtractedContact",
    "ExtractedNames",
    "FormattedEntry",
    "FormatterResponse",
    "FormattingFailure",
    "FormattingResult",
    "FormattingStatus",
    "FormattingSuccess",
    "RetryUpdate",
    "SingleEntryResponse",
    "StoredCorrespondence",
    "ThreadDetectionResult",
    "ThreadSplitResponse",
]
