"""Service layer: the correspondence normalization pipeline."""

from filing_desk.services.commit_coordinator import (
    build_commit_plan,
    build_retry_update,
    build_unformatted_plan,
)
from filing_desk.services.contact_extraction import (
    dedupe_contacts,
    extract_contacts,
    is_same_contact,
    normalize_contact_name,
)
from filing_desk.services.contact_matching import match_entries_to_contacts, match_name
from filing_desk.services.duplicate_detection import DuplicateDetector
from filing_desk.services.formatter import CorrespondenceFormatter
from filing_desk.services.pipeline import (
    ContactDirectory,
    CorrespondencePipeline,
    CorrespondenceStore,
)
from filing_desk.services.response_contract import validate_formatter_response
from filing_desk.services.response_recovery import (
    ParseErrorKind,
    RecoveryResult,
    parse_with_recovery,
)
from filing_desk.services.thread_detection import (
    detect_thread_signals,
    should_default_to_split,
)

__all__ = [
    "ContactDirectory",
    "CorrespondenceFormatter",
    "CorrespondencePipeline",
    "CorrespondenceStore",
    "DuplicateDetector",
    "ParseErrorKind",
    "RecoveryResult",
    "build_commit_plan",
    "build_retry_update",
    "build_unformatted_plan",
    "dedupe_contacts",
    "detect_thread_signals",
    "extract_contacts",
    "is_same_contact",
    "match_entries_to_contacts",
    "match_name",
    "normalize_contact_name",
    "parse_with_recovery",
    "should_default_to_split",
    "validate_formatter_response",
]
