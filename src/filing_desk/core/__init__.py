"""Core utilities for filing-desk."""

from __future__ import annotations

from filing_desk.core.config import PipelineConfig, get_pipeline_config
from filing_desk.core.errors import (
    ClassifiedError,
    ContractViolation,
    DuplicateEntryError,
    ErrorKind,
    FilingDeskError,
    FormattingServiceError,
    RecordNotFoundError,
    RetryRejectedError,
)
from filing_desk.core.fingerprint import content_fingerprint, normalize_for_comparison
from filing_desk.core.logging import configure_structlog, setup_logging
from filing_desk.core.result import Err, Ok, Result

__all__ = [
    "ClassifiedError",
    "ContractViolation",
    "DuplicateEntryError",
    "Err",
    "ErrorKind",
    "FilingDeskError",
    "FormattingServiceError",
    "Ok",
    "PipelineConfig",
    "RecordNotFoundError",
    "Result",
    "RetryRejectedError",
    "configure_structlog",
    "content_fingerprint",
    "get_pipeline_config",
    "normalize_for_comparison",
    "setup_logging",
]
