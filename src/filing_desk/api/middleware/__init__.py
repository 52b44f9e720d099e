"""API middleware modules."""

from filing_desk.api.middleware.error_handler import setup_error_handlers
from filing_desk.api.middleware.logging import setup_logging

__all__ = [
    "setup_error_handlers",
    "setup_logging",
]
