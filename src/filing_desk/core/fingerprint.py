"""Content fingerprints and text normalization for duplicate detection."""

from __future__ import annotations

import hashlib
import re

_WHITESPACE_RE = re.compile(r"\s+")


def content_fingerprint(text: str) -> str:
    """Compute the SHA-256 fingerprint of trimmed text.

    Args:
        text: Raw or formatted correspondence text.

    Returns:
        Lowercase hex digest, stable across calls and processes.
    """
    return hashlib.sha256(text.strip().encode("utf-8")).hexdigest()


def normalize_for_comparison(text: str) -> str:
    """Trim, lowercase and collapse whitespace runs to single spaces.

    Args:
        text: Text to normalize.

    Returns:
        Normalized text suitable for equality comparison.
    """
    return _WHITESPACE_RE.sub(" ", text.strip()).lower()
