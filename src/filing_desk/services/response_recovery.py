"""Recovery of structured data from raw formatting-service responses.

The formatting service is instructed to return strict JSON, but responses
occasionally arrive wrapped in markdown fences, triple quotes, or surrounded
by a sentence of prose. Recovery is limited to removing those wrappers:
- No brace balancing
- No quote escaping
- No retries

Anything that still fails to parse is classified and reported, and the
caller falls back to saving the user's text unformatted.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

# Wrapper patterns
_FENCE_OPEN_RE = re.compile(r"^```(?:json|markdown|JSON)?[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```$")
_TRIPLE_QUOTE_OPEN_RE = re.compile(r'^"""\w*[ \t]*\n?')
_TRIPLE_QUOTE_CLOSE_RE = re.compile(r'\n?"""$')

# Diagnostic log limits
CONTEXT_WINDOW = 50
MAX_LOGGED_CHARS = 2048
MAX_LOGGED_CLEANED_CHARS = 1024

FIX_STRIPPED_FENCE = "stripped markdown code fence"
FIX_STRIPPED_TRIPLE_QUOTES = "stripped triple-quote wrapper"
FIX_SLICED_TO_OBJECT = "sliced to outermost braces"


class ParseErrorKind(str, Enum):
    """Classified cause of a strict-parse failure."""

    UNTERMINATED_STRING = "unterminated_string"
    UNEXPECTED_TOKEN = "unexpected_token"
    UNEXPECTED_END_OF_INPUT = "unexpected_end_of_input"
    OTHER = "other"


_USER_MESSAGES = {
    ParseErrorKind.UNTERMINATED_STRING: (
        "The AI returned malformed text (unterminated string). This sometimes happens "
        "with very long or complex content. Your original text is preserved."
    ),
    ParseErrorKind.UNEXPECTED_TOKEN: (
        "The AI returned unexpected formatting. Your original text is preserved and "
        "you can save it without formatting."
    ),
    ParseErrorKind.UNEXPECTED_END_OF_INPUT: (
        "The AI response was incomplete or truncated. Your original text is preserved."
    ),
}


@dataclass
class RecoveryResult:
    """Result of parsing a raw response.

    Attributes:
        success: Whether a JSON object was recovered.
        data: The parsed object on success.
        error: User-facing message on failure.
        error_kind: Classified cause on failure.
        attempted_fixes: Wrapper-stripping steps that changed the text.
    """

    success: bool
    data: Any = None
    error: str | None = None
    error_kind: ParseErrorKind | None = None
    attempted_fixes: list[str] = field(default_factory=list)


class _NonObjectResponse(ValueError):
    """Raised when the response parses as JSON but is not an object."""


def strip_wrapping_artifacts(text: str) -> tuple[str, list[str]]:
    """Remove code fences, triple quotes and surrounding prose.

    Args:
        text: Raw response text.

    Returns:
        Tuple of (cleaned text, list of fixes applied).
    """
    fixes: list[str] = []
    cleaned = text.strip()

    if cleaned.startswith("```"):
        cleaned = _FENCE_CLOSE_RE.sub("", _FENCE_OPEN_RE.sub("", cleaned, count=1), count=1)
        fixes.append(FIX_STRIPPED_FENCE)

    if cleaned.startswith('"""'):
        cleaned = _TRIPLE_QUOTE_CLOSE_RE.sub(
            "", _TRIPLE_QUOTE_OPEN_RE.sub("", cleaned, count=1), count=1
        )
        fixes.append(FIX_STRIPPED_TRIPLE_QUOTES)

    first_brace = cleaned.find("{")
    last_brace = cleaned.rfind("}")
    if first_brace != -1 and last_brace != -1 and first_brace < last_brace:
        sliced = cleaned[first_brace : last_brace + 1]
        if sliced != cleaned:
            fixes.append(FIX_SLICED_TO_OBJECT)
        cleaned = sliced

    return cleaned.strip(), fixes


def _reject_constant(name: str) -> Any:
    """Reject the non-standard NaN/Infinity literals ``json`` accepts by default."""
    raise ValueError(f"Unexpected token {name}")


def classify_parse_error(error: Exception, document: str) -> ParseErrorKind:
    """Classify a parse failure.

    Args:
        error: Exception raised while parsing.
        document: The text that was parsed.

    Returns:
        The failure category.
    """
    if isinstance(error, _NonObjectResponse):
        return ParseErrorKind.OTHER
    if isinstance(error, json.JSONDecodeError):
        if error.msg.startswith("Unterminated string"):
            return ParseErrorKind.UNTERMINATED_STRING
        if error.pos >= len(document.rstrip()):
            return ParseErrorKind.UNEXPECTED_END_OF_INPUT
        if error.msg.startswith(("Expecting", "Extra data", "Illegal trailing comma")):
            return ParseErrorKind.UNEXPECTED_TOKEN
        return ParseErrorKind.OTHER
    if isinstance(error, ValueError) and str(error).startswith("Unexpected token"):
        return ParseErrorKind.UNEXPECTED_TOKEN
    return ParseErrorKind.OTHER


def user_message_for(kind: ParseErrorKind, error: Exception) -> str:
    """Build the user-facing message for a classified failure."""
    message = _USER_MESSAGES.get(kind)
    if message is not None:
        return message
    return f"JSON parsing failed: {error}. Your original text is preserved."


def parse_with_recovery(raw_text: str) -> RecoveryResult:
    """Strip wrappers from a response and parse it strictly.

    Args:
        raw_text: Raw text returned by the formatting service.

    Returns:
        RecoveryResult with the parsed object or a classified error.
    """
    cleaned, fixes = strip_wrapping_artifacts(raw_text)

    try:
        parsed = json.loads(cleaned, parse_constant=_reject_constant)
        if not isinstance(parsed, dict):
            raise _NonObjectResponse(
                f"response did not contain a JSON object (got {type(parsed).__name__})"
            )
    except (ValueError, RecursionError) as exc:
        kind = classify_parse_error(exc, cleaned)
        _log_parse_failure(raw_text, cleaned, exc, kind)
        return RecoveryResult(
            success=False,
            error=user_message_for(kind, exc),
            error_kind=kind,
            attempted_fixes=fixes,
        )

    return RecoveryResult(success=True, data=parsed, attempted_fixes=fixes)


def _log_parse_failure(
    original: str, cleaned: str, error: Exception, kind: ParseErrorKind
) -> None:
    """Log diagnostics for a failed parse without dumping the full response."""
    position = error.pos if isinstance(error, json.JSONDecodeError) else None
    context: str | None = None
    if position is not None:
        start = max(0, position - CONTEXT_WINDOW)
        end = min(len(cleaned), position + CONTEXT_WINDOW)
        context = cleaned[start:end]

    head = original[:MAX_LOGGED_CHARS]
    tail = original[-MAX_LOGGED_CHARS:] if len(original) > MAX_LOGGED_CHARS else None

    logger.warning(
        "response_parse_failed",
        error=str(error),
        error_kind=kind.value,
        error_position=position,
        error_context=context,
        response_length=len(original),
        cleaned_length=len(cleaned),
        response_head=head,
        response_tail=tail,
        cleaned_head=cleaned[:MAX_LOGGED_CLEANED_CHARS],
    )
