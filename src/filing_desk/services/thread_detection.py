"""Heuristic detection of pasted email threads.

Advisory only: the result pre-selects the split option when confidence is
high and otherwise leaves the decision to the user. Each heuristic is a named
rule returning an optional ``ThreadSignal``; confidence is derived from how
many strong and weak signals fire.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from filing_desk.schemas.thread import Confidence, ThreadDetectionResult

_FROM_RE = re.compile(r"^From:\s*", re.MULTILINE)
_SENT_RE = re.compile(r"^Sent:\s*", re.MULTILINE)
_SUBJECT_RE = re.compile(r"^Subject:\s*", re.MULTILINE)
_LINE_SEPARATOR_RE = re.compile(r"^[-_]{5,}", re.MULTILINE)
_DOTTED_SEPARATOR_RE = re.compile(r"(?:\.{20,}|…{20,})")
_REPLY_MARKER_RE = re.compile(r"^On\s+.+wrote:", re.MULTILINE | re.IGNORECASE)
_DOCUMENT_HEADER_RE = re.compile(
    r"^Email from .+ to .+,\s*\d{1,2}/\d{1,2}/\d{2,4}", re.MULTILINE | re.IGNORECASE
)
_FORWARD_REPLY_RE = re.compile(r"(forwarded|original message|reply|re:|fwd:)", re.IGNORECASE)

HEADER_KEYWORD_PATTERNS: tuple[re.Pattern[str], ...] = (
    re.compile(r"^From:\s*.+", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^To:\s*.+", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^Subject:\s*.+", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^Date:\s*.+", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^Sent:\s*.+", re.MULTILINE | re.IGNORECASE),
    _REPLY_MARKER_RE,
    re.compile(r"^-{3,}\s*Original Message\s*-{3,}", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^-{3,}\s*Forwarded Message\s*-{3,}", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^_{5,}", re.MULTILINE),
    _DOTTED_SEPARATOR_RE,
    _DOCUMENT_HEADER_RE,
)


class SignalStrength(str, Enum):
    """How much weight a signal carries."""

    STRONG = "strong"
    WEAK = "weak"
    # Enough for medium on its own, never counts towards high
    SUGGESTIVE = "suggestive"


@dataclass(frozen=True, slots=True)
class ThreadSignal:
    """One piece of evidence that text holds several messages."""

    kind: str
    strength: SignalStrength
    indicator: str


@dataclass(frozen=True, slots=True)
class ThreadRule:
    """A named heuristic."""

    name: str
    evaluate: Callable[[str], ThreadSignal | None]

    def __call__(self, text: str) -> ThreadSignal | None:
        return self.evaluate(text)


def count_separators(text: str) -> int:
    """Count separator lines and dotted/ellipsis runs."""
    return len(_LINE_SEPARATOR_RE.findall(text)) + len(_DOTTED_SEPARATOR_RE.findall(text))


def _header_repetition(text: str) -> ThreadSignal | None:
    counts = (
        len(_FROM_RE.findall(text)),
        len(_SENT_RE.findall(text)),
        len(_SUBJECT_RE.findall(text)),
    )
    if max(counts) > 1:
        return ThreadSignal(
            "header_repetition",
            SignalStrength.STRONG,
            f"Detected {max(counts)} possible emails in thread",
        )
    return None


def _separator_runs(text: str) -> ThreadSignal | None:
    total = count_separators(text)
    if total >= 2:
        return ThreadSignal(
            "separator_runs", SignalStrength.STRONG, f"{total} separator lines detected"
        )
    return None


def _reply_markers(text: str) -> ThreadSignal | None:
    count = len(_REPLY_MARKER_RE.findall(text))
    if count > 1:
        return ThreadSignal(
            "reply_markers", SignalStrength.STRONG, f"{count} 'On ... wrote:' reply markers"
        )
    if count == 1:
        return ThreadSignal("reply_markers", SignalStrength.WEAK, "Quoted reply marker found")
    return None


def _document_headers(text: str) -> ThreadSignal | None:
    count = len(_DOCUMENT_HEADER_RE.findall(text))
    if count > 1:
        return ThreadSignal(
            "document_headers",
            SignalStrength.STRONG,
            f"Detected {count} 'Email from ... to ...' headers",
        )
    if count == 1:
        return ThreadSignal(
            "document_headers", SignalStrength.SUGGESTIVE, "Document-style email header found"
        )
    return None


def _header_density(text: str) -> ThreadSignal | None:
    distinct = sum(1 for pattern in HEADER_KEYWORD_PATTERNS if pattern.search(text))
    if distinct >= 4 and count_separators(text) >= 1:
        return ThreadSignal(
            "header_density",
            SignalStrength.WEAK,
            f"{distinct} kinds of email header alongside a separator",
        )
    return None


def _forward_reply_keywords(text: str) -> ThreadSignal | None:
    count = len(_FORWARD_REPLY_RE.findall(text))
    if count >= 2:
        return ThreadSignal(
            "forward_reply_keywords",
            SignalStrength.WEAK,
            f"{count} forward/reply keywords found",
        )
    return None


THREAD_RULES: tuple[ThreadRule, ...] = (
    ThreadRule("header_repetition", _header_repetition),
    ThreadRule("separator_runs", _separator_runs),
    ThreadRule("reply_markers", _reply_markers),
    ThreadRule("document_headers", _document_headers),
    ThreadRule("header_density", _header_density),
    ThreadRule("forward_reply_keywords", _forward_reply_keywords),
)


def collect_signals(
    raw_text: str, rules: tuple[ThreadRule, ...] = THREAD_RULES
) -> list[ThreadSignal]:
    """Run every rule in order and keep the signals that fired."""
    return [signal for rule in rules if (signal := rule(raw_text)) is not None]


def score_signals(signals: list[ThreadSignal]) -> Confidence:
    """Derive confidence from fired signals.

    High needs two distinct strong kinds. One strong kind, two weak kinds or
    any suggestive signal gives medium.
    """
    strong = {s.kind for s in signals if s.strength is SignalStrength.STRONG}
    weak = {s.kind for s in signals if s.strength is SignalStrength.WEAK}
    if len(strong) >= 2:
        return Confidence.HIGH
    suggestive = any(s.strength is SignalStrength.SUGGESTIVE for s in signals)
    if len(strong) == 1 or len(weak) >= 2 or suggestive:
        return Confidence.MEDIUM
    return Confidence.LOW


def detect_thread_signals(raw_text: str) -> ThreadDetectionResult:
    """Analyze pasted text for signs of several concatenated messages.

    Args:
        raw_text: Text exactly as pasted by the user.

    Returns:
        ThreadDetectionResult with confidence, indicators and split default.
    """
    signals = collect_signals(raw_text)
    confidence = score_signals(signals)
    looks_like_thread = confidence is not Confidence.LOW

    indicators = [signal.indicator for signal in signals]
    if confidence is Confidence.HIGH:
        indicators.append("High confidence: multiple thread patterns detected")
    elif confidence is Confidence.MEDIUM:
        indicators.append("Medium confidence: some thread indicators present")
    elif not signals:
        indicators.append("Does not look like an email thread")
    else:
        indicators.append("Low confidence: might be a single formatted email")

    return ThreadDetectionResult(
        looks_like_thread=looks_like_thread,
        confidence=confidence,
        indicators=indicators,
        default_split=looks_like_thread and confidence is Confidence.HIGH,
    )


def should_default_to_split(raw_text: str) -> bool:
    """Whether the split option should start selected (high confidence only)."""
    return detect_thread_signals(raw_text).default_split
