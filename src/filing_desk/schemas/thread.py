"""Thread detection schemas."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field


class Confidence(str, Enum):
    """Confidence that pasted text holds several messages."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ThreadDetectionResult(BaseModel):
    """Advisory result of thread-signal analysis."""

    looks_like_thread: bool
    confidence: Confidence
    indicators: list[str] = Field(default_factory=list)
    default_split: bool = Field(
        default=False, description="Whether the split option should be pre-selected"
    )
