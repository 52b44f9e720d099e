"""Pydantic schemas for the formatter output contract and formatting results."""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from filing_desk.core.errors import ErrorKind


class EntryType(str, Enum):
    """Kind of correspondence."""

    EMAIL = "Email"
    CALL = "Call"
    MEETING = "Meeting"


class Direction(str, Enum):
    """Whether a message was sent by the user or received from a correspondent."""

    SENT = "sent"
    RECEIVED = "received"


class ExtractedNames(BaseModel):
    """Sender and recipient names as written in the source text."""

    model_config = ConfigDict(frozen=True)

    sender: str | None = None
    recipient: str | None = None


class FormattedEntry(BaseModel):
    """One formatted correspondence message."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    subject_guess: str
    entry_type_guess: EntryType
    entry_date_guess: str | None
    direction_guess: Direction | None = None
    formatted_text: str
    warnings: list[str] = Field(default_factory=list)
    extracted_names: ExtractedNames | None = None


class SingleEntryResponse(FormattedEntry):
    """Formatter output when no thread split occurred."""

    kind: Literal["single"] = "single"


class ThreadSplitResponse(BaseModel):
    """Formatter output when the text was split into several messages."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    kind: Literal["thread_split"] = "thread_split"
    entries: list[FormattedEntry]
    warnings: list[str] = Field(default_factory=list)


FormatterResponse = Annotated[
    SingleEntryResponse | ThreadSplitResponse,
    Field(discriminator="kind"),
]


class FormattingSuccess(BaseModel):
    """Successful formatting result."""

    model_config = ConfigDict(frozen=True)

    success: Literal[True] = True
    data: FormatterResponse


class FormattingFailure(BaseModel):
    """Failed formatting result; the caller can always save the text unformatted."""

    model_config = ConfigDict(frozen=True)

    success: Literal[False] = False
    error: str
    error_kind: ErrorKind
    should_save_unformatted: Literal[True] = True


FormattingResult = FormattingSuccess | FormattingFailure
