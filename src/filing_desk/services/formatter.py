"""Correspondence formatting through the external formatting service.

One call per request, then recovery and contract validation. Every failure
is returned as a ``FormattingFailure`` value so the caller can always fall
back to saving the user's text unformatted.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from filing_desk.core.errors import ContractViolation, ErrorKind
from filing_desk.integrations.anthropic.client import FormattingInstruction
from filing_desk.schemas.formatting import (
    FormattingFailure,
    FormattingResult,
    FormattingSuccess,
    ThreadSplitResponse,
)
from filing_desk.services.response_contract import validate_formatter_response
from filing_desk.services.response_recovery import parse_with_recovery

if TYPE_CHECKING:
    from filing_desk.integrations.anthropic.client import FormattingClient

logger = structlog.get_logger(__name__)

DEFAULT_SELF_IDENTIFIERS = ("me", "I", "my", "myself", "we", "us", "our")

SERVICE_UNAVAILABLE_MESSAGE = (
    "AI formatting is unavailable right now. Your original text is preserved "
    "and you can save it without formatting."
)
SCHEMA_VIOLATION_MESSAGE = (
    "The AI response did not match the expected format. Your original text is "
    "preserved and you can save it without formatting."
)

SYSTEM_PROMPT = """You are a formatting assistant for a correspondence filing system.

HARD RULES - YOU MUST FOLLOW THESE EXACTLY:
1. PRESERVE USER WORDING EXACTLY - No rewriting, polishing, summarizing, or tone changes
2. NEVER INVENT CONTENT - No suggestions, reminders, auto follow-ups, or made-up next steps
3. STRICT JSON ONLY - Return ONLY valid JSON, never prose, never markdown fences
4. Only improve visual layout, spacing, lists, and obvious headers
5. If uncertain about splitting, include a warning and DO NOT split

Your job is to:
- Format messy text into clean, readable correspondence
- Guess the subject line (max 90 chars, use first meaningful line if no clear subject)
- Guess the entry type (Email, Call, or Meeting)
- Extract the date in ISO 8601 format, or null if not found. Dates are written
  day-first (UK style): 03/04/24 and 03/04/2024 mean 3 April 2024, and
  "3 March 2024" means 2024-03-03
- Guess the direction: "sent" when written by the user ({self_identifiers}),
  "received" when written by an external correspondent, null when unclear
- Extract the sender and recipient names exactly as written, or null

NEVER add content that wasn't in the original text."""

ENTRY_FIELDS = """Each entry object has exactly these fields:
- "subject_guess": string (max 90 chars)
- "entry_type_guess": "Email", "Call" or "Meeting"
- "entry_date_guess": ISO 8601 string or null
- "direction_guess": "sent", "received" or null
- "formatted_text": string
- "warnings": array of strings (may be empty)
- "extracted_names": {{"sender": string or null, "recipient": string or null}}"""

SINGLE_ENTRY_TEMPLATE = """Format this correspondence entry. Return ONE JSON object.

{entry_fields}

TEXT:
{raw_text}"""

THREAD_SPLIT_TEMPLATE = """Format and split this email thread into individual entries.
Return ONE JSON object: {{"entries": [...], "warnings": [...]}}, entries in the
order they appear in the text.

{entry_fields}

Remove the header lines that introduce each message (for example
"Email from X to Y, DATE", "From:", "Sent:", "To:", "Subject:") and the
separator lines between messages from "formatted_text"; use them only to fill
the other fields. If you are not sure where one message ends, add a warning and
return a single entry in "entries" instead of guessing.

TEXT:
{raw_text}"""


class CorrespondenceFormatter:
    """Formats pasted correspondence with an injected formatting client."""

    def __init__(self, client: FormattingClient, self_aliases: Sequence[str] = ()) -> None:
        """Initialize formatter.

        Args:
            client: Formatting-service client.
            self_aliases: Extra names that refer to the user, e.g. their first name.
        """
        self.client = client
        self.self_aliases = tuple(self_aliases)

    def build_instruction(self, raw_text: str, should_split: bool) -> FormattingInstruction:
        """Build the instruction for one request, embedding the text verbatim."""
        aliases = (*DEFAULT_SELF_IDENTIFIERS, *self.self_aliases)
        identifiers = ", ".join(f'"{alias}"' for alias in aliases)
        template = THREAD_SPLIT_TEMPLATE if should_split else SINGLE_ENTRY_TEMPLATE
        return FormattingInstruction(
            system=SYSTEM_PROMPT.format(self_identifiers=identifiers),
            user=template.format(entry_fields=ENTRY_FIELDS.format(), raw_text=raw_text),
        )

    async def format(self, raw_text: str, should_split: bool = False) -> FormattingResult:
        """Format pasted text, optionally splitting it into several entries.

        Args:
            raw_text: Text exactly as pasted by the user.
            should_split: Whether to ask for a thread split.

        Returns:
            FormattingSuccess with the validated response, or FormattingFailure.
        """
        instruction = self.build_instruction(raw_text, should_split)

        try:
            response_text = await self.client.complete(instruction)
        except Exception as exc:
            return await self._failure(
                ErrorKind.SERVICE_UNAVAILABLE, SERVICE_UNAVAILABLE_MESSAGE, exc, raw_text
            )

        recovered = parse_with_recovery(response_text)
        if not recovered.success:
            await logger.awarning(
                "formatting_failed",
                error_kind=ErrorKind.MALFORMED_RESPONSE.value,
                parse_error_kind=recovered.error_kind.value if recovered.error_kind else None,
                attempted_fixes=recovered.attempted_fixes,
                input_length=len(raw_text),
            )
            return FormattingFailure(
                error=recovered.error or "The AI response could not be read.",
                error_kind=ErrorKind.MALFORMED_RESPONSE,
            )

        try:
            validated = validate_formatter_response(recovered.data)
        except ContractViolation as exc:
            await logger.awarning(
                "formatter_contract_violation",
                context=exc.context,
                field=exc.field,
                expected=exc.expected,
                actual=repr(exc.actual)[:200],
            )
            return await self._failure(
                ErrorKind.SCHEMA_VIOLATION, SCHEMA_VIOLATION_MESSAGE, exc, raw_text
            )
        except ValidationError as exc:
            return await self._failure(
                ErrorKind.SCHEMA_VIOLATION, SCHEMA_VIOLATION_MESSAGE, exc, raw_text
            )
        except Exception as exc:
            return await self._failure(
                ErrorKind.MALFORMED_RESPONSE, SCHEMA_VIOLATION_MESSAGE, exc, raw_text
            )

        entry_count = len(validated.entries) if isinstance(validated, ThreadSplitResponse) else 1
        await logger.ainfo(
            "formatting_completed",
            kind=validated.kind,
            entry_count=entry_count,
            should_split=should_split,
            attempted_fixes=recovered.attempted_fixes,
        )
        return FormattingSuccess(data=validated)

    async def _failure(
        self, kind: ErrorKind, message: str, exc: Exception, raw_text: str
    ) -> FormattingFailure:
        await logger.awarning(
            "formatting_failed",
            error_kind=kind.value,
            exc_type=type(exc).__name__,
            error=str(exc),
            input_length=len(raw_text),
        )
        return FormattingFailure(error=message, error_kind=kind)
