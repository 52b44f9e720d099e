"""Validation of recovered formatter output against the response contract.

The formatter may answer in exactly two shapes:

- a single entry: an object carrying the ``FormattedEntry`` fields
- a thread split: an object with ``entries`` (list of ``FormattedEntry``)
  and ``warnings``

The wire discriminant is the presence of ``entries``. Values are checked
strictly (no coercion, no defaults) before being handed to pydantic, so a
violation always names the exact offending field.
"""

from __future__ import annotations

from typing import Any

from filing_desk.core.errors import MISSING, ContractViolation
from filing_desk.schemas.formatting import (
    Direction,
    EntryType,
    FormattedEntry,
    FormatterResponse,
    SingleEntryResponse,
    ThreadSplitResponse,
)

_ENTRY_TYPES = tuple(t.value for t in EntryType)
_DIRECTIONS = tuple(d.value for d in Direction)


def validate_formatter_response(value: Any) -> FormatterResponse:
    """Validate a parsed formatter response.

    Args:
        value: Object recovered from the formatting service.

    Returns:
        SingleEntryResponse or ThreadSplitResponse.

    Raises:
        ContractViolation: If any field is missing or of the wrong type.
    """
    if not isinstance(value, dict):
        raise ContractViolation("Response", "root", "an object", value)

    if "entries" in value:
        return _validate_thread_split(value)

    fields = _validate_entry(value, "Single entry")
    return SingleEntryResponse.model_validate({**fields, "kind": "single"})


def _validate_thread_split(value: dict[str, Any]) -> ThreadSplitResponse:
    entries = value["entries"]
    if not isinstance(entries, list):
        raise ContractViolation("Thread split", "entries", "a list", entries)

    warnings = value.get("warnings", MISSING)
    _require_string_list(warnings, "Thread split", "warnings")

    validated = [
        FormattedEntry.model_validate(_validate_entry(entry, f"Entry {index}"))
        for index, entry in enumerate(entries, start=1)
    ]
    return ThreadSplitResponse(entries=validated, warnings=list(warnings))


def _validate_entry(entry: Any, context: str) -> dict[str, Any]:
    """Check one entry and return the contract fields it carries."""
    if not isinstance(entry, dict):
        raise ContractViolation(context, "entry", "an object", entry)

    subject = entry.get("subject_guess", MISSING)
    if not isinstance(subject, str):
        raise ContractViolation(context, "subject_guess", "a string", subject)

    entry_type = entry.get("entry_type_guess", MISSING)
    if not isinstance(entry_type, str) or entry_type not in _ENTRY_TYPES:
        raise ContractViolation(
            context, "entry_type_guess", f"one of {', '.join(_ENTRY_TYPES)}", entry_type
        )

    entry_date = entry.get("entry_date_guess", MISSING)
    if entry_date is not None and not isinstance(entry_date, str):
        raise ContractViolation(context, "entry_date_guess", "a string or null", entry_date)

    fields: dict[str, Any] = {
        "subject_guess": subject,
        "entry_type_guess": entry_type,
        "entry_date_guess": entry_date,
    }

    if "direction_guess" in entry:
        direction = entry["direction_guess"]
        if direction is not None and (
            not isinstance(direction, str) or direction not in _DIRECTIONS
        ):
            raise ContractViolation(
                context, "direction_guess", "sent, received or null", direction
            )
        fields["direction_guess"] = direction

    formatted_text = entry.get("formatted_text", MISSING)
    if not isinstance(formatted_text, str):
        raise ContractViolation(context, "formatted_text", "a string", formatted_text)
    fields["formatted_text"] = formatted_text

    warnings = entry.get("warnings", MISSING)
    _require_string_list(warnings, context, "warnings")
    fields["warnings"] = list(warnings)

    names = entry.get("extracted_names")
    if names is not None:
        if not isinstance(names, dict):
            raise ContractViolation(context, "extracted_names", "an object or null", names)
        for key in ("sender", "recipient"):
            name = names.get(key)
            if name is not None and not isinstance(name, str):
                raise ContractViolation(
                    context, f"extracted_names.{key}", "a string or null", name
                )
        fields["extracted_names"] = {
            "sender": names.get("sender"),
            "recipient": names.get("recipient"),
        }

    return fields


def _require_string_list(value: Any, context: str, field: str) -> None:
    if not isinstance(value, list):
        raise ContractViolation(context, field, "a list of strings", value)
    for item in value:
        if not isinstance(item, str):
            raise ContractViolation(context, field, "a list of strings", item)
