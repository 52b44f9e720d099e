"""Rule-based extraction of contacts from pasted legacy documents.

Legacy correspondence files usually open with a contacts section (names,
roles, emails, phone numbers) followed by dotted separators and the
correspondence itself. Only what is explicitly present is extracted.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from filing_desk.schemas.contacts import ContactExtractionResult, ExtractedContact

# A capitalized multi-word name on one line
_NAME = r"[A-Z][a-z]+(?:[ \t]+[A-Z][a-z']+)+"

_SECTION_RE = re.compile(
    r"^[ \t]*(?:Contact (?:Details|Information)|Contacts?|People)[ \t]*(?::|[-–][ \t]*$|$)"
    r"[ \t]*(.*?)"
    r"(?:\.{20,}|…{20,}|^[ \t]*(?:Email from|From:|Sent:|Subject:|Correspondence|Messages?)\b|\Z)",
    re.IGNORECASE | re.MULTILINE | re.DOTALL,
)
_BEFORE_SEPARATOR_RE = re.compile(r"^(.*?)(?:\.{20,}|…{20,})", re.DOTALL)
_CONTACT_HINT_RE = re.compile(r"@|tel|phone|mobile", re.IGNORECASE)
_BLOCK_SEPARATOR_RE = re.compile(r"\.{10,}|…{10,}")

_SECTION_HEADER_LINE_RE = re.compile(
    r"^(?:Contacts?|Current contacts?|Previous contacts?|New contacts|Key contacts)"
    r":?\s*[-–]?\s*$",
    re.IGNORECASE,
)
_OFFICE_LINE_RE = re.compile(r"^(?:Head office|Office|Website|Address)\s*[-–:]", re.IGNORECASE)
_ADDRESS_LINE_RE = re.compile(
    r"^\d+\s+\w+|,\s*\w+\s+\w+\d+\s+\w+|United Kingdom$", re.IGNORECASE
)
_NEW_CONTACT_LINE_RE = re.compile(rf"^{_NAME}\s*[-–(]")

_EMAIL_RE = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_PHONE_RE = re.compile(r"\b(?:Tel|Phone|Mobile)[:\s-]+([^\n]+)", re.IGNORECASE)
_EMAIL_LABEL_TAIL_RE = re.compile(r"email:.*", re.IGNORECASE)

_NOT_A_ROLE_RE = re.compile(r"took over|replaced|previously", re.IGNORECASE)
_ROLE_EDGE_RE = re.compile(r"^[-–()\s]+|[-–()\s]+$")
_ROLE_LABEL_RE = re.compile(r"^(?:Role|Title|Position)[:\s-]+", re.IGNORECASE)
_NORMALIZE_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")

NameRole = tuple[str, str | None]


@dataclass(frozen=True, slots=True)
class NameRoleRule:
    """A named strategy for pulling a name and role out of a contact block."""

    name: str
    extract: Callable[[str, list[str]], NameRole | None]

    def __call__(self, block: str, lines: list[str]) -> NameRole | None:
        return self.extract(block, lines)


def _role_from_parenthetical(text: str | None) -> str | None:
    if not text:
        return None
    text = text.strip()
    if _NOT_A_ROLE_RE.search(text):
        return None
    return text


_LABELLED_CONTACT_RE = re.compile(
    rf"(?i:current contact|main contact)\s*[-–]\s*({_NAME})(?:\s*\(([^)]+)\))?"
)
_DASH_RE = re.compile(rf"^({_NAME})[ \t]*[-–][ \t]*([^(\n]+)", re.MULTILINE)
_PAREN_RE = re.compile(rf"^({_NAME})[ \t]*\(([^)]+)\)", re.MULTILINE)
_FIRST_LINE_RE = re.compile(r"^([A-Z][a-z']+(?:[ \t]+[A-Z][a-z']+)+)(?:\s*[-–]\s*)?(.*)$")
_NAME_LABEL_RE = re.compile(r"Name[:\s-]+([^\n]+)", re.IGNORECASE)
_ROLE_LABEL_FIELD_RE = re.compile(r"(?:Role|Title|Position)[:\s-]+([^\n]+)", re.IGNORECASE)
_CONTACT_FIELD_PREFIXES = ("tel", "email", "phone")


def _labelled_contact(block: str, lines: list[str]) -> NameRole | None:
    match = _LABELLED_CONTACT_RE.search(block)
    if match is None:
        return None
    return match.group(1).strip(), _role_from_parenthetical(match.group(2))


def _dash_delimited(block: str, lines: list[str]) -> NameRole | None:
    match = _DASH_RE.search(block)
    if match is None:
        return None
    return match.group(1).strip(), match.group(2).strip()


def _parenthetical(block: str, lines: list[str]) -> NameRole | None:
    match = _PAREN_RE.search(block)
    if match is None:
        return None
    return match.group(1).strip(), _role_from_parenthetical(match.group(2))


def _first_line(block: str, lines: list[str]) -> NameRole | None:
    first = lines[0]
    match = _FIRST_LINE_RE.match(first)
    if match is None or ":" in first:
        return None

    role: str | None = None
    trailing = match.group(2).strip()
    if trailing and not trailing.lower().startswith(("tel", "email")):
        role = trailing
    elif len(lines) > 1:
        second = lines[1]
        if not second.lower().startswith(_CONTACT_FIELD_PREFIXES) and "@" not in second:
            role = second
    return match.group(1).strip(), role


def _labelled_fields(block: str, lines: list[str]) -> NameRole | None:
    name_match = _NAME_LABEL_RE.search(block)
    role_match = _ROLE_LABEL_FIELD_RE.search(block)
    if name_match is None and role_match is None:
        return None
    name = name_match.group(1).strip() if name_match else ""
    role = role_match.group(1).strip() if role_match else None
    return name, role


NAME_ROLE_RULES: tuple[NameRoleRule, ...] = (
    NameRoleRule("labelled_contact", _labelled_contact),
    NameRoleRule("dash_delimited", _dash_delimited),
    NameRoleRule("parenthetical", _parenthetical),
    NameRoleRule("first_line", _first_line),
    NameRoleRule("labelled_fields", _labelled_fields),
)


def _clean_role(role: str | None) -> str | None:
    if not role:
        return None
    cleaned = _ROLE_LABEL_RE.sub("", _ROLE_EDGE_RE.sub("", role)).strip()
    return cleaned or None


def parse_contact_block(
    block: str, rules: tuple[NameRoleRule, ...] = NAME_ROLE_RULES
) -> ExtractedContact:
    """Parse one contact block; only the first matching name/role rule is used.

    Args:
        block: Lines describing a single contact.
        rules: Ordered name/role rules.

    Returns:
        ExtractedContact (name may be empty when only an email was found).
    """
    lines = [line.strip() for line in block.split("\n") if line.strip()]

    email_match = _EMAIL_RE.search(block)
    email = email_match.group(0).strip().lower() if email_match else None

    phone: str | None = None
    phone_match = _PHONE_RE.search(block)
    if phone_match:
        phone = _EMAIL_LABEL_TAIL_RE.sub("", phone_match.group(1)).strip() or None

    name, role = "", None
    if lines:
        for rule in rules:
            found = rule(block, lines)
            if found is not None:
                name, role = found
                break

    return ExtractedContact(
        name=name,
        email=email,
        phone=phone,
        role=_clean_role(role),
        raw_text=block.strip(),
    )


def _flush(block: list[str], contacts: list[ExtractedContact]) -> None:
    if not block:
        return
    contact = parse_contact_block("\n".join(block))
    if contact.name or contact.email:
        contacts.append(contact)


def extract_contacts_from_section(section_text: str) -> ContactExtractionResult:
    """Split a contacts section into blocks and parse each one."""
    contacts: list[ExtractedContact] = []

    for part in _BLOCK_SEPARATOR_RE.split(section_text):
        if not part.strip():
            continue
        block: list[str] = []
        for raw_line in part.split("\n"):
            line = raw_line.strip()
            if not line or _SECTION_HEADER_LINE_RE.match(line):
                _flush(block, contacts)
                block = []
                continue
            if _OFFICE_LINE_RE.match(line) or _ADDRESS_LINE_RE.search(line):
                continue
            if _NEW_CONTACT_LINE_RE.match(line) and block:
                _flush(block, contacts)
                block = [line]
            else:
                block.append(line)
        _flush(block, contacts)

    return ContactExtractionResult(
        contacts=contacts,
        has_contacts_section=bool(contacts),
        contacts_section_text=section_text if contacts else None,
    )


def extract_contacts(text: str) -> ContactExtractionResult:
    """Extract contacts from pasted document text.

    Args:
        text: Raw pasted text, typically the top of a legacy correspondence file.

    Returns:
        ContactExtractionResult; empty when no contacts section is found.
    """
    match = _SECTION_RE.search(text)
    if match is not None:
        return extract_contacts_from_section(match.group(1))

    before = _BEFORE_SEPARATOR_RE.match(text)
    if before is not None and _CONTACT_HINT_RE.search(before.group(1)):
        return extract_contacts_from_section(before.group(1))

    return ContactExtractionResult(contacts=[], has_contacts_section=False)


def normalize_contact_name(name: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    return _WHITESPACE_RE.sub(" ", _NORMALIZE_RE.sub("", name.lower())).strip()


def is_same_contact(a: ExtractedContact, b: ExtractedContact) -> bool:
    """Compare emails when both have one, otherwise normalized names."""
    if a.email and b.email:
        return a.email.lower() == b.email.lower()
    return normalize_contact_name(a.name) == normalize_contact_name(b.name)


def dedupe_contacts(contacts: Iterable[ExtractedContact]) -> list[ExtractedContact]:
    """Drop later contacts that describe someone already seen."""
    unique: list[ExtractedContact] = []
    for contact in contacts:
        if not any(is_same_contact(contact, seen) for seen in unique):
            unique.append(contact)
    return unique
