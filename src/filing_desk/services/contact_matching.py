"""Fuzzy matching of extracted sender/recipient names to known contacts.

Matching never invents a contact: anything that does not clearly resolve to
a known contact yields no match, and first-person references ("me", the
user's own name) never match at all.
"""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence
from email.utils import parseaddr
from enum import IntEnum
from typing import NamedTuple

from filing_desk.schemas.contacts import Contact, ContactMatchResult
from filing_desk.schemas.formatting import Direction, FormattedEntry

_PUNCTUATION_RE = re.compile(r"[^a-z0-9\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_ADDRESS_RE = re.compile(r"<?(?P<address>[^\s<>@,;]+@[^\s<>@,;]+)>?")
_NAME_TRIM = " \"'<>,;()"

SELF_TOKENS = frozenset({"me", "i", "myself", "us", "we"})

# Given-name variants; any two names in a group are equivalent
NICKNAME_GROUPS: tuple[frozenset[str], ...] = (
    frozenset({"frederick", "freddie", "fred"}),
    frozenset({"benjamin", "ben", "benny"}),
    frozenset({"william", "will", "bill"}),
    frozenset({"robert", "rob", "bob"}),
    frozenset({"richard", "rick", "dick"}),
    frozenset({"jonathan", "jon", "john"}),
    frozenset({"matthew", "matt"}),
    frozenset({"christopher", "chris"}),
)


def normalize_name(name: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    return _WHITESPACE_RE.sub(" ", _PUNCTUATION_RE.sub("", name.lower())).strip()


def are_nicknames(first: str, second: str) -> bool:
    """Check whether two given names are variants of each other."""
    if first == second:
        return False
    return any(first in group and second in group for group in NICKNAME_GROUPS)


class NameRule(IntEnum):
    """Name rules, weakest first."""

    NONE = 0
    SUBSTRING = 1
    NICKNAME = 2
    FIRST_NAME = 3
    EXACT = 4


class NameScore(NamedTuple):
    """Strongest rule satisfied, then how many name tokens it consumed."""

    rule: NameRule
    tokens: int


NO_MATCH = NameScore(NameRule.NONE, 0)


def name_match_score(extracted: str, contact_name: str) -> NameScore:
    """Score how well an extracted name matches a contact name.

    Scores compare as tuples, so an exact match always beats a first-name,
    nickname or substring match, whatever the token counts.

    Args:
        extracted: Normalized extracted name.
        contact_name: Normalized contact name.

    Returns:
        The best satisfied rule, or ``NO_MATCH``.
    """
    if not extracted or not contact_name:
        return NO_MATCH

    extracted_tokens = extracted.split(" ")
    contact_tokens = contact_name.split(" ")

    if extracted == contact_name:
        return NameScore(NameRule.EXACT, len(extracted_tokens))
    if extracted_tokens[0] == contact_tokens[0]:
        return NameScore(NameRule.FIRST_NAME, 1)
    if are_nicknames(extracted_tokens[0], contact_tokens[0]):
        return NameScore(NameRule.NICKNAME, 1)
    if extracted in contact_name:
        return NameScore(NameRule.SUBSTRING, len(extracted_tokens))
    if contact_name in extracted:
        return NameScore(NameRule.SUBSTRING, len(contact_tokens))
    return NO_MATCH


def is_self_reference(text: str, self_aliases: Iterable[str] = ()) -> bool:
    """Check whether text refers to the user rather than a correspondent."""
    normalized = normalize_name(text)
    aliases = {normalize_name(alias) for alias in self_aliases}
    return normalized in SELF_TOKENS or normalized in aliases


def split_address(text: str) -> tuple[str, str | None]:
    """Separate an email address from the name written around it.

    Handles ``Name <address>``, a bare address and ``Name address``.

    Returns:
        ``(name, address)``; the name may be empty, the address None.
    """
    found = _ADDRESS_RE.search(text)
    if found is None:
        return text.strip(), None
    if "<" in text:
        display_name, address = parseaddr(text.strip())
        if "@" in address:
            return display_name.strip(), address
    remainder = f"{text[: found.start()]} {text[found.end() :]}"
    return remainder.strip(_NAME_TRIM), found.group("address")


def _match_email(address: str, contacts: Sequence[Contact]) -> Contact | None:
    wanted = address.strip().lower()
    for contact in contacts:
        if any(email.strip().lower() == wanted for email in contact.all_emails):
            return contact
    return None


def _match_by_name(name: str, contacts: Sequence[Contact]) -> Contact | None:
    extracted = normalize_name(name)
    best: Contact | None = None
    best_score = NO_MATCH
    for contact in contacts:
        score = name_match_score(extracted, normalize_name(contact.name))
        # Strictly greater: ties keep display order
        if score > best_score:
            best = contact
            best_score = score
    return best


def match_name(
    extracted: str | None,
    contacts: Sequence[Contact],
    self_aliases: Iterable[str] = (),
) -> Contact | None:
    """Match one extracted name or address to a known contact.

    A known address wins outright; otherwise the name written beside the
    address (if any) is matched by name.

    Args:
        extracted: Name, address, ``Name <address>`` or ``Name address`` as
            written in the text.
        contacts: Known contacts for the business, in display order.
        self_aliases: Additional names that refer to the user.

    Returns:
        The best matching contact, or None.
    """
    if not extracted or not extracted.strip():
        return None

    aliases = tuple(self_aliases)
    if is_self_reference(extracted, aliases):
        return None

    name, address = split_address(extracted)
    if address is not None:
        contact = _match_email(address, contacts)
        if contact is not None:
            return contact
    if not name or is_self_reference(name, aliases):
        return None
    return _match_by_name(name, contacts)


def _candidate_names(entry: FormattedEntry) -> list[str]:
    names = entry.extracted_names
    if names is None:
        return []
    if entry.direction_guess is Direction.RECEIVED:
        candidates = [names.sender]
    elif entry.direction_guess is Direction.SENT:
        candidates = [names.recipient]
    else:
        candidates = [names.sender, names.recipient]
    return [name for name in candidates if name]


def match_entries_to_contacts(
    entries: Sequence[FormattedEntry],
    contacts: Sequence[Contact],
    self_aliases: Iterable[str] = (),
) -> list[ContactMatchResult]:
    """Attribute each split entry to a contact.

    Received entries match the sender, sent entries the recipient; entries
    with no direction try the sender, then the recipient.

    Args:
        entries: Entries from a thread split, in order.
        contacts: Known contacts for the business.
        self_aliases: Additional names that refer to the user.

    Returns:
        One ContactMatchResult per entry, same order.
    """
    aliases = tuple(self_aliases)
    results: list[ContactMatchResult] = []
    for entry in entries:
        result = ContactMatchResult.no_match()
        for name in _candidate_names(entry):
            contact = match_name(name, contacts, aliases)
            if contact is not None:
                result = ContactMatchResult(
                    contact_id=contact.id,
                    contact_name=contact.name,
                    matched_from=name,
                    confidence="high",
                )
                break
        results.append(result)
    return results
