"""Explicit success/failure values for fail-open call sites.

Components that degrade instead of failing (duplicate checks, contact loading)
return ``Result`` so the degrade policy is visible at the call site:

    result = await load_contacts(business_id)
    contacts = result.unwrap_or([])
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from filing_desk.core.errors import ClassifiedError

T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Successful result carrying a value."""

    value: T

    @property
    def is_ok(self) -> bool:
        """Check if this is a success."""
        return True

    def unwrap_or(self, default: T) -> T:
        """Return the value."""
        return self.value


@dataclass(frozen=True, slots=True)
class Err:
    """Failed result carrying a classified error."""

    error: ClassifiedError

    @property
    def is_ok(self) -> bool:
        """Check if this is a success."""
        return False

    def unwrap_or(self, default: T) -> T:
        """Return the supplied default."""
        return default


Result = Union[Ok[T], Err]
