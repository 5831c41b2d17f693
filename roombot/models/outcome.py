"""Explicit results for lookups and validation.

Lookups and validators never raise for expected failures. They return an
``Outcome`` carrying either a value or a ``Failure`` kind, and each command
handler picks the user-facing message for the kind it received.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class Failure(Enum):
    """Kinds of failure a command can run into."""

    NOT_FOUND = "not_found"  # title or group id lookup failed
    UNAUTHORIZED = "unauthorized"  # sender lacks the required role
    INVALID = "invalid"  # empty/oversized title, bad visibility, missing arg
    CONFLICT = "conflict"  # duplicate title
    TRANSPORT = "transport"  # platform call failed or returned garbage


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or a failure kind with operator-facing detail."""

    value: Optional[T] = None
    failure: Optional[Failure] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.failure is None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, failure: Failure, detail: str = "") -> "Outcome[T]":
        return cls(failure=failure, detail=detail)


def validate_title(title: str, max_length: int) -> Outcome[str]:
    """Check a room title typed by a user.

    Args:
        title: Title as re-joined from the command arguments
        max_length: Maximum number of characters allowed

    Returns:
        Outcome holding the title, or INVALID with the reason in ``detail``
        ("empty" or "too_long")
    """
    if not title:
        return Outcome.fail(Failure.INVALID, "empty")
    if len(title) > max_length:
        return Outcome.fail(Failure.INVALID, "too_long")
    return Outcome.success(title)
