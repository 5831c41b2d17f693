"""Room visibility and the rules attached to each value."""

from enum import Enum
from typing import Any

from loguru import logger

from roombot.models.outcome import Failure, Outcome


class Visibility(str, Enum):
    """How users can find and join a room."""

    PUBLIC = "public"  # listed, direct join when the bot moderates the room
    PRIVATE = "private"  # listed, join by invite only
    HIDDEN = "hidden"  # unlisted, invite only

    @property
    def listed(self) -> bool:
        """Whether the room shows up in ``list``."""
        return _RULES[self]["listed"]

    @property
    def allows_direct_join(self) -> bool:
        """Whether ``join`` may add users directly.

        Only a precondition: the bot must also be a moderator of the room.
        """
        return _RULES[self]["direct_join"]

    @property
    def label(self) -> str:
        """Suffix printed after the title in room listings."""
        return _RULES[self]["label"]

    @classmethod
    def parse(cls, value: str) -> Outcome["Visibility"]:
        """Parse user input case-insensitively."""
        text = (value or "").strip().lower()
        for member in cls:
            if member.value == text:
                return Outcome.success(member)
        return Outcome.fail(Failure.INVALID, f"unknown visibility {value!r}")

    @classmethod
    def coerce(cls, value: Any) -> "Visibility":
        """Read a persisted value, treating anything unknown as hidden."""
        if isinstance(value, cls):
            return value
        parsed = cls.parse(str(value) if value is not None else "")
        if parsed.ok:
            return parsed.value
        logger.warning(f"Unknown stored visibility {value!r}, treating room as hidden")
        return cls.HIDDEN


_RULES = {
    Visibility.PUBLIC: {"listed": True, "direct_join": True, "label": ""},
    Visibility.PRIVATE: {"listed": True, "direct_join": False, "label": " (private)"},
    Visibility.HIDDEN: {"listed": False, "direct_join": False, "label": ""},
}

DEFAULT_VISIBILITY = Visibility.PRIVATE
DISCOVERED_VISIBILITY = Visibility.HIDDEN
