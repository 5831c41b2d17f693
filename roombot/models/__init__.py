"""Data models for managed rooms."""

from .outcome import Failure, Outcome, validate_title
from .room import Room
from .visibility import Visibility

__all__ = [
    "Room",
    "Visibility",
    "Failure",
    "Outcome",
    "validate_title",
]
