"""Persistence for room state."""

from roombot.storage.brain import Brain, FileBrain, MemoryBrain
from roombot.storage.store import DEFAULT_STATE_KEY, RoomStore

__all__ = ["Brain", "FileBrain", "MemoryBrain", "RoomStore", "DEFAULT_STATE_KEY"]
