"""Room state store: title -> Room, persisted as one blob in the brain."""

import asyncio
import json
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Iterator, List, Optional

from loguru import logger

from roombot.models.outcome import Failure, Outcome
from roombot.models.room import Room
from roombot.storage.brain import Brain

DEFAULT_STATE_KEY = "roombot/state"


class RoomStore:
    """In-memory mapping of room titles to rooms.

    The title is the primary key: at most one room per title. Every save
    overwrites the whole blob (last writer wins, single process).

    Mutations that must observe a consistent snapshot run inside
    ``transaction()``, which holds a single store-wide lock.
    """

    def __init__(self, brain: Brain, key: str = DEFAULT_STATE_KEY):
        self.brain = brain
        self.key = key
        self._rooms: Dict[str, Room] = {}
        self.lock = asyncio.Lock()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def load(self) -> bool:
        """Load rooms from the brain.

        A missing blob leaves the store empty (first run). A malformed blob
        is logged and the current in-memory rooms are kept.

        Returns:
            True if rooms were loaded from a stored blob
        """
        try:
            data = self.brain.get(self.key)
        except Exception as e:
            logger.error(f"Error reading saved state from brain: {e}")
            return False

        if not data:
            logger.debug("No saved room state, starting empty")
            return False

        try:
            state = json.loads(data)
            rooms = {
                title: Room.from_record(title, record)
                for title, record in state["rooms"].items()
            }
        except (json.JSONDecodeError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.error(f"Error loading saved state, keeping current rooms: {e!r}")
            return False

        self._rooms = rooms
        logger.info(f"Loaded {len(rooms)} rooms from brain")
        return True

    def save(self) -> None:
        """Write every room to the brain as a single blob."""
        state = {"rooms": {title: room.to_record() for title, room in self._rooms.items()}}
        blob = json.dumps(state)
        logger.debug(f"Saving state: {blob}")
        self.brain.set(self.key, blob)

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator["RoomStore"]:
        """Hold the store lock for a read-decide-mutate-persist sequence."""
        async with self.lock:
            yield self

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get(self, title: str) -> Optional[Room]:
        return self._rooms.get(title)

    def find_by_group_id(self, group_id: str) -> Optional[Room]:
        """Find a room by its platform group id."""
        for room in self._rooms.values():
            if room.group_id == group_id:
                return room
        return None

    def lookup_title(self, title: str) -> Outcome[Room]:
        room = self._rooms.get(title)
        if room is None:
            return Outcome.fail(Failure.NOT_FOUND, f"no room titled {title!r}")
        return Outcome.success(room)

    def lookup_group(self, group_id: str) -> Outcome[Room]:
        room = self.find_by_group_id(group_id)
        if room is None:
            return Outcome.fail(Failure.NOT_FOUND, f"no room with group id {group_id!r}")
        return Outcome.success(room)

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def insert(self, room: Room) -> Outcome[Room]:
        """Add a new room unless its title is taken."""
        existing = self._rooms.get(room.title)
        if existing is not None:
            return Outcome.fail(
                Failure.CONFLICT,
                f"title {room.title!r} already used by {existing.group_id}",
            )
        self._rooms[room.title] = room
        return Outcome.success(room)

    def remove(self, title: str) -> Optional[Room]:
        """Remove a room by title, returning it if it existed."""
        return self._rooms.pop(title, None)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def titles(self) -> List[str]:
        return list(self._rooms.keys())

    def rooms(self) -> List[Room]:
        """All rooms in insertion order."""
        return list(self._rooms.values())

    def __contains__(self, title: object) -> bool:
        return title in self._rooms

    def __len__(self) -> int:
        return len(self._rooms)

    def __iter__(self) -> Iterator[Room]:
        return iter(self.rooms())
