"""Periodic sync of stored rooms against the platform's room list.

The platform is the source of truth for membership, moderators and
descriptions. Local state stays authoritative for title identity, owner
and visibility, which the platform does not track.

Known limitation: the platform may keep reporting a room the bot has
delisted and left while its own cache is stale. Such a room is added back
as a hidden room; nothing here tries to detect that.
"""

import asyncio
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from loguru import logger

from roombot.models.room import Room
from roombot.platform.base import BasePlatform, PlatformError
from roombot.storage.store import RoomStore

DEFAULT_INTERVAL_S = 60


@dataclass
class SyncReport:
    """What a single reconciliation run did."""

    started_at: datetime = field(default_factory=datetime.now)
    updated: List[str] = field(default_factory=list)
    added: List[str] = field(default_factory=list)
    conflicts: List[str] = field(default_factory=list)
    aborted: bool = False
    error: Optional[str] = None

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated)

    def summary(self) -> str:
        if self.aborted:
            return f"aborted: {self.error}"
        return (
            f"{len(self.updated)} updated, {len(self.added)} added, "
            f"{len(self.conflicts)} conflicts"
        )


class RoomReconciler:
    """Merges the platform's room list into the store on a fixed interval.

    Example:
        reconciler = RoomReconciler(store, platform, interval_s=60)
        await reconciler.start()   # first run happens right away
        ...
        reconciler.stop()
    """

    def __init__(
        self,
        store: RoomStore,
        platform: BasePlatform,
        interval_s: float = DEFAULT_INTERVAL_S,
    ):
        self.store = store
        self.platform = platform
        self.interval_s = interval_s

        self._running = False
        self._task: Optional[asyncio.Task] = None
        self.last_report: Optional[SyncReport] = None

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the sync loop."""
        if self._running:
            logger.warning("Room sync already running")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Room sync started (every {self.interval_s:.0f}s)")

    def stop(self) -> None:
        """Stop the sync loop."""
        self._running = False
        if self._task:
            self._task.cancel()
            self._task = None
            logger.info("Room sync stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self.reconcile_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("Unexpected error during room sync")
            await asyncio.sleep(self.interval_s)

    async def _fetch_views(self, report: SyncReport) -> Optional[List[Room]]:
        """Fetch the platform room list and turn it into transient views.

        Returns:
            Room views, or None if the run must be aborted
        """
        response = None
        try:
            response = await self.platform.get_rooms()
            if not isinstance(response, dict) or "rooms" not in response:
                raise PlatformError("No rooms in response")
            return [Room.from_platform(entry) for entry in response["rooms"]]
        except (PlatformError, KeyError, TypeError) as e:
            logger.error(f"Error getting rooms from server. Response: {response!r}, Error: {e!r}")
            report.aborted = True
            report.error = str(e) or type(e).__name__
            return None

    async def reconcile_once(self) -> SyncReport:
        """Run one sync pass.

        Rooms are matched by group id. A matched room only gets its members,
        moderators, description and last-updated time refreshed. An unmatched
        room whose title is already used by another group id is skipped with a
        warning. Anything else is inserted as a new hidden room. The store is
        saved once at the end.

        Returns:
            SyncReport describing the run
        """
        report = SyncReport()
        logger.debug("Updating room state")

        views = await self._fetch_views(report)
        if views is None:
            self.last_report = report
            return report

        async with self.store.transaction():
            now = datetime.now()
            for view in views:
                existing = self.store.find_by_group_id(view.group_id)
                if existing is not None:
                    existing.members = view.members
                    existing.moderators = view.moderators
                    existing.description = view.description
                    existing.last_updated = now
                    report.updated.append(existing.title)
                    continue

                # Bot was added to a room outside of /create, e.g. given moderator rights
                inserted = self.store.insert(view)
                if not inserted.ok:
                    conflicting = self.store.get(view.title)
                    logger.warning(f'Added to room with conflicting title: "{view.title}"')
                    logger.warning(f"New: {view.group_id}, Existing: {conflicting.group_id}")
                    report.conflicts.append(view.title)
                    continue

                logger.info(f'Discovered room "{view.title}" ({view.group_id}), listing as hidden')
                report.added.append(view.title)

            self.store.save()

        logger.debug(f"Room sync finished: {report.summary()}")
        self.last_report = report
        return report
