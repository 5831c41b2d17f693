"""Room state reconciliation."""

from roombot.sync.reconciler import RoomReconciler, SyncReport

__all__ = ["RoomReconciler", "SyncReport"]
