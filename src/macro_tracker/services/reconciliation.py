"""Loads a date's entries into the local store when the user navigates."""

import logging
from dataclasses import dataclass
from datetime import date

from macro_tracker.domain.logs import LogEntry
from macro_tracker.services.log_store import LocalLogStore
from macro_tracker.services.notifications import LEVEL_WARNING, NotificationCenter
from macro_tracker.services.remote_store import RemoteStore
from macro_tracker.services.sync import SyncDispatcher

logger = logging.getLogger(__name__)

SOURCE_REMOTE = "remote"
SOURCE_EMPTY = "empty"
SOURCE_PENDING = "pending"
SOURCE_ERROR = "error"
SOURCE_STALE = "stale"


@dataclass(frozen=True)
class LoadResult:
    """Outcome of loading a date."""

    day: date
    entries: list[LogEntry]
    source: str


@dataclass
class ReconciliationLoader:
    """Replaces local state with the remote record for a date.

    Remote is authoritative on navigation, except when the dispatcher still
    holds a write for that date that has not been acknowledged: that snapshot
    is newer than anything the remote can return.
    """

    remote_store: RemoteStore
    store: LocalLogStore
    dispatcher: SyncDispatcher
    notifications: NotificationCenter
    _requested_day: date | None = None

    async def load(self, day: date) -> LoadResult:
        """Load ``day`` into the store and report where the entries came from."""
        self._requested_day = day
        pending = self.dispatcher.pending_snapshot(day)
        if pending is not None:
            self.store.replace_all(day, pending)
            return LoadResult(day=day, entries=pending, source=SOURCE_PENDING)

        try:
            record = await self.remote_store.load_day(day)
        except Exception:
            logger.exception("Failed to load day", extra={"day": day.isoformat()})
            if self._requested_day != day:
                return LoadResult(day=day, entries=[], source=SOURCE_STALE)
            self.notifications.push(
                f"Couldn't load {day.isoformat()}. Showing an empty day.",
                level=LEVEL_WARNING,
            )
            self.store.replace_all(day, [])
            return LoadResult(day=day, entries=[], source=SOURCE_ERROR)

        if self._requested_day != day:
            # The user moved on while this read was in flight.
            return LoadResult(day=day, entries=[], source=SOURCE_STALE)

        pending = self.dispatcher.pending_snapshot(day)
        if pending is not None:
            self.store.replace_all(day, pending)
            return LoadResult(day=day, entries=pending, source=SOURCE_PENDING)

        if record is None:
            self.store.replace_all(day, [])
            return LoadResult(day=day, entries=[], source=SOURCE_EMPTY)

        self.store.replace_all(day, record.entries)
        self.dispatcher.mark_synced(day, self.store.entries)
        logger.info(
            "Loaded day",
            extra={"day": day.isoformat(), "entries": len(record.entries)},
        )
        return LoadResult(day=day, entries=self.store.entries, source=SOURCE_REMOTE)
