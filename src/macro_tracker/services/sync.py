"""Debounced synchronization of day entries to the remote store."""

import asyncio
import hashlib
import json
import logging
from dataclasses import dataclass, field
from datetime import date

from macro_tracker.domain.logs import LogEntry
from macro_tracker.domain.stats import DailyAggregate
from macro_tracker.services.notifications import NotificationCenter
from macro_tracker.services.remote_store import RemoteStore
from macro_tracker.services.wire import entry_to_payload

logger = logging.getLogger(__name__)


def fingerprint(entries: list[LogEntry]) -> str:
    """Return a stable digest of an entry set's content."""
    rows = sorted((entry_to_payload(entry) for entry in entries), key=_by_id)
    encoded = json.dumps(rows, sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(encoded.encode()).hexdigest()


def _by_id(row: dict[str, object]) -> str:
    return str(row["id"])


@dataclass(frozen=True)
class _Snapshot:
    entries: list[LogEntry]
    totals: DailyAggregate
    fingerprint: str


@dataclass
class _DaySyncState:
    pending: _Snapshot | None = None
    timer: asyncio.Task | None = None
    last_sequence: int = 0
    acked_sequence: int = 0
    acked_fingerprint: str | None = None
    in_flight: dict[int, _Snapshot] = field(default_factory=dict)
    write_lock: asyncio.Lock = field(default_factory=asyncio.Lock)


@dataclass
class SyncDispatcher:
    """Coalesces day mutations into full-replace writes.

    Each date has its own timer. A new mutation for a date restarts that
    date's timer and replaces its pending snapshot, so only the latest state
    is ever written. Writes for one date go out one at a time in the order
    they were committed, each tagged with a sequence number; only the newest
    acknowledged write updates the acknowledged fingerprint.
    """

    remote_store: RemoteStore
    notifications: NotificationCenter
    debounce_seconds: float = 0.5
    _states: dict[date, _DaySyncState] = field(default_factory=dict)
    _tasks: set[asyncio.Task] = field(default_factory=set)

    def schedule(
        self,
        day: date,
        entries: list[LogEntry],
        totals: DailyAggregate,
        immediate: bool = False,
        force: bool = False,
    ) -> bool:
        """Schedule a write of ``entries`` for ``day``.

        Returns False when the content already matches the last acknowledged
        write and nothing needs to be sent. ``force`` writes anyway, e.g. when
        only the goals behind ``totals`` changed.
        """
        state = self._states.setdefault(day, _DaySyncState())
        digest = fingerprint(entries)
        if not force and digest == state.acked_fingerprint and not state.in_flight:
            self._cancel_timer(state)
            state.pending = None
            return False
        state.pending = _Snapshot(list(entries), totals, digest)
        self._start_timer(day, state, 0.0 if immediate else self.debounce_seconds)
        return True

    def pending_snapshot(self, day: date) -> list[LogEntry] | None:
        """Return the newest entry set not yet acknowledged for ``day``."""
        state = self._states.get(day)
        if state is None:
            return None
        if state.pending is not None:
            return list(state.pending.entries)
        if state.in_flight:
            newest = state.in_flight[max(state.in_flight)]
            return list(newest.entries)
        return None

    def mark_synced(self, day: date, entries: list[LogEntry]) -> None:
        """Record ``entries`` as matching remote state, e.g. after a load."""
        state = self._states.setdefault(day, _DaySyncState())
        if state.pending is None and not state.in_flight:
            state.acked_fingerprint = fingerprint(entries)

    def flush(self) -> None:
        """Fire every waiting timer now."""
        for day, state in self._states.items():
            if state.pending is not None:
                self._start_timer(day, state, 0.0)

    async def drain(self) -> None:
        """Flush and wait until no write is waiting or in flight."""
        self.flush()
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _start_timer(self, day: date, state: _DaySyncState, delay: float) -> None:
        self._cancel_timer(state)
        task = asyncio.get_running_loop().create_task(self._run(day, state, delay))
        state.timer = task
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    @staticmethod
    def _cancel_timer(state: _DaySyncState) -> None:
        if state.timer is not None and not state.timer.done():
            state.timer.cancel()
        state.timer = None

    async def _run(self, day: date, state: _DaySyncState, delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
        # From here on the write is committed; it is no longer a cancellable timer.
        state.timer = None
        snapshot = state.pending
        state.pending = None
        if snapshot is None:
            return
        state.last_sequence += 1
        sequence = state.last_sequence
        state.in_flight[sequence] = snapshot
        try:
            async with state.write_lock:
                if sequence < state.last_sequence:
                    logger.debug(
                        "Skipping superseded write",
                        extra={"day": day.isoformat(), "sequence": sequence},
                    )
                    return
                await self.remote_store.save_day(
                    day, snapshot.entries, snapshot.totals
                )
        except Exception:
            logger.exception(
                "Failed to sync day",
                extra={"day": day.isoformat(), "sequence": sequence},
            )
            # A failed write may still have landed, fully or in part.
            if sequence >= state.acked_sequence:
                state.acked_fingerprint = None
            self.notifications.push(
                f"Couldn't save {day.isoformat()}. Your changes are kept and "
                "will be sent with your next edit."
            )
            return
        finally:
            state.in_flight.pop(sequence, None)
        if sequence > state.acked_sequence:
            state.acked_sequence = sequence
            state.acked_fingerprint = snapshot.fingerprint
        logger.info(
            "Synced day",
            extra={
                "day": day.isoformat(),
                "sequence": sequence,
                "entries": len(snapshot.entries),
            },
        )
