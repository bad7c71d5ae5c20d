"""The selected-date context: entries, totals and their synchronization."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

from macro_tracker.domain.goals import DEFAULT_GOALS, MacroGoals
from macro_tracker.domain.logs import LogEntry
from macro_tracker.domain.stats import DailyAggregate
from macro_tracker.services.aggregator import aggregate, build_entry
from macro_tracker.services.catalog import CatalogService
from macro_tracker.services.dates import timestamp_for_day, today_in
from macro_tracker.services.log_store import (
    CHANGE_REMOVE,
    CHANGE_REPLACE,
    LocalLogStore,
    StoreChange,
)
from macro_tracker.services.reconciliation import LoadResult, ReconciliationLoader
from macro_tracker.services.sync import SyncDispatcher

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


@dataclass(frozen=True)
class DaySnapshot:
    """What the client renders for the selected date."""

    day: date
    entries: list[LogEntry]
    totals: DailyAggregate
    goals: MacroGoals


@dataclass
class DailyTrackerService:
    """Wires the log store to the aggregator and the sync dispatcher.

    Every store mutation recomputes totals and, unless it came from a load,
    schedules a write. Deletes are written immediately; adds are debounced.
    """

    store: LocalLogStore
    dispatcher: SyncDispatcher
    loader: ReconciliationLoader
    catalog: CatalogService
    timezone: str
    goals: MacroGoals = DEFAULT_GOALS
    clock: Callable[[], datetime] = field(default=_utc_now)
    _totals: DailyAggregate | None = None

    def __post_init__(self) -> None:
        self._totals = aggregate(self.store.entries, self.goals)
        self.store.subscribe(self._on_change)

    @property
    def day(self) -> date:
        return self.store.day

    @property
    def totals(self) -> DailyAggregate:
        if self._totals is None:
            self._totals = aggregate(self.store.entries, self.goals)
        return self._totals

    def today(self) -> date:
        return today_in(self.timezone, self.clock())

    async def select_day(self, day: date) -> LoadResult:
        """Switch to ``day``; pending writes for the previous day still run."""
        return await self.loader.load(day)

    def add_entry(self, food_id: str, quantity: float) -> LogEntry:
        """Log ``quantity`` of a catalog food against the selected date."""
        food = self.catalog.get(food_id)
        timestamp = timestamp_for_day(self.store.day, self.timezone, self.clock())
        entry = build_entry(food, quantity, timestamp)
        return self.store.add(entry)

    def delete_entry(self, entry_id: str) -> bool:
        return self.store.remove(entry_id)

    def set_goals(self, goals: MacroGoals, sync: bool = True) -> DailyAggregate:
        """Use new goals for the totals of the selected date.

        When the goals changed and ``sync`` is set, the day is rewritten so
        its stored summary reflects the new calorie goal. Pass ``sync=False``
        for goals loaded before any date is selected.
        """
        changed = goals != self.goals
        self.goals = goals
        self._totals = aggregate(self.store.entries, goals)
        if sync and changed:
            self.dispatcher.schedule(
                self.store.day, self.store.entries, self._totals, force=True
            )
        return self._totals

    def snapshot(self) -> DaySnapshot:
        return DaySnapshot(
            day=self.store.day,
            entries=self.store.entries,
            totals=self.totals,
            goals=self.goals,
        )

    def _on_change(self, change: StoreChange) -> None:
        self._totals = aggregate(change.entries, self.goals)
        if change.kind == CHANGE_REPLACE:
            return
        self.dispatcher.schedule(
            change.day,
            change.entries,
            self._totals,
            immediate=change.kind == CHANGE_REMOVE,
        )
        logger.debug(
            "Scheduled sync",
            extra={"day": change.day.isoformat(), "change": change.kind},
        )
