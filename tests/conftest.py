"""Shared test fixtures."""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import pytest

from macro_tracker.config import Settings
from macro_tracker.containers import AppContainer, build_services
from macro_tracker.domain.foods import FoodItem
from macro_tracker.domain.logs import DayRecord, LogEntry
from macro_tracker.domain.stats import DailyAggregate, TrendSummary
from macro_tracker.services.catalog import CatalogService
from macro_tracker.services.log_store import LocalLogStore
from macro_tracker.services.notifications import NotificationCenter
from macro_tracker.services.reconciliation import ReconciliationLoader
from macro_tracker.services.remote_store import RemoteStore, RemoteStoreError
from macro_tracker.services.sync import SyncDispatcher
from macro_tracker.services.tracker import DailyTrackerService

TODAY = date(2026, 10, 18)
TIMEZONE = "Asia/Kolkata"
# 12:00 in Kolkata on TODAY.
NOON_UTC = datetime(2026, 10, 18, 6, 30, tzinfo=UTC)

CHICKEN = FoodItem(
    id="food-chicken",
    name="Chicken breast",
    calories=165,
    protein=31,
    carbs=0,
    fat=3.6,
)
RICE = FoodItem(
    id="food-rice",
    name="Rice",
    calories=130,
    protein=2.7,
    carbs=28,
    fat=0.3,
)


def make_entry(entry_id: str, calories: int = 100, **overrides) -> LogEntry:
    values: dict[str, object] = {
        "id": entry_id,
        "food_id": "food-test",
        "food_name": "Test food",
        "quantity": 1.0,
        "calories": calories,
        "protein": 10.0,
        "carbs": 12.0,
        "fat": 3.0,
        "timestamp": NOON_UTC,
    }
    values.update(overrides)
    return LogEntry(**values)


@dataclass
class InMemoryRemoteStore(RemoteStore):
    """In-memory remote store with full-replace day writes."""

    days: dict[date, list[LogEntry]] = field(default_factory=dict)
    totals: dict[date, DailyAggregate] = field(default_factory=dict)
    foods: list[FoodItem] = field(default_factory=list)
    goals: dict[str, float] = field(default_factory=dict)
    day_writes: list[tuple[date, list[LogEntry]]] = field(default_factory=list)
    catalog_writes: list[list[FoodItem]] = field(default_factory=list)
    goal_writes: list[tuple[str, float]] = field(default_factory=list)
    statistics_writes: list[TrendSummary] = field(default_factory=list)
    range_reads: list[tuple[date, date]] = field(default_factory=list)
    write_delays: list[float] = field(default_factory=list)
    fail_writes: int = 0
    fail_reads: bool = False

    async def load_day(self, day: date) -> DayRecord | None:
        if self.fail_reads:
            raise RuntimeError("network down")
        if day not in self.days:
            return None
        return DayRecord(day=day, entries=list(self.days[day]))

    async def save_day(
        self, day: date, entries: list[LogEntry], totals: DailyAggregate
    ) -> None:
        delay = self.write_delays.pop(0) if self.write_delays else 0.0
        if delay:
            await asyncio.sleep(delay)
        self.day_writes.append((day, list(entries)))
        self._maybe_fail()
        self.days[day] = list(entries)
        self.totals[day] = totals

    async def load_range(self, start: date, end: date) -> dict[date, list[LogEntry]]:
        self.range_reads.append((start, end))
        if self.fail_reads:
            raise RuntimeError("network down")
        return {
            day: list(entries)
            for day, entries in self.days.items()
            if start <= day <= end and entries
        }

    async def save_statistics(self, summary: TrendSummary) -> None:
        self.statistics_writes.append(summary)
        self._maybe_fail()

    async def load_catalog(self) -> list[FoodItem]:
        if self.fail_reads:
            raise RuntimeError("network down")
        return list(self.foods)

    async def save_catalog(self, items: list[FoodItem]) -> None:
        self.catalog_writes.append(list(items))
        self._maybe_fail()
        self.foods = list(items)

    async def load_goals(self) -> dict[str, float] | None:
        if self.fail_reads:
            raise RuntimeError("network down")
        return dict(self.goals) or None

    async def save_goal(self, name: str, value: float) -> None:
        self.goal_writes.append((name, value))
        self._maybe_fail()
        self.goals[name] = value

    def _maybe_fail(self) -> None:
        if self.fail_writes:
            self.fail_writes -= 1
            raise RemoteStoreError("backend unavailable")


@dataclass
class TrackerHarness:
    """A tracker wired to an in-memory remote store."""

    remote: InMemoryRemoteStore
    notifications: NotificationCenter
    dispatcher: SyncDispatcher
    store: LocalLogStore
    loader: ReconciliationLoader
    catalog: CatalogService
    tracker: DailyTrackerService


def build_harness(
    remote: InMemoryRemoteStore | None = None,
    debounce_seconds: float = 0.01,
    day: date = TODAY,
    clock: Callable[[], datetime] = lambda: NOON_UTC,
) -> TrackerHarness:
    resolved = remote or InMemoryRemoteStore(foods=[CHICKEN, RICE])
    notifications = NotificationCenter()
    dispatcher = SyncDispatcher(
        remote_store=resolved,
        notifications=notifications,
        debounce_seconds=debounce_seconds,
    )
    store = LocalLogStore(day=day)
    loader = ReconciliationLoader(
        remote_store=resolved,
        store=store,
        dispatcher=dispatcher,
        notifications=notifications,
    )
    catalog = CatalogService(resolved, notifications)
    tracker = DailyTrackerService(
        store=store,
        dispatcher=dispatcher,
        loader=loader,
        catalog=catalog,
        timezone=TIMEZONE,
        clock=clock,
    )
    return TrackerHarness(
        remote=resolved,
        notifications=notifications,
        dispatcher=dispatcher,
        store=store,
        loader=loader,
        catalog=catalog,
        tracker=tracker,
    )


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None


class FakeQuery:
    """Minimal stateful stand-in for a PostgREST query builder."""

    def __init__(
        self,
        table: "FakeTable",
        action: str,
        payload: object | None = None,
        on_conflict: str = "",
    ) -> None:
        self.table = table
        self.action = action
        self.payload = payload
        self.on_conflict = on_conflict
        self.filters: list[Callable[[dict[str, object]], bool]] = []
        self._negate = False
        self._order: tuple[str, bool] | None = None
        self._limit: int | None = None

    @property
    def not_(self) -> "FakeQuery":
        self._negate = True
        return self

    def eq(self, column: str, value: object) -> "FakeQuery":
        return self._filter(lambda row: row.get(column) == value)

    def neq(self, column: str, value: object) -> "FakeQuery":
        return self._filter(lambda row: row.get(column) != value)

    def gte(self, column: str, value: object) -> "FakeQuery":
        return self._filter(lambda row: str(row.get(column)) >= str(value))

    def lte(self, column: str, value: object) -> "FakeQuery":
        return self._filter(lambda row: str(row.get(column)) <= str(value))

    def in_(self, column: str, values: list[object]) -> "FakeQuery":
        allowed = set(values)
        return self._filter(lambda row: row.get(column) in allowed)

    def order(self, column: str, desc: bool = False) -> "FakeQuery":
        self._order = (column, desc)
        return self

    def limit(self, count: int) -> "FakeQuery":
        self._limit = count
        return self

    def execute(self) -> FakeResponse:
        self.table.executed.append(self.action)
        if self.action == "select":
            rows = [dict(row) for row in self.table.rows if self._matches(row)]
            if self._order:
                column, desc = self._order
                rows.sort(key=lambda row: str(row.get(column)), reverse=desc)
            if self._limit is not None:
                rows = rows[: self._limit]
            return FakeResponse(data=rows)
        if self.action == "upsert":
            payload = self.payload if isinstance(self.payload, list) else [self.payload]
            keys = [key.strip() for key in self.on_conflict.split(",") if key.strip()]
            for row in payload:
                self._upsert_row(dict(row), keys)
            return FakeResponse(data=[dict(row) for row in payload])
        removed = [row for row in self.table.rows if self._matches(row)]
        self.table.rows = [row for row in self.table.rows if not self._matches(row)]
        return FakeResponse(data=removed)

    def _filter(self, predicate: Callable[[dict[str, object]], bool]) -> "FakeQuery":
        if self._negate:
            self._negate = False
            self.filters.append(lambda row: not predicate(row))
        else:
            self.filters.append(predicate)
        return self

    def _matches(self, row: dict[str, object]) -> bool:
        return all(predicate(row) for predicate in self.filters)

    def _upsert_row(self, row: dict[str, object], keys: list[str]) -> None:
        for index, existing in enumerate(self.table.rows):
            if keys and all(existing.get(key) == row.get(key) for key in keys):
                self.table.rows[index] = {**existing, **row}
                return
        self.table.rows.append(row)


@dataclass
class FakeTable:
    name: str
    rows: list[dict[str, object]] = field(default_factory=list)
    executed: list[str] = field(default_factory=list)

    def select(self, *_columns: str) -> FakeQuery:
        return FakeQuery(self, "select")

    def upsert(self, payload: object, on_conflict: str = "") -> FakeQuery:
        return FakeQuery(self, "upsert", payload=payload, on_conflict=on_conflict)

    def delete(self) -> FakeQuery:
        return FakeQuery(self, "delete")


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        remote_backend="apps_script",
        apps_script_url="https://script.example.com/macros/s/test/exec",
        sheet_auth_token="sheet-token",
        timezone=TIMEZONE,
        sync_debounce_seconds=0.01,
        environment="test",
    )


@pytest.fixture
def remote_store() -> InMemoryRemoteStore:
    return InMemoryRemoteStore(foods=[CHICKEN, RICE])


@pytest.fixture
def container(settings: Settings, remote_store: InMemoryRemoteStore) -> AppContainer:
    async def close_resources() -> None:
        return None

    return build_services(settings, remote_store, close_resources)
