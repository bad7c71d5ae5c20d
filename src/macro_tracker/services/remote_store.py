"""Remote persistence contract shared by all backends."""

from datetime import date
from typing import Protocol

from macro_tracker.domain.foods import FoodItem
from macro_tracker.domain.logs import DayRecord, LogEntry
from macro_tracker.domain.stats import DailyAggregate, TrendSummary


class RemoteStoreError(RuntimeError):
    """Raised when a backend rejects or cannot complete a write."""


class RemoteStore(Protocol):
    """Persistence interface for days, the food catalog and goals.

    Writes raise on failure. Reads return ``None`` (or an empty list) when the
    backend has nothing usable for the request.
    """

    async def load_day(self, day: date) -> DayRecord | None:
        """Return the stored record for ``day`` or None when none exists."""

    async def save_day(
        self, day: date, entries: list[LogEntry], totals: DailyAggregate
    ) -> None:
        """Replace everything stored for ``day`` with ``entries``."""

    async def load_range(self, start: date, end: date) -> dict[date, list[LogEntry]]:
        """Return entries for every date in ``start..end`` that has any."""

    async def save_statistics(self, summary: TrendSummary) -> None:
        """Store averages for a trend window."""

    async def load_catalog(self) -> list[FoodItem]:
        """Return every catalog food."""

    async def save_catalog(self, items: list[FoodItem]) -> None:
        """Replace the whole catalog."""

    async def load_goals(self) -> dict[str, float] | None:
        """Return the settings map of goal names to values."""

    async def save_goal(self, name: str, value: float) -> None:
        """Update a single goal setting."""
