"""Supabase backend with one row per entry, food and goal."""

import asyncio
import logging
from dataclasses import dataclass
from datetime import UTC, date, datetime

from supabase import Client

from macro_tracker.domain.foods import FoodItem
from macro_tracker.domain.logs import DayRecord, LogEntry
from macro_tracker.domain.stats import DailyAggregate, TrendSummary
from macro_tracker.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

ENTRY_COLUMNS = (
    "id, date, food_id, food_name, quantity, calories, protein, carbs, fat, logged_at"
)


@dataclass
class SupabaseRemoteStore(RemoteStore):
    """Supabase implementation of the remote store.

    Rows are keyed by their natural key (``date, id`` for entries), so a day
    is replaced by upserting the new rows and deleting the ones that are gone.
    The client is synchronous; calls run in a worker thread.
    """

    client: Client

    async def load_day(self, day: date) -> DayRecord | None:
        return await asyncio.to_thread(self._load_day, day)

    async def save_day(
        self, day: date, entries: list[LogEntry], totals: DailyAggregate
    ) -> None:
        await asyncio.to_thread(self._save_day, day, entries, totals)

    async def load_catalog(self) -> list[FoodItem]:
        return await asyncio.to_thread(self._load_catalog)

    async def save_catalog(self, items: list[FoodItem]) -> None:
        await asyncio.to_thread(self._save_catalog, items)

    async def load_goals(self) -> dict[str, float] | None:
        return await asyncio.to_thread(self._load_goals)

    async def save_goal(self, name: str, value: float) -> None:
        await asyncio.to_thread(self._save_goal, name, value)

    async def load_range(self, start: date, end: date) -> dict[date, list[LogEntry]]:
        return await asyncio.to_thread(self._load_range, start, end)

    async def save_statistics(self, summary: TrendSummary) -> None:
        await asyncio.to_thread(self._save_statistics, summary)

    def _load_day(self, day: date) -> DayRecord | None:
        response = (
            self.client.table("log_entries")
            .select(ENTRY_COLUMNS)
            .eq("date", day.isoformat())
            .order("logged_at", desc=False)
            .execute()
        )
        rows = response.data or []
        if not rows:
            totals = (
                self.client.table("daily_totals")
                .select("date")
                .eq("date", day.isoformat())
                .limit(1)
                .execute()
            )
            if not totals.data:
                return None
        return DayRecord(day=day, entries=_parse_entries(rows))

    def _load_range(self, start: date, end: date) -> dict[date, list[LogEntry]]:
        response = (
            self.client.table("log_entries")
            .select(ENTRY_COLUMNS)
            .gte("date", start.isoformat())
            .lte("date", end.isoformat())
            .order("logged_at", desc=False)
            .execute()
        )
        rows_by_day: dict[date, list[dict[str, object]]] = {}
        for row in response.data or []:
            try:
                day = date.fromisoformat(str(row["date"]))
            except (KeyError, ValueError):
                logger.warning("Skipping entry row without a date", extra={"row": row})
                continue
            rows_by_day.setdefault(day, []).append(row)
        return {day: _parse_entries(rows) for day, rows in rows_by_day.items()}

    def _save_day(
        self, day: date, entries: list[LogEntry], totals: DailyAggregate
    ) -> None:
        day_key = day.isoformat()
        if entries:
            self.client.table("log_entries").upsert(
                [_entry_row(day_key, entry) for entry in entries],
                on_conflict="date,id",
            ).execute()
        stale = self.client.table("log_entries").delete().eq("date", day_key)
        if entries:
            stale = stale.not_.in_("id", [entry.id for entry in entries])
        stale.execute()
        self.client.table("daily_totals").upsert(
            {
                "date": day_key,
                "calories": totals.calories,
                "protein": totals.protein,
                "carbs": totals.carbs,
                "fat": totals.fat,
                "calorie_goal": totals.calorie_goal,
                "calorie_goal_percent": totals.calorie_goal_percent,
                "over_goal": totals.over_goal,
                "entry_count": totals.entry_count,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="date",
        ).execute()

    def _load_catalog(self) -> list[FoodItem]:
        response = (
            self.client.table("foods")
            .select("id, name, calories, protein, carbs, fat")
            .order("name", desc=False)
            .execute()
        )
        return [
            FoodItem(
                id=str(row["id"]),
                name=str(row.get("name", "")),
                calories=float(row.get("calories") or 0.0),
                protein=float(row.get("protein") or 0.0),
                carbs=float(row.get("carbs") or 0.0),
                fat=float(row.get("fat") or 0.0),
            )
            for row in response.data or []
        ]

    def _save_catalog(self, items: list[FoodItem]) -> None:
        if items:
            self.client.table("foods").upsert(
                [
                    {
                        "id": food.id,
                        "name": food.name,
                        "calories": food.calories,
                        "protein": food.protein,
                        "carbs": food.carbs,
                        "fat": food.fat,
                    }
                    for food in items
                ],
                on_conflict="id",
            ).execute()
            self.client.table("foods").delete().not_.in_(
                "id", [food.id for food in items]
            ).execute()
        else:
            self.client.table("foods").delete().neq("id", "").execute()

    def _load_goals(self) -> dict[str, float] | None:
        response = self.client.table("goals").select("name, value").execute()
        if not response.data:
            return None
        return {str(row["name"]): float(row["value"]) for row in response.data}

    def _save_goal(self, name: str, value: float) -> None:
        self.client.table("goals").upsert(
            {
                "name": name,
                "value": value,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="name",
        ).execute()

    def _save_statistics(self, summary: TrendSummary) -> None:
        self.client.table("statistics").upsert(
            {
                "start_date": summary.start.isoformat(),
                "end_date": summary.end.isoformat(),
                "avg_calories": summary.avg_calories,
                "avg_protein": summary.avg_protein,
                "avg_carbs": summary.avg_carbs,
                "avg_fat": summary.avg_fat,
                "days_logged": summary.days_logged,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            },
            on_conflict="start_date,end_date",
        ).execute()

def _entry_row(day_key: str, entry: LogEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "date": day_key,
        "food_id": entry.food_id,
        "food_name": entry.food_name,
        "quantity": entry.quantity,
        "calories": entry.calories,
        "protein": entry.protein,
        "carbs": entry.carbs,
        "fat": entry.fat,
        "logged_at": entry.timestamp.isoformat(),
    }


def _parse_entries(rows: list[dict[str, object]]) -> list[LogEntry]:
    return [entry for entry in map(_parse_entry, rows) if entry is not None]


def _parse_entry(row: dict[str, object]) -> LogEntry | None:
    try:
        return LogEntry(
            id=str(row["id"]),
            food_id=str(row.get("food_id") or ""),
            food_name=str(row.get("food_name", "")),
            quantity=float(row.get("quantity") or 0.0),
            calories=int(row.get("calories") or 0),
            protein=float(row.get("protein") or 0.0),
            carbs=float(row.get("carbs") or 0.0),
            fat=float(row.get("fat") or 0.0),
            timestamp=datetime.fromisoformat(str(row["logged_at"])),
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("Skipping malformed entry row", extra={"row": row})
        return None
