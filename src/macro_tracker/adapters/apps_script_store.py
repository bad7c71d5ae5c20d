"""Spreadsheet backend reached through a Google Apps Script web app."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import UTC, date, datetime

import httpx

from macro_tracker.domain.foods import FoodItem
from macro_tracker.domain.goals import GOAL_SETTING_LABELS
from macro_tracker.domain.logs import DayRecord, LogEntry
from macro_tracker.domain.stats import DailyAggregate, TrendSummary
from macro_tracker.services.dates import entry_day
from macro_tracker.services.remote_store import RemoteStore, RemoteStoreError
from macro_tracker.services.wire import (
    entry_from_payload,
    entry_to_payload,
    food_from_payload,
    food_to_payload,
    totals_to_payload,
)

logger = logging.getLogger(__name__)


@dataclass
class AppsScriptRemoteStore(RemoteStore):
    """Remote store backed by a script endpoint in front of a spreadsheet.

    Every request carries the shared token: as a query parameter on reads and
    in the JSON body on writes. The script rewrites whole tables, so catalog
    writes from this process are serialized.
    """

    url: str
    token: str
    http_client: httpx.AsyncClient
    timezone: str = "Asia/Kolkata"
    timeout: float = 15.0
    _catalog_lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    @classmethod
    def create(
        cls, url: str, token: str, timezone: str, timeout: float = 15.0
    ) -> "AppsScriptRemoteStore":
        """Create a store with a managed httpx session."""
        # Script deployments answer through a redirect to the content host.
        return cls(
            url=url,
            token=token,
            http_client=httpx.AsyncClient(follow_redirects=True),
            timezone=timezone,
            timeout=timeout,
        )

    async def load_day(self, day: date) -> DayRecord | None:
        """Return the stored day or None when the sheet has no rows for it."""
        data = await self._get("loadDailyData", date=day.isoformat())
        if data is None or data.get("found") is False:
            return None
        raw_entries = data.get("foodLogs")
        if not isinstance(raw_entries, list):
            return None
        entries = [
            entry
            for entry in (
                entry_from_payload(item, self.timezone)
                for item in raw_entries
                if isinstance(item, dict)
            )
            if entry is not None
        ]
        return DayRecord(day=day, entries=entries)

    async def save_day(
        self, day: date, entries: list[LogEntry], totals: DailyAggregate
    ) -> None:
        """Replace the day's rows, then refresh its summary row."""
        await self._post(
            {
                "action": "saveDailyData",
                "date": day.isoformat(),
                "foodLogs": [entry_to_payload(entry) for entry in entries],
                "totals": totals_to_payload(totals),
            }
        )
        await self._post(
            {
                "action": "saveDailySummary",
                "date": day.isoformat(),
                "totals": totals_to_payload(totals),
                "calorieGoal": totals.calorie_goal,
                "caloriePercent": totals.calorie_goal_percent,
                "entryCount": totals.entry_count,
            }
        )

    async def load_range(self, start: date, end: date) -> dict[date, list[LogEntry]]:
        """Return entries between ``start`` and ``end`` in one request.

        Rows carry their sheet date when the script provides it; otherwise
        they are grouped by the date of their timestamp.
        """
        data = await self._get(
            "getRangeData", startDate=start.isoformat(), endDate=end.isoformat()
        )
        raw_entries = data.get("foodLogs") if data is not None else None
        if not isinstance(raw_entries, list):
            return {}
        entries_by_day: dict[date, list[LogEntry]] = {}
        for item in raw_entries:
            if not isinstance(item, dict):
                continue
            entry = entry_from_payload(item, self.timezone)
            if entry is None:
                continue
            day = _row_day(item) or entry_day(entry.timestamp, self.timezone)
            if start <= day <= end:
                entries_by_day.setdefault(day, []).append(entry)
        return entries_by_day

    async def save_statistics(self, summary: TrendSummary) -> None:
        await self._post(
            {
                "action": "saveStatistics",
                "date": summary.end.isoformat(),
                "startDate": summary.start.isoformat(),
                "avgCalories": summary.avg_calories,
                "avgProtein": summary.avg_protein,
                "avgCarbs": summary.avg_carbs,
                "avgFat": summary.avg_fat,
                "daysLogged": summary.days_logged,
            }
        )

    async def load_catalog(self) -> list[FoodItem]:
        data = await self._get("getFoods")
        if data is None:
            return []
        raw_foods = data.get("foods")
        if not isinstance(raw_foods, list):
            return []
        return [
            food
            for food in (
                food_from_payload(item) for item in raw_foods if isinstance(item, dict)
            )
            if food is not None
        ]

    async def save_catalog(self, items: list[FoodItem]) -> None:
        async with self._catalog_lock:
            await self._post(
                {
                    "action": "syncFoods",
                    "foods": [food_to_payload(food) for food in items],
                }
            )

    async def load_goals(self) -> dict[str, float] | None:
        data = await self._get("getSettings")
        if data is None:
            return None
        settings = data.get("settings")
        if not isinstance(settings, dict):
            return None
        values: dict[str, float] = {}
        for name, raw in settings.items():
            try:
                values[str(name)] = float(raw)
            except (TypeError, ValueError):
                logger.warning("Ignoring non-numeric setting", extra={"setting": name})
        return values or None

    async def save_goal(self, name: str, value: float) -> None:
        await self._post(
            {
                "action": "updateSettings",
                "goalName": GOAL_SETTING_LABELS.get(name, name),
                "value": value,
                "updatedAt": datetime.now(tz=UTC).isoformat(),
            }
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _get(self, action: str, **params: str) -> dict[str, object] | None:
        response = await self.http_client.get(
            self.url,
            params={"token": self.token, "action": action, **params},
            timeout=self.timeout,
        )
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError:
            logger.warning("Unparsable script response", extra={"action": action})
            return None
        if not isinstance(data, dict):
            logger.warning("Unexpected script response", extra={"action": action})
            return None
        if data.get("error"):
            logger.warning(
                "Script returned an error",
                extra={"action": action, "error": data["error"]},
            )
            return None
        return data

    async def _post(self, payload: dict[str, object]) -> None:
        response = await self.http_client.post(
            self.url,
            json={"token": self.token, **payload},
            timeout=self.timeout,
        )
        response.raise_for_status()
        try:
            data = response.json()
        except ValueError:
            # Some deployments answer writes with plain text.
            return
        if isinstance(data, dict) and data.get("error"):
            raise RemoteStoreError(f"{payload['action']} failed: {data['error']}")


def _row_day(item: dict[str, object]) -> date | None:
    raw = item.get("date")
    if not isinstance(raw, str):
        return None
    try:
        return date.fromisoformat(raw[:10])
    except ValueError:
        return None
