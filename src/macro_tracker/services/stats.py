"""Historical trends over a window of days."""

import logging
from dataclasses import dataclass
from datetime import date

from macro_tracker.domain.logs import LogEntry
from macro_tracker.domain.stats import DayTrend, FoodFrequency, TrendSummary
from macro_tracker.services.aggregator import round_calories, round_macro
from macro_tracker.services.dates import days_ending
from macro_tracker.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

TOP_FOODS_LIMIT = 5
MAX_TREND_DAYS = 90


@dataclass
class StatsService:
    """Computes trends from stored days and publishes their averages."""

    remote_store: RemoteStore

    async def trend(
        self,
        end: date,
        days: int = 7,
        overrides: dict[date, list[LogEntry]] | None = None,
    ) -> TrendSummary:
        """Summarize the ``days`` ending on ``end``.

        ``overrides`` supplies entries that are newer locally than remotely,
        such as the currently selected date. The window is read in one
        request; if that fails, only the overrides are counted and nothing
        is published.
        """
        if days < 1 or days > MAX_TREND_DAYS:
            raise ValueError(f"days must be between 1 and {MAX_TREND_DAYS}")
        window = days_ending(end, days)
        try:
            stored = await self.remote_store.load_range(window[0], window[-1])
        except Exception:
            logger.exception(
                "Failed to load days for trends",
                extra={"start": window[0].isoformat(), "end": end.isoformat()},
            )
            return summarize(window, dict(overrides or {}))
        summary = summarize(window, {**stored, **(overrides or {})})
        await self._publish(summary)
        return summary

    async def _publish(self, summary: TrendSummary) -> None:
        try:
            await self.remote_store.save_statistics(summary)
        except Exception:
            logger.exception(
                "Failed to save statistics",
                extra={"start": summary.start.isoformat()},
            )


def summarize(
    window: list[date], entries_by_day: dict[date, list[LogEntry]]
) -> TrendSummary:
    """Build a trend summary from already-loaded entries."""
    daily = [_day_trend(day, entries_by_day.get(day, [])) for day in window]
    logged = [day for day in daily if day.entry_count > 0]
    count = len(logged)
    all_entries = [entry for day in window for entry in entries_by_day.get(day, [])]
    protein = sum(day.protein for day in logged)
    carbs = sum(day.carbs for day in logged)
    fat = sum(day.fat for day in logged)
    return TrendSummary(
        start=window[0],
        end=window[-1],
        daily=daily,
        days_logged=count,
        avg_calories=round_calories(sum(d.calories for d in logged) / count)
        if count
        else 0,
        avg_protein=round_macro(protein / count) if count else 0.0,
        avg_carbs=round_macro(carbs / count) if count else 0.0,
        avg_fat=round_macro(fat / count) if count else 0.0,
        top_foods=_top_foods(all_entries),
        macro_calorie_split={
            "protein": round_macro(protein * 4),
            "carbs": round_macro(carbs * 4),
            "fat": round_macro(fat * 9),
        },
    )


def _day_trend(day: date, entries: list[LogEntry]) -> DayTrend:
    return DayTrend(
        day=day,
        calories=round_calories(sum(entry.calories for entry in entries)),
        protein=round_macro(sum(entry.protein for entry in entries)),
        carbs=round_macro(sum(entry.carbs for entry in entries)),
        fat=round_macro(sum(entry.fat for entry in entries)),
        entry_count=len(entries),
    )


def _top_foods(entries: list[LogEntry]) -> list[FoodFrequency]:
    counts: dict[str, list[int]] = {}
    for entry in entries:
        bucket = counts.setdefault(entry.food_name, [0, 0])
        bucket[0] += 1
        bucket[1] += entry.calories
    ranked = sorted(counts.items(), key=lambda item: item[1][0], reverse=True)
    return [
        FoodFrequency(name=name, count=count, calories=calories)
        for name, (count, calories) in ranked[:TOP_FOODS_LIMIT]
    ]
