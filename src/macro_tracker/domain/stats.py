"""Domain models for daily totals and trends."""

from dataclasses import dataclass
from datetime import date


@dataclass(frozen=True)
class DailyAggregate:
    """Derived totals for one day's entries."""

    calories: int
    protein: float
    carbs: float
    fat: float
    calorie_goal: float
    calorie_goal_percent: float
    over_goal: bool
    entry_count: int


@dataclass(frozen=True)
class DayTrend:
    """Totals for a single day inside a trend window."""

    day: date
    calories: int
    protein: float
    carbs: float
    fat: float
    entry_count: int


@dataclass(frozen=True)
class FoodFrequency:
    """How often a food was logged inside a trend window."""

    name: str
    count: int
    calories: int


@dataclass(frozen=True)
class TrendSummary:
    """Averages and breakdowns over a window of days."""

    start: date
    end: date
    daily: list[DayTrend]
    days_logged: int
    avg_calories: int
    avg_protein: float
    avg_carbs: float
    avg_fat: float
    top_foods: list[FoodFrequency]
    macro_calorie_split: dict[str, float]
