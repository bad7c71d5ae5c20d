"""Daily totals and entry construction."""

import math
from collections.abc import Iterable
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from uuid import uuid4

from macro_tracker.domain.foods import FoodItem
from macro_tracker.domain.goals import MacroGoals
from macro_tracker.domain.logs import LogEntry
from macro_tracker.domain.stats import DailyAggregate


def round_half_up(value: float, digits: int = 0) -> float:
    """Round half away from zero, matching what the sheet displays."""
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_calories(value: float) -> int:
    return int(round_half_up(value, 0))


def round_macro(value: float) -> float:
    return round_half_up(value, 1)


def validate_quantity(quantity: float) -> float:
    """Return the quantity as float or raise ValueError when unusable."""
    value = float(quantity)
    if not math.isfinite(value) or value <= 0:
        raise ValueError("Quantity must be greater than 0")
    return value


def build_entry(
    food: FoodItem,
    quantity: float,
    timestamp: datetime,
    entry_id: str | None = None,
) -> LogEntry:
    """Create a log entry with macros scaled to ``quantity``."""
    if not food.name.strip():
        raise ValueError("Food name is required")
    amount = validate_quantity(quantity)
    return LogEntry(
        id=entry_id or str(uuid4()),
        food_id=food.id,
        food_name=food.name,
        quantity=amount,
        calories=round_calories(food.calories * amount),
        protein=round_macro(food.protein * amount),
        carbs=round_macro(food.carbs * amount),
        fat=round_macro(food.fat * amount),
        timestamp=timestamp,
    )


def aggregate(entries: Iterable[LogEntry], goals: MacroGoals) -> DailyAggregate:
    """Fold entries into daily totals measured against ``goals``."""
    items = list(entries)
    calories = round_calories(sum(entry.calories for entry in items))
    protein = round_macro(sum(entry.protein for entry in items))
    carbs = round_macro(sum(entry.carbs for entry in items))
    fat = round_macro(sum(entry.fat for entry in items))
    return DailyAggregate(
        calories=calories,
        protein=protein,
        carbs=carbs,
        fat=fat,
        calorie_goal=goals.calories,
        calorie_goal_percent=calorie_goal_percent(calories, goals.calories),
        over_goal=calories > goals.calories,
        entry_count=len(items),
    )


def calorie_goal_percent(calories: float, goal: float) -> float:
    """Return progress toward the calorie goal, capped at 100."""
    if goal <= 0 or not math.isfinite(goal):
        return 0.0
    return round_macro(min(100.0, 100.0 * calories / goal))
