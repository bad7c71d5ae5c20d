"""JSON payload shapes shared by the script backend and sync fingerprints."""

import logging
from datetime import datetime
from zoneinfo import ZoneInfo

from macro_tracker.domain.foods import FoodItem
from macro_tracker.domain.logs import LogEntry
from macro_tracker.domain.stats import DailyAggregate

logger = logging.getLogger(__name__)


def entry_to_payload(entry: LogEntry) -> dict[str, object]:
    """Return the wire shape of a log entry."""
    return {
        "id": entry.id,
        "foodId": entry.food_id,
        "foodName": entry.food_name,
        "quantity": entry.quantity,
        "calories": entry.calories,
        "protein": entry.protein,
        "carbs": entry.carbs,
        "fat": entry.fat,
        "timestamp": entry.timestamp.isoformat(),
    }


def entry_from_payload(
    payload: dict[str, object], timezone_name: str
) -> LogEntry | None:
    """Parse a wire entry, returning None when required fields are unusable."""
    try:
        timestamp = _parse_timestamp(str(payload["timestamp"]), timezone_name)
        return LogEntry(
            id=str(payload["id"]),
            food_id=str(payload.get("foodId") or ""),
            food_name=str(payload["foodName"]),
            quantity=float(payload["quantity"]),
            calories=int(round(float(payload.get("calories") or 0))),
            protein=float(payload.get("protein") or 0.0),
            carbs=float(payload.get("carbs") or 0.0),
            fat=float(payload.get("fat") or 0.0),
            timestamp=timestamp,
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("Skipping malformed log entry", extra={"payload": payload})
        return None


def totals_to_payload(totals: DailyAggregate) -> dict[str, object]:
    return {
        "calories": totals.calories,
        "protein": totals.protein,
        "carbs": totals.carbs,
        "fat": totals.fat,
    }


def food_to_payload(food: FoodItem) -> dict[str, object]:
    return {
        "id": food.id,
        "name": food.name,
        "calories": food.calories,
        "protein": food.protein,
        "carbs": food.carbs,
        "fat": food.fat,
    }


def food_from_payload(payload: dict[str, object]) -> FoodItem | None:
    """Parse a wire food, returning None when it is unusable."""
    try:
        name = str(payload["name"]).strip()
        if not name:
            raise ValueError("empty name")
        return FoodItem(
            id=str(payload["id"]),
            name=name,
            calories=float(payload.get("calories") or 0.0),
            protein=float(payload.get("protein") or 0.0),
            carbs=float(payload.get("carbs") or 0.0),
            fat=float(payload.get("fat") or 0.0),
        )
    except (KeyError, TypeError, ValueError):
        logger.warning("Skipping malformed food", extra={"payload": payload})
        return None


def _parse_timestamp(raw: str, timezone_name: str) -> datetime:
    parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=ZoneInfo(timezone_name))
    return parsed
