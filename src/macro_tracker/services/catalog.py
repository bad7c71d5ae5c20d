"""Food catalog management."""

import logging
import math
from dataclasses import dataclass, field, replace
from uuid import uuid4

from macro_tracker.domain.foods import FoodItem
from macro_tracker.services.notifications import NotificationCenter
from macro_tracker.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)

MACRO_FIELDS = ("calories", "protein", "carbs", "fat")


@dataclass
class CatalogService:
    """Keeps the food catalog in memory and mirrors it to the remote store.

    Local edits apply immediately. Every change writes the whole catalog; a
    failed write is reported and the next change sends the full list again.
    """

    remote_store: RemoteStore
    notifications: NotificationCenter
    _foods: list[FoodItem] = field(default_factory=list)

    async def load(self) -> list[FoodItem]:
        """Replace the in-memory catalog with the remote one."""
        try:
            foods = await self.remote_store.load_catalog()
        except Exception:
            logger.exception("Failed to load food catalog")
            self.notifications.push("Couldn't load your foods.")
            return self.list_foods()
        self._foods = list(foods)
        logger.info("Loaded food catalog", extra={"foods": len(self._foods)})
        return self.list_foods()

    def list_foods(self) -> list[FoodItem]:
        return list(self._foods)

    def get(self, food_id: str) -> FoodItem:
        """Return a food by id or raise LookupError."""
        for food in self._foods:
            if food.id == food_id:
                return food
        raise LookupError(f"Unknown food: {food_id}")

    def search(self, query: str | None, limit: int = 5) -> list[FoodItem]:
        """Return foods whose name contains ``query``, case-insensitively."""
        if not query or not query.strip():
            return self.list_foods()
        needle = query.strip().lower()
        return [food for food in self._foods if needle in food.name.lower()][:limit]

    async def add(self, payload: dict[str, object]) -> FoodItem:
        """Create a food and push the catalog."""
        food = FoodItem(id=str(uuid4()), **_validated(payload))
        self._foods = [*self._foods, food]
        await self._push()
        return food

    async def edit(self, food_id: str, payload: dict[str, object]) -> FoodItem:
        """Update a food. Existing log entries keep their own snapshot."""
        current = self.get(food_id)
        merged = {
            "name": payload.get("name", current.name),
            **{key: payload.get(key, getattr(current, key)) for key in MACRO_FIELDS},
        }
        updated = replace(current, **_validated(merged))
        self._foods = [updated if food.id == food_id else food for food in self._foods]
        await self._push()
        return updated

    async def delete(self, food_id: str) -> None:
        self.get(food_id)
        self._foods = [food for food in self._foods if food.id != food_id]
        await self._push()

    async def _push(self) -> None:
        try:
            await self.remote_store.save_catalog(self.list_foods())
        except Exception:
            logger.exception(
                "Failed to save food catalog", extra={"foods": len(self._foods)}
            )
            self.notifications.push(
                "Couldn't save your foods. They will be sent with your next change."
            )


def _validated(payload: dict[str, object]) -> dict[str, object]:
    name = str(payload.get("name") or "").strip()
    if not name:
        raise ValueError("Food name is required")
    values: dict[str, object] = {"name": name}
    for key in MACRO_FIELDS:
        value = float(payload.get(key) or 0.0)
        if not math.isfinite(value) or value < 0:
            raise ValueError(f"{key} must be a non-negative number")
        values[key] = value
    return values
