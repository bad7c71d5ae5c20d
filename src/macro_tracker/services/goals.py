"""Macro goal settings."""

import logging
import math
from dataclasses import dataclass

from macro_tracker.domain.goals import (
    DEFAULT_GOALS,
    GOAL_FIELDS,
    GOAL_SETTING_LABELS,
    MacroGoals,
)
from macro_tracker.services.notifications import LEVEL_WARNING, NotificationCenter
from macro_tracker.services.remote_store import RemoteStore

logger = logging.getLogger(__name__)


@dataclass
class GoalsService:
    """Loads goals once and pushes each changed goal straight away."""

    remote_store: RemoteStore
    notifications: NotificationCenter
    goals: MacroGoals = DEFAULT_GOALS

    async def load(self) -> MacroGoals:
        """Load goals from the settings map, keeping defaults for gaps."""
        try:
            settings = await self.remote_store.load_goals()
        except Exception:
            logger.exception("Failed to load goals")
            self.notifications.push(
                "Couldn't load your goals. Using defaults.", level=LEVEL_WARNING
            )
            return self.goals
        if settings:
            self.goals = goals_from_settings(settings)
        return self.goals

    async def update(self, goals: MacroGoals) -> MacroGoals:
        """Replace goals locally and push every value that changed."""
        for name in GOAL_FIELDS:
            value = getattr(goals, name)
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"{name} goal must be a non-negative number")
        previous = self.goals
        self.goals = goals
        for name in GOAL_FIELDS:
            value = getattr(goals, name)
            if value == getattr(previous, name):
                continue
            try:
                await self.remote_store.save_goal(name, value)
            except Exception:
                logger.exception("Failed to save goal", extra={"goal": name})
                self.notifications.push(f"Couldn't save your {name} goal.")
        return self.goals


def goals_from_settings(settings: dict[str, object]) -> MacroGoals:
    """Build goals from a map keyed by field name or sheet label."""
    values: dict[str, float] = {}
    for name in GOAL_FIELDS:
        raw = settings.get(name, settings.get(GOAL_SETTING_LABELS[name]))
        default = getattr(DEFAULT_GOALS, name)
        try:
            value = float(raw) if raw is not None else default
        except (TypeError, ValueError):
            value = default
        values[name] = value if math.isfinite(value) else default
    return MacroGoals(**values)
