"""Domain models for macro goals."""

from dataclasses import dataclass

GOAL_FIELDS = ("calories", "protein", "carbs", "fat")

# Row labels used by the spreadsheet settings tab.
GOAL_SETTING_LABELS = {
    "calories": "Daily Calories",
    "protein": "Protein (g)",
    "carbs": "Carbs (g)",
    "fat": "Fat (g)",
}


@dataclass(frozen=True)
class MacroGoals:
    """Daily macro targets."""

    calories: float
    protein: float
    carbs: float
    fat: float


DEFAULT_GOALS = MacroGoals(calories=2500, protein=150, carbs=250, fat=80)
