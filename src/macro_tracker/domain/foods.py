"""Domain models for the food catalog."""

from dataclasses import dataclass


@dataclass(frozen=True)
class FoodItem:
    """A catalog food with macros per reference quantity."""

    id: str
    name: str
    calories: float
    protein: float
    carbs: float
    fat: float
