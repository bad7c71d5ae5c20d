"""Domain models for daily food logs."""

from dataclasses import dataclass, field
from datetime import date, datetime


@dataclass(frozen=True)
class LogEntry:
    """One logged portion of a food.

    Macros are a snapshot taken when the entry is created; editing or renaming
    the referenced food later does not change them.
    """

    id: str
    food_id: str
    food_name: str
    quantity: float
    calories: int
    protein: float
    carbs: float
    fat: float
    timestamp: datetime


@dataclass(frozen=True)
class DayRecord:
    """Remote state for a single date.

    An empty ``entries`` list is a stored day with nothing logged, which is
    different from the store having no record for the date at all.
    """

    day: date
    entries: list[LogEntry] = field(default_factory=list)
