"""Request models for the HTTP API."""

from pydantic import BaseModel, Field


class EntryCreate(BaseModel):
    """Log a quantity of a catalog food."""

    food_id: str = Field(min_length=1)
    quantity: float = Field(gt=0, allow_inf_nan=False)


class FoodCreate(BaseModel):
    """A catalog food with macros per reference quantity."""

    name: str = Field(min_length=1)
    calories: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    protein: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    carbs: float = Field(default=0.0, ge=0, allow_inf_nan=False)
    fat: float = Field(default=0.0, ge=0, allow_inf_nan=False)


class FoodUpdate(BaseModel):
    """Partial update of a catalog food."""

    name: str | None = Field(default=None, min_length=1)
    calories: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    protein: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    carbs: float | None = Field(default=None, ge=0, allow_inf_nan=False)
    fat: float | None = Field(default=None, ge=0, allow_inf_nan=False)


class GoalsUpdate(BaseModel):
    """Full replacement of the daily goals."""

    calories: float = Field(ge=0, allow_inf_nan=False)
    protein: float = Field(ge=0, allow_inf_nan=False)
    carbs: float = Field(ge=0, allow_inf_nan=False)
    fat: float = Field(ge=0, allow_inf_nan=False)
