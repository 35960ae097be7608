"""
LevelUp AI - Parsed Plan Schemas.

Typed shapes for what the provider returns once it has been extracted,
repaired and shape-checked. Field aliases follow the camelCase JSON contract
given to the provider in the prompts.
"""

import re
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


def _leading_int(value: Any) -> Any:
    """Accept "15 min" / "3-4" style strings where an integer is expected."""
    if isinstance(value, str):
        match = re.search(r"\d+", value)
        return int(match.group()) if match else None
    return value


def _leading_number(value: Any) -> Any:
    """Accept "20g" / "350 kcal" style strings where a quantity is expected."""
    if isinstance(value, str):
        match = re.search(r"\d+(?:[.,]\d+)?", value)
        return float(match.group().replace(",", ".")) if match else None
    return value


class _PlanModel(BaseModel):
    model_config = ConfigDict(
        populate_by_name=True,
        alias_generator=to_camel,
        coerce_numbers_to_str=True,
    )

    def to_api(self) -> Dict[str, Any]:
        """Dump with the camelCase aliases used on the wire."""
        return self.model_dump(by_alias=True, exclude_none=True)


# -- Workout -----------------------------------------------------------------

class Exercise(_PlanModel):
    name: str = Field(..., min_length=1)
    sets: int = Field(default=3, ge=0)
    reps: str = "10-12"
    weight: Optional[str] = None
    duration: Optional[str] = None
    rest_time: Optional[str] = None
    instructions: Optional[str] = None
    target_muscles: List[str] = Field(default_factory=list)
    equipment: Optional[str] = None

    @field_validator("sets", mode="before")
    @classmethod
    def _parse_sets(cls, value: Any) -> Any:
        parsed = _leading_int(value)
        return 3 if parsed is None else parsed


class WorkoutDay(_PlanModel):
    day_number: int = Field(..., ge=1)
    day_name: str
    exercises: List[Exercise]
    focus_area: Optional[str] = None


class WorkoutLayout(str, Enum):
    LEGACY = "legacy"
    DAY_GROUPED = "day_grouped"


class WorkoutPlan(_PlanModel):
    """
    Workout plan in one of two layouts.

    Exactly one of ``exercises`` (legacy flat list) or ``days`` (day-grouped)
    is populated.
    """

    name: str
    description: str
    exercises: Optional[List[Exercise]] = None
    days: Optional[List[WorkoutDay]] = None

    @model_validator(mode="after")
    def _one_layout(self) -> "WorkoutPlan":
        if bool(self.exercises) == bool(self.days):
            raise ValueError("exactly one of 'exercises' or 'days' must be populated")
        return self

    @property
    def layout(self) -> WorkoutLayout:
        return WorkoutLayout.DAY_GROUPED if self.days else WorkoutLayout.LEGACY

    def all_exercises(self) -> List[Exercise]:
        if self.days:
            return [exercise for day in self.days for exercise in day.exercises]
        return list(self.exercises or [])


# -- Diet --------------------------------------------------------------------

class MacroNutrients(_PlanModel):
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)
    fiber: Optional[float] = Field(default=None, ge=0)

    @field_validator("protein", "carbs", "fat", mode="before")
    @classmethod
    def _parse_required(cls, value: Any) -> Any:
        parsed = _leading_number(value)
        return 0 if parsed is None else parsed

    @field_validator("fiber", mode="before")
    @classmethod
    def _parse_fiber(cls, value: Any) -> Any:
        return _leading_number(value)


class FoodItem(_PlanModel):
    name: str = Field(..., min_length=1)
    quantity: str = ""
    calories: float = Field(default=0, ge=0)
    protein: Optional[float] = Field(default=None, ge=0)
    carbs: Optional[float] = Field(default=None, ge=0)
    fat: Optional[float] = Field(default=None, ge=0)
    fiber: Optional[float] = Field(default=None, ge=0)

    @field_validator("calories", mode="before")
    @classmethod
    def _parse_calories(cls, value: Any) -> Any:
        parsed = _leading_number(value)
        return 0 if parsed is None else parsed

    @field_validator("protein", "carbs", "fat", "fiber", mode="before")
    @classmethod
    def _parse_macros(cls, value: Any) -> Any:
        return _leading_number(value)


class Meal(_PlanModel):
    name: str
    items: List[FoodItem]
    total_calories: float = Field(..., ge=0)
    macros: MacroNutrients
    instructions: Optional[str] = None
    prep_time: Optional[int] = Field(default=None, ge=0)

    @field_validator("total_calories", mode="before")
    @classmethod
    def _parse_total(cls, value: Any) -> Any:
        return _leading_number(value)

    @field_validator("prep_time", mode="before")
    @classmethod
    def _parse_prep_time(cls, value: Any) -> Any:
        return _leading_int(value)


class DietPlan(_PlanModel):
    """
    Diet plan as generated.

    ``total_calories`` is the daily calorie target the plan was built for; it
    is filled in from the request, not by the provider.
    """

    name: str
    description: str
    meals: List[Meal]
    total_calories: Optional[float] = Field(default=None, ge=0)


class MealType(str, Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DINNER = "dinner"
    SNACK = "snack"


class ExpandedMeal(_PlanModel):
    """A meal placed on a concrete day of the week."""

    meal: Meal
    day_of_week: int = Field(..., ge=1, le=7)
    order_in_day: int = Field(..., ge=1)
    meal_type: MealType


# -- Recipe ------------------------------------------------------------------

class Ingredient(_PlanModel):
    name: str
    quantity: str = ""
    unit: Optional[str] = None


class NutritionalInfo(_PlanModel):
    calories: float = Field(default=0, ge=0)
    protein: float = Field(default=0, ge=0)
    carbs: float = Field(default=0, ge=0)
    fat: float = Field(default=0, ge=0)
    fiber: float = Field(default=0, ge=0)

    @field_validator("*", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Any:
        parsed = _leading_number(value)
        return 0 if parsed is None else parsed


class Recipe(_PlanModel):
    name: str
    description: str
    category: str = Field(..., min_length=1)
    ingredients: List[Ingredient]
    steps: List[str]
    nutritional_info: NutritionalInfo = Field(default_factory=NutritionalInfo)
    prep_time: int = Field(default=0, ge=0)
    servings: int = Field(default=1, ge=1)

    @field_validator("prep_time", "servings", mode="before")
    @classmethod
    def _parse_counts(cls, value: Any, info) -> Any:
        parsed = _leading_int(value)
        if parsed is None:
            return 0 if info.field_name == "prep_time" else 1
        return parsed


# -- Recommendations ---------------------------------------------------------

class Recommendation(_PlanModel):
    type: str
    title: str
    description: str
    priority: str
    category: str
    actionable: bool
    metadata: Dict[str, Any] = Field(default_factory=dict)


class RecommendationSet(_PlanModel):
    recommendations: List[Recommendation]


# -- Food vision -------------------------------------------------------------

class DetectedFood(_PlanModel):
    name: str = Field(..., min_length=1)
    confidence: float = Field(default=0, ge=0, le=100)
    estimated_grams: float = Field(default=0, ge=0)

    @field_validator("confidence", "estimated_grams", mode="before")
    @classmethod
    def _parse_amount(cls, value: Any) -> Any:
        parsed = _leading_number(value)
        return 0 if parsed is None else parsed


class FoodAnalysis(_PlanModel):
    """
    Foods recognised in a photo with whole-plate nutrition estimates.

    ``raw_analysis`` keeps the provider's text as it was received.
    """

    detected_foods: List[DetectedFood]
    total_estimated_calories: float = Field(default=0, ge=0)
    total_estimated_protein: float = Field(default=0, ge=0)
    total_estimated_carbs: float = Field(default=0, ge=0)
    total_estimated_fat: float = Field(default=0, ge=0)
    suggestions: List[str] = Field(default_factory=list)
    raw_analysis: Optional[str] = None

    @field_validator(
        "total_estimated_calories",
        "total_estimated_protein",
        "total_estimated_carbs",
        "total_estimated_fat",
        mode="before",
    )
    @classmethod
    def _parse_total(cls, value: Any) -> Any:
        parsed = _leading_number(value)
        return 0 if parsed is None else parsed
