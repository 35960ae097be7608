"""
LevelUp AI - Shape Validator.

Checks a repaired JSON object against the accepted shapes for its kind and
turns it into the typed plan model. Structural checks run first so the error
names the field the provider got wrong; the pydantic models then enforce
types and value ranges.
"""

import logging
from typing import Any, Dict, List, Union

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.schemas.generation import GenerationKind
from app.schemas.plans import DietPlan, FoodAnalysis, Recipe, RecommendationSet, WorkoutPlan
from app.utils.errors import ShapeMismatchError


logger = logging.getLogger(__name__)

ParsedPlan = Union[WorkoutPlan, DietPlan, Recipe, RecommendationSet, FoodAnalysis]

_RECOMMENDATION_FIELDS = ("type", "title", "description", "priority", "category", "actionable")


def _is_non_empty_list(value: Any) -> bool:
    return isinstance(value, list) and len(value) > 0


def _require(data: Dict[str, Any], kind: str, *fields: str, prefix: str = "") -> None:
    for name in fields:
        value = data.get(name)
        if value is None or (isinstance(value, str) and not value.strip()):
            raise ShapeMismatchError(kind, f"{prefix}{name}")


def _require_objects(items: List[Any], kind: str, path: str) -> None:
    for index, item in enumerate(items):
        if not isinstance(item, dict):
            raise ShapeMismatchError(kind, f"{path}[{index}]", detail="expected an object")


def _to_model(model: type, data: Dict[str, Any], kind: str) -> BaseModel:
    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = ".".join(str(part) for part in first["loc"]) or "root"
        raise ShapeMismatchError(kind, field, detail=first["msg"])


def validate_workout(data: Dict[str, Any]) -> WorkoutPlan:
    """
    Validate a workout in either layout.

    ``days`` wins when both layouts are present; the flat list is dropped.
    """
    kind = GenerationKind.WORKOUT.value
    _require(data, kind, "name", "description")

    days = data.get("days")
    if _is_non_empty_list(days):
        _require_objects(days, kind, "days")
        for index, day in enumerate(days):
            _require(day, kind, "dayNumber", "dayName", prefix=f"days[{index}].")
            if not isinstance(day.get("exercises"), list):
                raise ShapeMismatchError(kind, f"days[{index}].exercises")
        if "exercises" in data:
            logger.info("Workout response carries both layouts, keeping day-grouped")
        data = {key: value for key, value in data.items() if key != "exercises"}
    elif _is_non_empty_list(data.get("exercises")):
        _require_objects(data["exercises"], kind, "exercises")
        data = {key: value for key, value in data.items() if key != "days"}
    else:
        raise ShapeMismatchError(kind, "exercises", detail="neither 'exercises' nor 'days' is a non-empty list")

    return _to_model(WorkoutPlan, data, kind)


def validate_diet(data: Dict[str, Any]) -> DietPlan:
    kind = GenerationKind.DIET.value
    _require(data, kind, "name", "description")

    meals = data.get("meals")
    if not _is_non_empty_list(meals):
        raise ShapeMismatchError(kind, "meals")
    _require_objects(meals, kind, "meals")
    for index, meal in enumerate(meals):
        _require(meal, kind, "items", "totalCalories", "macros", prefix=f"meals[{index}].")
        if not isinstance(meal["items"], list):
            raise ShapeMismatchError(kind, f"meals[{index}].items")
        if not isinstance(meal["macros"], dict):
            raise ShapeMismatchError(kind, f"meals[{index}].macros")

    return _to_model(DietPlan, data, kind)


def validate_recipe(data: Dict[str, Any]) -> Recipe:
    kind = GenerationKind.RECIPE.value
    _require(data, kind, "name", "description", "category")
    for name in ("ingredients", "steps"):
        if not _is_non_empty_list(data.get(name)):
            raise ShapeMismatchError(kind, name)

    return _to_model(Recipe, data, kind)


def validate_recommendations(data: Dict[str, Any]) -> RecommendationSet:
    kind = GenerationKind.RECOMMENDATION.value
    recommendations = data.get("recommendations")
    if not _is_non_empty_list(recommendations):
        raise ShapeMismatchError(kind, "recommendations")
    _require_objects(recommendations, kind, "recommendations")
    for index, item in enumerate(recommendations):
        _require(item, kind, *_RECOMMENDATION_FIELDS, prefix=f"recommendations[{index}].")

    return _to_model(RecommendationSet, data, kind)


def validate_food_analysis(data: Dict[str, Any]) -> FoodAnalysis:
    """An empty ``detectedFoods`` list is valid: nothing edible was recognised."""
    kind = GenerationKind.FOOD_VISION.value
    foods = data.get("detectedFoods")
    if not isinstance(foods, list):
        raise ShapeMismatchError(kind, "detectedFoods")
    _require_objects(foods, kind, "detectedFoods")
    for index, food in enumerate(foods):
        _require(food, kind, "name", prefix=f"detectedFoods[{index}].")
    _require(data, kind, "totalEstimatedCalories")

    return _to_model(FoodAnalysis, data, kind)


_VALIDATORS = {
    GenerationKind.WORKOUT: validate_workout,
    GenerationKind.DIET: validate_diet,
    GenerationKind.RECIPE: validate_recipe,
    GenerationKind.RECOMMENDATION: validate_recommendations,
    GenerationKind.FOOD_VISION: validate_food_analysis,
}


def validate_plan(kind: GenerationKind, data: Dict[str, Any]) -> ParsedPlan:
    """
    Validate ``data`` for ``kind`` and return the typed plan.

    Raises:
        ShapeMismatchError: Naming the first missing or invalid field.
    """
    kind = GenerationKind(kind)
    if not isinstance(data, dict):
        raise ShapeMismatchError(kind.value, "root", detail="expected a JSON object")
    plan = _VALIDATORS[kind](data)
    logger.debug(f"{kind.value} response matched its shape")
    return plan
