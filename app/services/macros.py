"""
LevelUp AI - Macro Aggregation & Rescaling.

Plan-level totals are always recomputed from the meals, never carried over
from an earlier version of the plan.
"""

import logging
import math
from typing import Iterable, Optional

from app.schemas.plans import DietPlan, FoodItem, MacroNutrients, Meal
from app.utils.errors import ValidationError


logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return int(math.floor(value + 0.5))


def aggregate(meals: Iterable[Meal]) -> MacroNutrients:
    """
    Sum meal macros into plan-level totals.

    Fiber counts as 0 for meals that do not report it.
    """
    protein = carbs = fat = fiber = 0.0
    for meal in meals:
        protein += meal.macros.protein
        carbs += meal.macros.carbs
        fat += meal.macros.fat
        fiber += meal.macros.fiber or 0
    return MacroNutrients(protein=protein, carbs=carbs, fat=fat, fiber=fiber)


def total_calories(meals: Iterable[Meal]) -> float:
    return sum(meal.total_calories for meal in meals)


def _scale(value: float, factor: float) -> int:
    return round_half_up(value * factor)


def _scale_optional(value: Optional[float], factor: float) -> Optional[int]:
    # Absent (or zero) figures stay absent.
    return _scale(value, factor) if value else None


def _scale_item(item: FoodItem, factor: float) -> FoodItem:
    return item.model_copy(update={
        "calories": _scale(item.calories, factor),
        "protein": _scale_optional(item.protein, factor),
        "carbs": _scale_optional(item.carbs, factor),
        "fat": _scale_optional(item.fat, factor),
    })


def _scale_meal(meal: Meal, factor: float) -> Meal:
    macros = MacroNutrients(
        protein=_scale(meal.macros.protein, factor),
        carbs=_scale(meal.macros.carbs, factor),
        fat=_scale(meal.macros.fat, factor),
        fiber=_scale_optional(meal.macros.fiber, factor),
    )
    return meal.model_copy(update={
        "items": [_scale_item(item, factor) for item in meal.items],
        "total_calories": _scale(meal.total_calories, factor),
        "macros": macros,
    })


def rescale(plan: DietPlan, new_calorie_target: float) -> DietPlan:
    """
    Scale every meal of ``plan`` proportionally to a new calorie target.

    The factor is ``new_calorie_target / plan.total_calories``; plans without a
    recorded target fall back to the sum of their meals.

    Each numeric field is rounded on its own, so item calories may not add up
    exactly to the meal total afterwards.

    Args:
        plan: Plan to scale; left untouched.
        new_calorie_target: New daily calorie target.

    Returns:
        DietPlan: New plan with scaled meals.

    Raises:
        ValidationError: If the plan has no calories to scale from.
    """
    current = plan.total_calories or total_calories(plan.meals)
    if current <= 0:
        raise ValidationError(
            "Cannot rescale a plan without calories",
            detail=f"Plan '{plan.name}' totals {current} kcal"
        )

    factor = new_calorie_target / current
    logger.info(f"Rescaling '{plan.name}' from {current:.0f} to {new_calorie_target} kcal (x{factor:.3f})")
    return plan.model_copy(update={
        "meals": [_scale_meal(meal, factor) for meal in plan.meals],
        "total_calories": new_calorie_target,
    })
