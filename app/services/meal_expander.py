"""
LevelUp AI - Weekly Meal Expander.

Spreads a generated diet over the seven days of the week.

A response with at least ``WEEKLY_PLAN_MEAL_THRESHOLD`` meals is treated as a
full week laid out day after day, ``round(N / 7)`` meals per day (half up).
Counts that do not divide evenly either leave the last day short or leave
meals past day seven unplaced. Anything smaller is a single day that is
repeated on every day of the week.
"""

import logging
from typing import List, Optional, Sequence, Tuple

from settings import settings
from app.schemas.plans import DietPlan, ExpandedMeal, Meal, MealType
from app.services.macros import round_half_up


logger = logging.getLogger(__name__)

DAYS_PER_WEEK = 7

# Checked in order; names are matched case-insensitively.
MEAL_TYPE_KEYWORDS: Tuple[Tuple[MealType, Tuple[str, ...]], ...] = (
    (MealType.BREAKFAST, ("desayuno", "breakfast")),
    (MealType.LUNCH, ("almuerzo", "comida", "lunch")),
    (MealType.DINNER, ("cena", "dinner")),
    (MealType.SNACK, ("snack", "colación", "merienda")),
)


def infer_meal_type(meal_name: str) -> MealType:
    """Guess the meal type from its name, defaulting to snack."""
    name = (meal_name or "").lower()
    for meal_type, keywords in MEAL_TYPE_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return meal_type
    return MealType.SNACK


def is_weekly(meal_count: int, threshold: Optional[int] = None) -> bool:
    threshold = settings.WEEKLY_PLAN_MEAL_THRESHOLD if threshold is None else threshold
    return meal_count >= threshold


def _place(meal: Meal, day: int, order: int) -> ExpandedMeal:
    return ExpandedMeal(
        meal=meal,
        day_of_week=day,
        order_in_day=order,
        meal_type=infer_meal_type(meal.name),
    )


def _expand_weekly(meals: Sequence[Meal]) -> List[ExpandedMeal]:
    per_day = round_half_up(len(meals) / DAYS_PER_WEEK)
    logger.info(f"Weekly plan detected: {per_day} meals per day x {DAYS_PER_WEEK} days")
    dropped = len(meals) - per_day * DAYS_PER_WEEK
    if dropped > 0:
        logger.warning(f"Dropping the last {dropped} of {len(meals)} meals that do not fit the week")

    expanded = []
    for day in range(1, DAYS_PER_WEEK + 1):
        chunk = meals[(day - 1) * per_day:day * per_day]
        expanded.extend(_place(meal, day, order) for order, meal in enumerate(chunk, start=1))
    return expanded


def _expand_single_day(meals: Sequence[Meal]) -> List[ExpandedMeal]:
    logger.info(f"Single-day plan detected: {len(meals)} meals replicated on {DAYS_PER_WEEK} days")
    return [
        _place(meal, day, order)
        for day in range(1, DAYS_PER_WEEK + 1)
        for order, meal in enumerate(meals, start=1)
    ]


def expand_week(
    plan: DietPlan,
    meals_per_day: Optional[int] = None,
    threshold: Optional[int] = None
) -> List[ExpandedMeal]:
    """
    Assign every meal of ``plan`` a day of the week and a position in that day.

    Args:
        plan: Validated diet plan.
        meals_per_day: Meals per day the user asked for.
        threshold: Meal count from which the plan counts as weekly.

    Returns:
        List[ExpandedMeal]: Meals ordered by day, then by position in the day.
            Each entry keeps a reference to the meal it was built from.
    """
    meals_per_day = meals_per_day or settings.DEFAULT_MEALS_PER_DAY
    meals = list(plan.meals)
    expected = meals_per_day * DAYS_PER_WEEK

    if is_weekly(len(meals), threshold):
        if len(meals) != expected:
            logger.warning(
                f"Diet '{plan.name}' has {len(meals)} meals, expected {expected} "
                f"({meals_per_day} per day)"
            )
        return _expand_weekly(meals)

    if len(meals) != meals_per_day:
        logger.warning(
            f"Single-day diet '{plan.name}' has {len(meals)} meals, asked for {meals_per_day}"
        )
    return _expand_single_day(meals)
