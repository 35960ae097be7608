"""
LevelUp AI - Plan Writer.

Persists validated plans. The routine or diet plan record itself is the
primary write and its failure propagates; exercise links, expanded meals and
meal-food links are secondary and are logged and skipped on failure.
"""

import logging
import re
from typing import List, Optional, Tuple

from app.schemas.generation import DietRequest, WorkoutRequest
from app.schemas.plans import DietPlan, Exercise, Meal, WorkoutPlan
from app.schemas.records import (
    DietMeal,
    DietMealFood,
    Routine,
    RoutineExercise,
    StoredDietPlan,
)
from app.services.catalog import CatalogResolver, parse_quantity_to_grams
from app.services.macros import aggregate
from app.services.meal_expander import expand_week
from app.services.store import PersistenceStore, catalog_key


logger = logging.getLogger(__name__)

DEFAULT_REPS = (10, 12)
DEFAULT_REST_SECONDS = 60
DEFAULT_PREP_MINUTES = 30
DEFAULT_RECIPE_INSTRUCTIONS = "Prepare as directed"

_REPS_RANGE = re.compile(r"(\d+)\s*-\s*(\d+)")
_NUMBER = re.compile(r"\d+")


def parse_reps(reps: Optional[str]) -> Tuple[int, int]:
    """
    Split a reps string into (min, max).

    "8-12" -> (8, 12), "15" -> (15, 15), "to failure" -> (10, 12)
    """
    if not reps:
        return DEFAULT_REPS
    match = _REPS_RANGE.search(reps)
    if match:
        return int(match.group(1)), int(match.group(2))
    match = _NUMBER.search(reps)
    if match:
        value = int(match.group())
        return value, value
    return DEFAULT_REPS


def parse_rest_seconds(rest_time: Optional[str]) -> int:
    """First number of a rest string: "60-90 seg" -> 60."""
    match = _NUMBER.search(rest_time or "")
    return int(match.group()) if match else DEFAULT_REST_SECONDS


def describe_meal(meal: Meal) -> Optional[str]:
    """Summarise a meal's items as "Oats (80g), Banana (1 unit)"."""
    parts = [f"{item.name} ({item.quantity})" if item.quantity else item.name for item in meal.items]
    return ", ".join(parts) or None


def _placements(plan: WorkoutPlan) -> List[Tuple[int, int, Exercise]]:
    """(day, order in day, exercise) for every exercise; the flat layout is all day 1."""
    if plan.days:
        return [
            (day.day_number, order, exercise)
            for day in plan.days
            for order, exercise in enumerate(day.exercises, start=1)
        ]
    return [(1, order, exercise) for order, exercise in enumerate(plan.exercises or [], start=1)]


class PlanWriter:
    """
    Writes routines and diet plans with their links.

    Args:
        store: Persistence store.
        catalog: Resolver for exercise and food names.
    """

    def __init__(self, store: PersistenceStore, catalog: CatalogResolver):
        self.store = store
        self.catalog = catalog

    async def save_workout(self, request: WorkoutRequest, plan: WorkoutPlan) -> Routine:
        routine = await self.store.create_routine(Routine(
            user_id=request.user_id,
            name=plan.name,
            description=plan.description,
            difficulty_level=request.difficulty,
            goal=request.goal,
            days_per_week=request.days_per_week,
            duration=request.duration,
            equipment=list(request.equipment),
            target_muscles=list(request.target_muscles),
            preferences=request.preferences,
            plan=plan.to_api(),
        ))
        logger.info(f"Saved routine {routine.id} ({plan.layout.value}) for user {request.user_id}")

        try:
            await self._link_exercises(routine, plan)
        except Exception as e:
            logger.error(f"Error linking exercises for routine {routine.id}: {e}")
        return routine

    async def _link_exercises(self, routine: Routine, plan: WorkoutPlan) -> None:
        placements = _placements(plan)
        exercise_ids = await self.catalog.resolve_exercises(exercise for _, _, exercise in placements)

        links = []
        for (day, order, exercise), exercise_id in zip(placements, exercise_ids):
            if exercise_id is None:
                logger.warning(f"No catalog entry for '{exercise.name}', skipping link")
                continue
            reps_min, reps_max = parse_reps(exercise.reps)
            links.append(RoutineExercise(
                routine_id=routine.id,
                exercise_id=exercise_id,
                day_of_week=day,
                order_in_day=order,
                sets=exercise.sets or 3,
                reps_min=reps_min,
                reps_max=reps_max,
                rest_seconds=parse_rest_seconds(exercise.rest_time),
                notes=exercise.instructions,
            ))

        await self.store.add_routine_exercises(links)
        logger.info(f"Linked {len(links)}/{len(placements)} exercises to routine {routine.id}")

    async def save_diet(
        self,
        request: DietRequest,
        plan: DietPlan,
        derived_from: Optional[str] = None
    ) -> StoredDietPlan:
        """
        Store a diet plan, then its week of meals and their foods.

        Args:
            request: Parameters the plan was generated (or rescaled) for.
            plan: Validated plan; ``plan.total_calories`` overrides the request's calories.
            derived_from: Id of the plan this one was rescaled from.
        """
        totals = aggregate(plan.meals)
        target_calories = plan.total_calories or request.calories

        stored = await self.store.create_diet_plan(StoredDietPlan(
            user_id=request.user_id,
            name=plan.name,
            description=plan.description,
            goal=request.goal,
            target_calories=int(target_calories),
            target_protein=totals.protein,
            target_carbs=totals.carbs,
            target_fat=totals.fat,
            target_fiber=totals.fiber or 0,
            meals_per_day=request.meals_per_day,
            restrictions=list(request.restrictions),
            requested_protein=request.target_protein,
            preferred_foods=list(request.preferred_foods),
            avoid_foods=list(request.avoid_foods),
            preferences=request.preferences,
            plan=plan.model_copy(update={"total_calories": target_calories}).to_api(),
            derived_from=derived_from,
        ))
        logger.info(f"Saved diet plan {stored.id} with {len(plan.meals)} meals for user {request.user_id}")

        try:
            await self._store_meals(stored, plan, request.meals_per_day)
        except Exception as e:
            logger.error(f"Error storing meals for diet plan {stored.id}: {e}")
        return stored

    async def _store_meals(self, stored: StoredDietPlan, plan: DietPlan, meals_per_day: int) -> None:
        expanded = expand_week(plan, meals_per_day)
        meals = await self.store.add_diet_meals([
            DietMeal(
                diet_plan_id=stored.id,
                meal_type=placed.meal_type.value,
                day_of_week=placed.day_of_week,
                order_in_day=placed.order_in_day,
                name=placed.meal.name,
                description=describe_meal(placed.meal),
                prep_time_minutes=placed.meal.prep_time or DEFAULT_PREP_MINUTES,
                recipe_instructions=placed.meal.instructions or DEFAULT_RECIPE_INSTRUCTIONS,
            )
            for placed in expanded
        ])
        logger.info(f"Stored {len(meals)} meals for diet plan {stored.id}")

        food_ids = await self.catalog.resolve_foods(item for meal in plan.meals for item in meal.items)
        links = []
        for record, placed in zip(meals, expanded):
            for item in placed.meal.items:
                food_id = food_ids.get(catalog_key(item.name))
                if food_id is None:
                    continue
                links.append(DietMealFood(
                    meal_id=record.id,
                    food_id=food_id,
                    quantity_grams=parse_quantity_to_grams(item.quantity),
                    notes=item.quantity or None,
                ))

        await self.store.add_diet_meal_foods(links)
        logger.info(f"Linked {len(links)} foods to diet plan {stored.id} ({len(food_ids)} distinct)")
