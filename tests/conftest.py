import asyncio
import base64
import json
from datetime import datetime, timezone
from typing import Dict, List, Optional, Union

import pytest

from settings import settings
from app.dependencies import build_generation_service
from app.schemas.generation import GenerationKind, UserProfile
from app.schemas.records import (
    CatalogExercise,
    CatalogFood,
    DietMeal,
    DietMealFood,
    GenerationLogEntry,
    PlanLimits,
    QuotaRecord,
    Routine,
    RoutineExercise,
    StoredDietPlan,
    StoredRecommendation,
)
from app.services.catalog import CatalogResolver
from app.services.gemini import ImageInput, TextProvider
from app.services.plan_writer import PlanWriter
from app.services.quota import QuotaTracker
from app.services.store import UNLIMITED, PersistenceStore, catalog_key


FIXED_NOW = datetime(2026, 3, 15, 12, 0, tzinfo=timezone.utc)


class FakeProvider(TextProvider):
    """Scripted provider: answers per kind, in order, repeating the last answer."""

    model_name = "fake-model"

    def __init__(self, responses: Optional[Dict[str, List[Union[str, Exception]]]] = None):
        self.responses = {GenerationKind(kind): list(items) for kind, items in (responses or {}).items()}
        self.calls = []
        self.images: List[ImageInput] = []

    def script(self, kind: str, *items: Union[str, Exception]) -> None:
        self.responses[GenerationKind(kind)] = list(items)

    async def generate(self, prompt: str, kind: GenerationKind, image: Optional[ImageInput] = None) -> str:
        kind = GenerationKind(kind)
        self.calls.append((kind, prompt))
        if image is not None:
            self.images.append(image)
        await asyncio.sleep(0)
        queue = self.responses.get(kind)
        if not queue:
            raise RuntimeError(f"No scripted response for {kind.value}")
        item = queue.pop(0) if len(queue) > 1 else queue[0]
        if isinstance(item, Exception):
            raise item
        return item

    def kinds_called(self) -> List[str]:
        return [kind.value for kind, _ in self.calls]


class InMemoryStore(PersistenceStore):
    """Dict-backed PersistenceStore; method names in ``fail_on`` raise."""

    def __init__(self):
        self.profiles: Dict[str, UserProfile] = {}
        self.subscriptions: Dict[str, str] = {}
        self.limits: Dict[str, PlanLimits] = {
            name: PlanLimits(plan_name=name, workout_limit=values["workout"], diet_limit=values["diet"])
            for name, values in settings.DEFAULT_PLAN_LIMITS.items()
        }
        self.quotas: Dict[tuple, QuotaRecord] = {}
        self.routines: Dict[str, Routine] = {}
        self.routine_exercises: List[RoutineExercise] = []
        self.diet_plans: Dict[str, StoredDietPlan] = {}
        self.diet_meals: List[DietMeal] = []
        self.diet_meal_foods: List[DietMealFood] = []
        self.exercises: Dict[str, CatalogExercise] = {}
        self.foods: Dict[str, CatalogFood] = {}
        self.recommendations: List[StoredRecommendation] = []
        self.logs: List[GenerationLogEntry] = []
        self.fail_on = set()

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail_on:
            raise RuntimeError(f"{name} unavailable")

    def set_usage(self, user_id: str, workout: int = 0, diet: int = 0, now: datetime = FIXED_NOW) -> None:
        self.quotas[(user_id, now.year, now.month)] = QuotaRecord(
            user_id=user_id, year=now.year, month=now.month, workout_count=workout, diet_count=diet
        )

    async def get_user_profile(self, user_id):
        self._maybe_fail("get_user_profile")
        return self.profiles.get(user_id)

    async def get_active_plan_name(self, user_id):
        return self.subscriptions.get(user_id)

    async def get_plan_limits(self, plan_name):
        return self.limits.get(plan_name)

    async def get_quota(self, user_id, year, month):
        return self.quotas.get((user_id, year, month))

    async def ensure_quota(self, user_id, year, month):
        await asyncio.sleep(0)
        self.quotas.setdefault(
            (user_id, year, month), QuotaRecord(user_id=user_id, year=year, month=month)
        )

    async def increment_quota(self, user_id, year, month, category, limit):
        await asyncio.sleep(0)
        # Check and update run without yielding, like a single conditional update.
        record = self.quotas.get((user_id, year, month))
        if record is None:
            return None
        field = f"{category}_count"
        if limit != UNLIMITED and getattr(record, field) >= limit:
            return None
        updated = record.model_copy(update={field: getattr(record, field) + 1})
        self.quotas[(user_id, year, month)] = updated
        return updated

    async def create_routine(self, routine):
        self._maybe_fail("create_routine")
        for key, existing in self.routines.items():
            if existing.user_id == routine.user_id and existing.is_active:
                self.routines[key] = existing.model_copy(update={"is_active": False})
        self.routines[routine.id] = routine
        return routine

    async def get_routine(self, routine_id):
        return self.routines.get(routine_id)

    async def add_routine_exercises(self, links):
        self._maybe_fail("add_routine_exercises")
        self.routine_exercises.extend(links)

    async def create_diet_plan(self, plan):
        self._maybe_fail("create_diet_plan")
        for key, existing in self.diet_plans.items():
            if existing.user_id == plan.user_id and existing.is_active:
                self.diet_plans[key] = existing.model_copy(update={"is_active": False})
        self.diet_plans[plan.id] = plan
        return plan

    async def get_diet_plan(self, plan_id):
        return self.diet_plans.get(plan_id)

    async def add_diet_meals(self, meals):
        self._maybe_fail("add_diet_meals")
        self.diet_meals.extend(meals)
        return meals

    async def add_diet_meal_foods(self, links):
        self.diet_meal_foods.extend(links)

    async def find_exercise(self, name):
        return self.exercises.get(catalog_key(name))

    async def insert_exercise(self, exercise):
        self._maybe_fail("insert_exercise")
        await asyncio.sleep(0)
        return self.exercises.setdefault(catalog_key(exercise.name), exercise)

    async def any_exercise(self):
        return next(iter(self.exercises.values()), None)

    async def find_food(self, name):
        self._maybe_fail("find_food")
        return self.foods.get(catalog_key(name))

    async def insert_food(self, food):
        await asyncio.sleep(0)
        return self.foods.setdefault(catalog_key(food.name), food)

    async def save_recommendations(self, recommendations):
        self._maybe_fail("save_recommendations")
        self.recommendations.extend(recommendations)
        return recommendations

    async def log_generation(self, entry):
        self._maybe_fail("log_generation")
        self.logs.append(entry)


# -- Payload builders --------------------------------------------------------

def exercise(name: str, **overrides) -> dict:
    data = {
        "name": name,
        "sets": 3,
        "reps": "8-12",
        "restTime": "60-90 sec",
        "instructions": f"Perform {name} with control",
        "targetMuscles": ["chest"],
    }
    data.update(overrides)
    return data


def workout_payload(days: int = 3, exercises_per_day: int = 2) -> dict:
    return {
        "name": "Strength Builder",
        "description": "Progressive full body plan",
        "days": [
            {
                "dayNumber": day,
                "dayName": f"Day {day}",
                "focusArea": "full body",
                "exercises": [exercise(f"Exercise {day}-{n}") for n in range(1, exercises_per_day + 1)],
            }
            for day in range(1, days + 1)
        ],
    }


MEAL_NAMES = ("Breakfast", "Lunch", "Snack", "Dinner", "Snack", "Snack")
DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")


def meal(name: str, calories: float = 500, food: str = "Chicken breast") -> dict:
    return {
        "name": name,
        "items": [
            {"name": food, "quantity": "150g", "calories": calories, "protein": 30, "carbs": 40, "fat": 10},
        ],
        "totalCalories": calories,
        "macros": {"protein": 30, "carbs": 40, "fat": 10, "fiber": 4},
        "instructions": "Cook and serve",
        "prepTime": "15 min",
    }


def diet_payload(meals_per_day: int = 4, days: int = 7, calories: float = 500) -> dict:
    return {
        "name": "Lean Week",
        "description": "Balanced week of meals",
        "meals": [
            meal(f"{DAY_NAMES[day]} - {MEAL_NAMES[slot]}", calories=calories, food=f"Food {slot}")
            for day in range(days)
            for slot in range(meals_per_day)
        ],
    }


def recipe_payload(category: str = "lunch") -> dict:
    return {
        "name": "Chicken Quinoa Bowl",
        "description": "High protein bowl",
        "category": category,
        "ingredients": [{"name": "Chicken", "quantity": "150", "unit": "g"}],
        "steps": ["Cook the quinoa", "Grill the chicken", "Assemble"],
        "nutritionalInfo": {"calories": 520, "protein": "45g", "carbs": 50, "fat": 12, "fiber": 6},
        "prepTime": "25 minutes",
        "servings": 2,
    }


def recommendations_payload(count: int = 2) -> dict:
    return {
        "recommendations": [
            {
                "type": "workout",
                "title": f"Tip {n}",
                "description": "Add one more session per week",
                "priority": "high",
                "category": "consistency",
                "actionable": True,
            }
            for n in range(1, count + 1)
        ]
    }


# PNG signature followed by a few bytes; enough for the provider to receive.
IMAGE_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
IMAGE_BASE64 = base64.b64encode(IMAGE_BYTES).decode("ascii")


def food_analysis_payload() -> dict:
    return {
        "detectedFoods": [
            {"name": "Scrambled eggs", "confidence": 95, "estimatedGrams": 100},
            {"name": "Corn tortilla", "confidence": "90%", "estimatedGrams": "30g"},
        ],
        "totalEstimatedCalories": 250,
        "totalEstimatedProtein": 15,
        "totalEstimatedCarbs": 20,
        "totalEstimatedFat": 12,
        "suggestions": ["Add vegetables for more fiber"],
    }


def as_text(payload: dict) -> str:
    return json.dumps(payload)


# -- Fixtures ----------------------------------------------------------------

@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def service(provider, store):
    service = build_generation_service(provider=provider, store=store)
    service.quota = QuotaTracker(store, clock=lambda: FIXED_NOW)
    return service


@pytest.fixture
def writer(store):
    return PlanWriter(store, CatalogResolver(store))

