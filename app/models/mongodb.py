# app/models/mongodb.py
"""
LevelUp AI MongoDB Document Models.

Beanie ODM models for every record the generation pipeline reads or writes.
Records are addressed by their ``uid`` string; Mongo's ``_id`` stays internal.
"""

from beanie import Document, Indexed
from pydantic import Field
from pymongo import ASCENDING, IndexModel
from datetime import datetime
from typing import Optional, List, Dict, Any
from uuid import uuid4


def _uid() -> str:
    return str(uuid4())


class UserProfileDocument(Document):
    """Profile snapshot used to personalise prompts."""

    user_id: Indexed(str, unique=True)
    age: int
    weight: float
    height: float
    gender: str = "other"
    activity_level: str = "moderately_active"
    fitness_goals: List[str] = Field(default_factory=list)
    medical_conditions: List[str] = Field(default_factory=list)
    preferences: Dict[str, Any] = Field(default_factory=dict)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "user_profiles"


class SubscriptionDocument(Document):
    """Subscription model for MongoDB."""

    user_id: str
    plan_name: str = "free"
    status: str = "active"  # active, cancelled, past_due
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "subscriptions"
        indexes = [
            "user_id",
        ]


class PlanLimitsDocument(Document):
    """Monthly generation limits per subscription plan (-1 = unlimited)."""

    plan_name: Indexed(str, unique=True)
    workout_limit: int
    diet_limit: int

    class Settings:
        name = "plan_limits"


class QuotaDocument(Document):
    """Per-user monthly generation counters."""

    user_id: str
    year: int
    month: int
    workout_count: int = 0
    diet_count: int = 0

    class Settings:
        name = "quota_usage"
        indexes = [
            IndexModel(
                [("user_id", ASCENDING), ("year", ASCENDING), ("month", ASCENDING)],
                unique=True,
            ),
        ]


class RoutineDocument(Document):
    """Workout routine model for MongoDB."""

    uid: str = Field(default_factory=_uid)
    user_id: str
    name: str
    description: str
    difficulty_level: str
    goal: str
    days_per_week: int
    duration: Optional[int] = None
    equipment: List[str] = Field(default_factory=list)
    target_muscles: List[str] = Field(default_factory=list)
    preferences: Optional[str] = None
    plan: Dict[str, Any] = Field(default_factory=dict)
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "routines"
        indexes = [
            "uid",
            "user_id",
        ]


class RoutineExerciseDocument(Document):
    routine_id: str
    exercise_id: str
    day_of_week: int
    order_in_day: int
    sets: int = 3
    reps_min: int = 10
    reps_max: int = 12
    rest_seconds: int = 60
    notes: Optional[str] = None

    class Settings:
        name = "routine_exercises"
        indexes = [
            "routine_id",
        ]


class DietPlanDocument(Document):
    """Diet plan model for MongoDB."""

    uid: str = Field(default_factory=_uid)
    user_id: str
    name: str
    description: str
    goal: str
    target_calories: int
    target_protein: float = 0
    target_carbs: float = 0
    target_fat: float = 0
    target_fiber: float = 0
    meals_per_day: int = 4
    restrictions: List[str] = Field(default_factory=list)
    requested_protein: Optional[int] = None
    preferred_foods: List[str] = Field(default_factory=list)
    avoid_foods: List[str] = Field(default_factory=list)
    preferences: Optional[str] = None
    plan: Dict[str, Any] = Field(default_factory=dict)
    derived_from: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "diet_plans"
        indexes = [
            "uid",
            "user_id",
        ]


class DietMealDocument(Document):
    uid: str = Field(default_factory=_uid)
    diet_plan_id: str
    meal_type: str
    day_of_week: int
    order_in_day: int
    name: str
    description: Optional[str] = None
    prep_time_minutes: int = 30
    recipe_instructions: Optional[str] = None

    class Settings:
        name = "diet_meals"
        indexes = [
            "diet_plan_id",
        ]


class DietMealFoodDocument(Document):
    meal_id: str
    food_id: str
    quantity_grams: float = 100
    notes: Optional[str] = None

    class Settings:
        name = "diet_meal_foods"
        indexes = [
            "meal_id",
        ]


class ExerciseDocument(Document):
    """Exercise catalog entry; ``name_key`` is the lower-cased name."""

    uid: str = Field(default_factory=_uid)
    name: str
    name_key: Indexed(str, unique=True)
    category: str = "ai_generated"
    equipment: str = "bodyweight"
    muscle_groups: List[str] = Field(default_factory=list)
    difficulty_level: str = "beginner"
    instructions: str = ""

    class Settings:
        name = "exercises"


class FoodDocument(Document):
    """Food catalog entry; ``name_key`` is the lower-cased name."""

    uid: str = Field(default_factory=_uid)
    name: str
    name_key: Indexed(str, unique=True)
    category: str = "Other"
    calories_per_100g: float = 0
    protein_per_100g: float = 0
    carbs_per_100g: float = 0
    fat_per_100g: float = 0
    fiber_per_100g: float = 0
    is_common: bool = True

    class Settings:
        name = "foods"


class GenerationLogDocument(Document):
    """Audit trail of every generation attempt."""

    user_id: str
    category: str
    model: str
    request: Dict[str, Any] = Field(default_factory=dict)
    response: Optional[Dict[str, Any]] = None
    success: bool
    latency_ms: int
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "ai_generation_logs"
        indexes = [
            "user_id",
        ]


class RecommendationDocument(Document):
    uid: str = Field(default_factory=_uid)
    user_id: str
    type: str
    title: str
    description: str
    priority: str
    category: str
    actionable: bool
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "recommendations"
        indexes = [
            "user_id",
        ]


DOCUMENT_MODELS = [
    UserProfileDocument,
    SubscriptionDocument,
    PlanLimitsDocument,
    QuotaDocument,
    RoutineDocument,
    RoutineExerciseDocument,
    DietPlanDocument,
    DietMealDocument,
    DietMealFoodDocument,
    ExerciseDocument,
    FoodDocument,
    GenerationLogDocument,
    RecommendationDocument,
]
