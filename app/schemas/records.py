"""
LevelUp AI - Persisted Record Schemas.

Store-agnostic shapes of everything the generation pipeline writes. The Mongo
documents in ``app.models.mongodb`` carry the same fields; the in-memory store
used by the tests keeps these models directly.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field


def _new_id() -> str:
    return str(uuid4())


class _Record(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class Routine(_Record):
    """
    Stored workout routine.

    The generation parameters are kept alongside the plan so the routine can
    be regenerated with modifications later.
    """

    id: str = Field(default_factory=_new_id)
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


class RoutineExercise(_Record):
    routine_id: str
    exercise_id: str
    day_of_week: int
    order_in_day: int
    sets: int = 3
    reps_min: int = 10
    reps_max: int = 12
    rest_seconds: int = 60
    notes: Optional[str] = None


class StoredDietPlan(_Record):
    """
    Stored diet plan.

    ``derived_from`` points at the plan this one was rescaled from by an
    "adjust calories" operation.
    """

    id: str = Field(default_factory=_new_id)
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


class DietMeal(_Record):
    id: str = Field(default_factory=_new_id)
    diet_plan_id: str
    meal_type: str
    day_of_week: int
    order_in_day: int
    name: str
    description: Optional[str] = None
    prep_time_minutes: int = 30
    recipe_instructions: Optional[str] = None


class DietMealFood(_Record):
    meal_id: str
    food_id: str
    quantity_grams: float = 100
    notes: Optional[str] = None


class CatalogExercise(_Record):
    id: str = Field(default_factory=_new_id)
    name: str
    category: str = "ai_generated"
    equipment: str = "bodyweight"
    muscle_groups: List[str] = Field(default_factory=list)
    difficulty_level: str = "beginner"
    instructions: str = ""


class CatalogFood(_Record):
    id: str = Field(default_factory=_new_id)
    name: str
    category: str = "Other"
    calories_per_100g: float = 0
    protein_per_100g: float = 0
    carbs_per_100g: float = 0
    fat_per_100g: float = 0
    fiber_per_100g: float = 0
    is_common: bool = True


class PlanLimits(_Record):
    """Monthly limits of a subscription plan; -1 means unlimited."""

    plan_name: str
    workout_limit: int
    diet_limit: int

    def limit_for(self, category: str) -> int:
        return self.workout_limit if category == "workout" else self.diet_limit


class QuotaRecord(_Record):
    user_id: str
    year: int
    month: int
    workout_count: int = 0
    diet_count: int = 0

    def count_for(self, category: str) -> int:
        return self.workout_count if category == "workout" else self.diet_count


class GenerationLogEntry(_Record):
    user_id: str
    category: str
    model: str
    request: Dict[str, Any] = Field(default_factory=dict)
    response: Optional[Dict[str, Any]] = None
    success: bool
    latency_ms: int
    error_message: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)


class StoredRecommendation(_Record):
    id: str = Field(default_factory=_new_id)
    user_id: str
    type: str
    title: str
    description: str
    priority: str
    category: str
    actionable: bool
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=datetime.utcnow)


class CategoryUsage(BaseModel):
    used: int
    limit: int


class UsageSummary(BaseModel):
    plan: str
    workout: CategoryUsage
    diet: CategoryUsage
    month: int
    year: int


class ProgressInsights(BaseModel):
    workout_consistency: str
    adherence_score: float
    progress_trend: str
    recommendations: List[str]
    next_milestone: str


class ProgressUpdate(BaseModel):
    user_id: str
    progress_data: Dict[str, Any]
    recommendations: List[StoredRecommendation] = Field(default_factory=list)
    insights: ProgressInsights
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class CompleteProfile(BaseModel):
    """Result of generating a user's first routine, diet and recommendations together."""

    workout_plan: Routine
    diet_plan: StoredDietPlan
    recommendations: List[StoredRecommendation] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
