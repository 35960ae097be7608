"""LevelUp AI - Pydantic Schemas Package."""

from app.schemas.common import ApiResponse
from app.schemas.generation import (
    GenerationKind,
    QuotaCategory,
    UserProfile,
    ProgressData,
    WorkoutRequest,
    DietRequest,
    RecipeRequest,
    RecommendationRequest,
    GenerationRequest,
    WorkoutModifications,
    DietModifications,
    CompleteProfileRequest,
    AdjustCaloriesRequest,
)
from app.schemas.plans import (
    Exercise,
    WorkoutDay,
    WorkoutPlan,
    MacroNutrients,
    FoodItem,
    Meal,
    DietPlan,
    MealType,
    ExpandedMeal,
    Recipe,
    Recommendation,
    RecommendationSet,
)
from app.schemas.records import (
    Routine,
    RoutineExercise,
    StoredDietPlan,
    DietMeal,
    DietMealFood,
    CatalogExercise,
    CatalogFood,
    PlanLimits,
    QuotaRecord,
    GenerationLogEntry,
    StoredRecommendation,
    UsageSummary,
)

__all__ = [
    "ApiResponse",
    # Requests
    "GenerationKind",
    "QuotaCategory",
    "UserProfile",
    "ProgressData",
    "WorkoutRequest",
    "DietRequest",
    "RecipeRequest",
    "RecommendationRequest",
    "GenerationRequest",
    "WorkoutModifications",
    "DietModifications",
    "CompleteProfileRequest",
    "AdjustCaloriesRequest",
    # Parsed plans
    "Exercise",
    "WorkoutDay",
    "WorkoutPlan",
    "MacroNutrients",
    "FoodItem",
    "Meal",
    "DietPlan",
    "MealType",
    "ExpandedMeal",
    "Recipe",
    "Recommendation",
    "RecommendationSet",
    # Records
    "Routine",
    "RoutineExercise",
    "StoredDietPlan",
    "DietMeal",
    "DietMealFood",
    "CatalogExercise",
    "CatalogFood",
    "PlanLimits",
    "QuotaRecord",
    "GenerationLogEntry",
    "StoredRecommendation",
    "UsageSummary",
]
