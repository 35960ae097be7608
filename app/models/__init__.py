"""
LevelUp AI - MongoDB Models Package.

Export all Beanie ODM models for MongoDB operations.
"""

from app.models.mongodb import (
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
    DOCUMENT_MODELS,
)

__all__ = [
    "UserProfileDocument",
    "SubscriptionDocument",
    "PlanLimitsDocument",
    "QuotaDocument",
    "RoutineDocument",
    "RoutineExerciseDocument",
    "DietPlanDocument",
    "DietMealDocument",
    "DietMealFoodDocument",
    "ExerciseDocument",
    "FoodDocument",
    "GenerationLogDocument",
    "RecommendationDocument",
    "DOCUMENT_MODELS",
]
