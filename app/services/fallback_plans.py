"""
LevelUp AI - Fallback Plans Service.

Minimal, shape-valid plans handed back when a generated response cannot be
parsed even after repair.
"""

from typing import Any, Dict


def get_fallback_workout_plan() -> Dict[str, Any]:
    """
    Get a one-exercise workout in the legacy flat layout.

    Returns:
        Dict[str, Any]: Workout plan with a single bodyweight exercise.
    """
    return {
        "name": "Basic Routine",
        "description": "Basic routine generated automatically",
        "exercises": [
            {
                "name": "Squats",
                "sets": 3,
                "reps": "8-12",
                "restTime": "60 seg",
                "instructions": "Keep your back straight and lower until your thighs are parallel to the floor.",
                "targetMuscles": ["quadriceps", "glutes"],
            }
        ],
    }


def get_fallback_diet_plan() -> Dict[str, Any]:
    """
    Get a one-meal, one-item diet plan.
    """
    return {
        "name": "Basic Meal Plan",
        "description": "Basic meal plan generated automatically",
        "meals": [
            {
                "name": "Breakfast",
                "items": [
                    {"name": "Oats", "quantity": "50g", "calories": 190, "protein": 7, "carbs": 33, "fat": 3, "fiber": 5}
                ],
                "totalCalories": 190,
                "macros": {"protein": 7, "carbs": 33, "fat": 3, "fiber": 5},
            }
        ],
    }


def get_fallback_recipe(meal_type: str) -> Dict[str, Any]:
    """
    Get a simple recipe filed under the requested meal type.

    Args:
        meal_type: Category the caller asked for.
    """
    return {
        "name": "Oatmeal with Fruit",
        "description": "Simple and nutritious oatmeal",
        "category": meal_type or "snack",
        "ingredients": [
            {"name": "Oats", "quantity": "50", "unit": "g"},
            {"name": "Banana", "quantity": "1", "unit": "unit"},
            {"name": "Milk", "quantity": "200", "unit": "ml"},
        ],
        "steps": [
            "Heat the milk in a saucepan",
            "Add the oats and cook for 5 minutes",
            "Serve topped with sliced banana",
        ],
        "nutritionalInfo": {"calories": 200, "protein": 8, "carbs": 35, "fat": 4, "fiber": 5},
        "prepTime": 10,
        "servings": 1,
    }


def get_fallback_recommendations() -> Dict[str, Any]:
    """Get a single generic consistency recommendation."""
    return {
        "recommendations": [
            {
                "type": "workout",
                "title": "Keep a consistent schedule",
                "description": "Train on fixed days each week and focus on proper form.",
                "priority": "medium",
                "category": "consistency",
                "actionable": True,
                "metadata": {},
            }
        ]
    }


def get_fallback_food_analysis() -> Dict[str, Any]:
    """Get an empty analysis asking for a clearer photo."""
    return {
        "detectedFoods": [],
        "totalEstimatedCalories": 0,
        "totalEstimatedProtein": 0,
        "totalEstimatedCarbs": 0,
        "totalEstimatedFat": 0,
        "suggestions": ["Retake the photo in good light with the whole plate in view."],
    }
