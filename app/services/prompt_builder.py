"""
LevelUp AI - Prompt Builder.

Pure functions turning a typed generation request into provider prompt text.
Every prompt lists the request's constraints as labelled fields, spells out
the JSON shape expected back and ends with the formatting rules. The date is
injectable so output is reproducible.
"""

import json
from datetime import date
from typing import List, Optional

from app.schemas.generation import (
    DEFAULT_RECIPE_PROFILE,
    DietRequest,
    FoodImageRequest,
    GenerationRequest,
    RecipeRequest,
    RecommendationRequest,
    UserProfile,
    WorkoutRequest,
)


WORKOUT_SCHEMA = """{
  "name": "Plan name",
  "description": "Detailed plan description",
  "days": [
    {
      "dayNumber": 1,
      "dayName": "Day 1 - Upper Body",
      "focusArea": "upper body",
      "exercises": [
        {
          "name": "Exercise name",
          "sets": 3,
          "reps": "8-12",
          "restTime": "60-90 sec",
          "instructions": "Clear instructions to perform the exercise",
          "targetMuscles": ["muscle1", "muscle2"]
        }
      ]
    }
  ]
}"""

DIET_SCHEMA = """{
  "name": "Plan name",
  "description": "Plan description",
  "meals": [
    {
      "name": "Monday - Breakfast: Meal name",
      "items": [
        {
          "name": "Food name",
          "quantity": "100g",
          "calories": 150,
          "protein": 10,
          "carbs": 20,
          "fat": 5,
          "fiber": 3
        }
      ],
      "totalCalories": 450,
      "macros": {"protein": 30, "carbs": 50, "fat": 15, "fiber": 8},
      "instructions": "Short preparation instructions",
      "prepTime": 15
    }
  ]
}"""

RECIPE_SCHEMA = """{{
  "name": "Recipe name",
  "description": "Short recipe description",
  "category": "{meal_type}",
  "ingredients": [
    {{"name": "Ingredient name", "quantity": "Amount", "unit": "g, ml, units, etc."}}
  ],
  "steps": ["Step 1", "Step 2", "Step 3"],
  "nutritionalInfo": {{"calories": 0, "protein": 0, "carbs": 0, "fat": 0, "fiber": 0}},
  "prepTime": 0,
  "servings": 1
}}"""

RECOMMENDATION_SCHEMA = """{
  "recommendations": [
    {
      "type": "workout | nutrition | recovery | lifestyle",
      "title": "Short title",
      "description": "Specific, actionable advice",
      "priority": "high | medium | low",
      "category": "Area the advice targets",
      "actionable": true,
      "metadata": {}
    }
  ]
}"""

FOOD_ANALYSIS_SCHEMA = """{
  "detectedFoods": [
    {"name": "Food name", "confidence": 90, "estimatedGrams": 100}
  ],
  "totalEstimatedCalories": 0,
  "totalEstimatedProtein": 0,
  "totalEstimatedCarbs": 0,
  "totalEstimatedFat": 0,
  "suggestions": ["Short nutrition tip"]
}"""

JSON_ONLY_RULES = """- Respond ONLY with a valid JSON object.
- Do not include explanations, comments or any additional text.
- Do not use backticks, markdown or code formatting."""


def _join(values: List[str], empty: str) -> str:
    return ", ".join(values) if values else empty


def _profile_lines(profile: UserProfile) -> str:
    return (
        f"- Age: {profile.age} years\n"
        f"- Weight: {profile.weight} kg\n"
        f"- Height: {profile.height} cm\n"
        f"- Gender: {profile.gender}\n"
        f"- Activity level: {profile.activity_level}"
    )


def build_workout_prompt(
    request: WorkoutRequest,
    profile: Optional[UserProfile] = None,
    generated_on: Optional[date] = None
) -> str:
    """
    Build the prompt for a day-grouped workout routine.

    Args:
        request: Workout request.
        profile: Stored profile, when the user has one.
        generated_on: Date stamped into the prompt (defaults to today).
    """
    profile = profile or request.user_profile
    generated_on = generated_on or date.today()
    medical = profile.medical_conditions if profile else []

    prompt = f"""Generate a personalised, safe training plan as a valid JSON object, without explanations or justifications.
The plan must suit the requested goal: {request.goal}.

Use exactly this structure:

{WORKOUT_SCHEMA}

TRAINING PARAMETERS:
- Main goal: {request.goal}
- Difficulty level: {request.difficulty}
- Training days per week: {request.days_per_week}
- Session duration: {request.duration} minutes
- Available equipment: {_join(request.equipment, "bodyweight and basic")}
- Target muscles: {_join(request.target_muscles, "full body")}"""

    if profile:
        prompt += f"""

USER DATA:
{_profile_lines(profile)}"""

    prompt += f"""

- Medical conditions to consider: {_join(medical, "none")}"""

    if request.preferences:
        prompt += f"""
- Additional preferences: {request.preferences}"""

    prompt += f"""

Generation date: {generated_on.isoformat()}

IMPORTANT:
{JSON_ONLY_RULES}
- The plan must be realistic and safe for the {request.difficulty} level.
- Create exactly {request.days_per_week} training days in the "days" array.
- Each day must have 4-7 exercises that fit in {request.duration} minutes.
- Work different muscle groups on different days.
- Sets, reps and rest times must be appropriate for the level."""

    return prompt


def build_diet_prompt(
    request: DietRequest,
    profile: Optional[UserProfile] = None,
    generated_on: Optional[date] = None
) -> str:
    """
    Build the prompt for a full-week diet.

    The prompt asks for ``meals_per_day * 7`` distinct meals, listed day by
    day; the weekly expander relies on that count and order.
    """
    profile = profile or request.user_profile
    generated_on = generated_on or date.today()
    total_meals = request.total_meals

    prompt = f"""Generate a COMPLETE WEEKLY (7 DAYS) nutrition plan with VARIETY as a valid JSON object. Every day must have DIFFERENT meals.

Use exactly this structure:

{DIET_SCHEMA}

NUTRITION DATA:
- Goal: {request.goal}
- Daily calories: {request.calories}
- Meals per day: {request.meals_per_day}
- TOTAL MEALS TO GENERATE: {total_meals} ({request.meals_per_day} meals x 7 days)"""

    if profile:
        prompt += f"\n{_profile_lines(profile)}"
        if profile.medical_conditions:
            prompt += f"\n- Medical conditions: {', '.join(profile.medical_conditions)}"
        if profile.preferences.dietary_restrictions:
            prompt += f"\n- Profile dietary restrictions: {', '.join(profile.preferences.dietary_restrictions)}"

    if request.restrictions:
        prompt += f"\n- Dietary restrictions: {', '.join(request.restrictions)}"
    if request.target_protein:
        prompt += f"\n- Target protein: {request.target_protein}g per day"
    if request.preferred_foods:
        prompt += f"\n- Preferred foods: {', '.join(request.preferred_foods)}"
    if request.avoid_foods:
        prompt += f"\n- Foods to avoid: {', '.join(request.avoid_foods)}"
    if request.preferences:
        prompt += f"\n- Additional preferences: {request.preferences}"

    prompt += f"""

VARIETY REQUIREMENTS:
- Generate exactly {total_meals} UNIQUE meals ({request.meals_per_day} per day x 7 days).
- List the meals day by day: all of Monday's meals first, then Tuesday's, through Sunday.
- NEVER repeat the same primary protein source more than 2 times per week (e.g. chicken, fish, beef, eggs, tofu).
- Vary carbohydrates and alternate vegetables and fruits every day.

Generation date: {generated_on.isoformat()}

IMPORTANT:
{JSON_ONLY_RULES}
- The "meals" array must contain {total_meals} meals in total.
- Each day must add up to approximately {request.calories} calories.
- Strictly respect the listed restrictions.
- Calculate the macros of every meal correctly and keep quantities realistic."""

    return prompt.strip()


def build_recipe_prompt(
    request: RecipeRequest,
    profile: UserProfile,
    generated_on: Optional[date] = None
) -> str:
    """Build the prompt for a single recipe of ``request.meal_type``."""
    generated_on = generated_on or date.today()
    restrictions = profile.preferences.dietary_restrictions
    schema = RECIPE_SCHEMA.format(meal_type=request.meal_type)

    return f"""Generate a healthy, original recipe as a valid JSON object, without explanations or justifications.
Use the requested meal category: {request.meal_type}.

Use exactly this structure:

{schema}

USER DATA:
{_profile_lines(profile)}
- Fitness goals: {_join(profile.fitness_goals, "general")}
- Dietary restrictions: {_join(restrictions, "none")}
- Medical conditions: {_join(profile.medical_conditions, "none")}

Generation date: {generated_on.isoformat()}

IMPORTANT:
{JSON_ONLY_RULES}
- Nutritional information must be approximate but realistic.
- Preparation time is in minutes.
- Adapt the recipe to the user's nutritional profile."""


def build_recommendation_prompt(
    request: RecommendationRequest,
    profile: Optional[UserProfile] = None,
    generated_on: Optional[date] = None
) -> str:
    """Build the prompt for progress-based recommendations."""
    profile = profile or request.user_profile
    generated_on = generated_on or date.today()
    progress = request.progress_data

    prompt = f"""Analyse the user's progress and generate personalised recommendations.

Use exactly this structure:

{RECOMMENDATION_SCHEMA}

PROGRESS DATA:
- Completed workouts: {progress.completed_workouts}
- Adherence rate: {progress.adherence_rate}%"""

    if progress.weight_progress is not None:
        prompt += f"\n- Weight progress: {progress.weight_progress} kg"
    if progress.strength_progress:
        prompt += f"\n- Strength progress: {json.dumps(progress.strength_progress, sort_keys=True)}"
    if progress.endurance_progress is not None:
        prompt += f"\n- Endurance progress: {progress.endurance_progress}%"

    if profile:
        prompt += f"""

USER PROFILE:
- Age: {profile.age} years
- Current weight: {profile.weight} kg
- Height: {profile.height} cm
- Goals: {_join(profile.fitness_goals, "general")}"""
        if profile.medical_conditions:
            prompt += f"\n- Medical conditions: {', '.join(profile.medical_conditions)}"

    if progress.feedback:
        prompt += f"\n- User feedback: {progress.feedback}"
    if request.context:
        prompt += f"\n- Additional context: {request.context}"

    prompt += f"""

Generation date: {generated_on.isoformat()}

IMPORTANT:
{JSON_ONLY_RULES}
- Generate 3-5 specific, actionable recommendations.
- Order them by urgency and impact.
- Take medical context into account where it applies.
- Recommendations must be realistic and safe."""

    return prompt.strip()


def build_food_image_prompt(request: FoodImageRequest) -> str:
    """Build the instructions sent alongside a food photo."""
    prompt = f"""You are an expert nutritionist. Analyse the food in this image and provide:

1. Every food you can identify, with a confidence from 0 to 100 and its estimated weight in grams.
2. The estimated TOTAL calories, protein, carbs and fat of everything shown.
3. Up to 3 nutrition suggestions.

Use exactly this structure:

{FOOD_ANALYSIS_SCHEMA}"""

    if request.meal_type:
        prompt += f"\n\nThe user logged this photo as: {request.meal_type}."

    prompt += f"""

IMPORTANT:
{JSON_ONLY_RULES}
- List every food separately, even repeated ones (e.g. 2 eggs and 1 tortilla).
- Be precise with the gram estimates.
- Use a low confidence when you are unsure.
- Return an empty detectedFoods list if the image shows no food."""

    return prompt.strip()


def build_prompt(
    request: GenerationRequest,
    profile: Optional[UserProfile] = None,
    generated_on: Optional[date] = None
) -> str:
    """Dispatch on the request's kind."""
    if isinstance(request, WorkoutRequest):
        return build_workout_prompt(request, profile, generated_on)
    if isinstance(request, DietRequest):
        return build_diet_prompt(request, profile, generated_on)
    if isinstance(request, FoodImageRequest):
        return build_food_image_prompt(request)
    if isinstance(request, RecipeRequest):
        return build_recipe_prompt(
            request, profile or request.user_profile or DEFAULT_RECIPE_PROFILE, generated_on
        )
    return build_recommendation_prompt(request, profile, generated_on)
