# app/routes/generation.py
"""LevelUp AI - Generation Routes."""

import base64
from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile
from pydantic import ValidationError as PydanticValidationError

from app.dependencies import get_generation_service
from app.schemas.common import ApiResponse
from app.schemas.generation import (
    ALLOWED_IMAGE_TYPES,
    AdjustCaloriesRequest,
    CompleteProfileRequest,
    DietModifications,
    DietRequest,
    FoodImageRequest,
    ProgressData,
    RecipeRequest,
    RecommendationRequest,
    WorkoutModifications,
    WorkoutRequest,
)
from app.services.generation import GenerationService
from app.utils.errors import ValidationError

router = APIRouter()


@router.post("/workout/generate", tags=["Workout"])
async def generate_workout(
    request: WorkoutRequest,
    service: GenerationService = Depends(get_generation_service)
):
    """Generate a workout routine (counts against the monthly quota)."""
    routine = await service.generate_workout(request)
    return ApiResponse.ok(routine, "Workout plan generated successfully")


@router.post("/workout/{routine_id}/regenerate", tags=["Workout"])
async def regenerate_workout(
    routine_id: str,
    modifications: WorkoutModifications,
    service: GenerationService = Depends(get_generation_service)
):
    routine = await service.regenerate_workout(routine_id, modifications)
    return ApiResponse.ok(routine, "Workout plan regenerated successfully")


@router.post("/diet/generate", tags=["Diet"])
async def generate_diet(
    request: DietRequest,
    service: GenerationService = Depends(get_generation_service)
):
    """Generate a weekly diet plan (counts against the monthly quota)."""
    plan = await service.generate_diet(request)
    return ApiResponse.ok(plan, "Diet plan generated successfully")


@router.post("/diet/{plan_id}/regenerate", tags=["Diet"])
async def regenerate_diet(
    plan_id: str,
    modifications: DietModifications,
    service: GenerationService = Depends(get_generation_service)
):
    plan = await service.regenerate_diet(plan_id, modifications)
    return ApiResponse.ok(plan, "Diet plan regenerated successfully")


@router.post("/diet/{plan_id}/adjust-calories", tags=["Diet"])
async def adjust_calories(
    plan_id: str,
    request: AdjustCaloriesRequest,
    service: GenerationService = Depends(get_generation_service)
):
    """Rescale a diet plan to a new calorie target as a new derived plan."""
    plan = await service.adjust_calories(plan_id, request.calories)
    return ApiResponse.ok(plan, "Diet plan calories adjusted successfully")


@router.post("/recipes/generate", tags=["Recipes"])
async def generate_recipe(
    request: RecipeRequest,
    service: GenerationService = Depends(get_generation_service)
):
    recipe = await service.generate_recipe(request)
    return ApiResponse.ok(recipe.to_api(), "Recipe generated successfully")


@router.post("/recommendations/generate", tags=["Recommendations"])
async def generate_recommendations(
    request: RecommendationRequest,
    service: GenerationService = Depends(get_generation_service)
):
    recommendations = await service.generate_recommendations(request)
    return ApiResponse.ok(recommendations, "Recommendations generated successfully")


@router.post("/food-vision/analyze", tags=["Food Vision"])
async def analyze_food_image(
    request: FoodImageRequest,
    service: GenerationService = Depends(get_generation_service)
):
    """Analyse a base64 food photo (with or without a data URI prefix)."""
    analysis = await service.analyze_food_image(request)
    return ApiResponse.ok(analysis.to_api(), "Food image analyzed successfully")


@router.post("/food-vision/analyze-upload", tags=["Food Vision"])
async def analyze_uploaded_food_image(
    user_id: str = Form(..., alias="userId"),
    file: UploadFile = File(..., description="Food photo (jpg, png, webp)"),
    meal_type: Optional[str] = Form(None, alias="mealType"),
    service: GenerationService = Depends(get_generation_service)
):
    if file.content_type not in ALLOWED_IMAGE_TYPES:
        raise ValidationError(
            "Only image files (jpg, png, jpeg, webp) are allowed",
            detail=f"Got {file.content_type}"
        )

    image_data = await file.read()
    try:
        request = FoodImageRequest(
            user_id=user_id,
            image_base64=base64.b64encode(image_data).decode("ascii"),
            mime_type=file.content_type,
            meal_type=meal_type,
        )
    except PydanticValidationError as e:
        raise ValidationError("Invalid image upload", detail=e.errors()[0]["msg"])

    analysis = await service.analyze_food_image(request)
    data = analysis.to_api()
    data["fileInfo"] = {
        "originalName": file.filename,
        "mimeType": file.content_type,
        "size": len(image_data),
    }
    return ApiResponse.ok(data, "Food image analyzed successfully")


@router.post("/ai/complete-profile", tags=["AI"])
async def generate_complete_profile(
    request: CompleteProfileRequest,
    service: GenerationService = Depends(get_generation_service)
):
    """Generate a first routine, diet plan and recommendations in one call."""
    profile = await service.generate_complete_profile(request)
    return ApiResponse.ok(profile, "Complete fitness profile generated successfully")


@router.post("/ai/progress/{user_id}", tags=["AI"])
async def update_progress(
    user_id: str,
    progress: ProgressData,
    service: GenerationService = Depends(get_generation_service)
):
    update = await service.update_progress(user_id, progress)
    return ApiResponse.ok(update, "Progress updated and analyzed successfully")


@router.get("/usage/{user_id}", tags=["Usage"])
async def get_usage(
    user_id: str,
    service: GenerationService = Depends(get_generation_service)
):
    """Current month's generation usage against the user's plan limits."""
    usage = await service.get_usage(user_id)
    return ApiResponse.ok(usage)
