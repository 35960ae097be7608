"""
LevelUp AI - Generation Service.

Orchestrates the generation pipeline for every kind:

    quota gate -> prompt -> provider -> extract/repair -> shape check
    -> persist (catalog resolution, weekly expansion) -> audit log

Quota failures abort before the provider is called. Provider and parsing
failures abort before anything is persisted. The audit log is best effort.
"""

import asyncio
import logging
import time
from typing import Any, Dict, List, Optional

from app.schemas.generation import (
    DEFAULT_RECIPE_PROFILE,
    CompleteProfileRequest,
    DietModifications,
    DietRequest,
    FoodImageRequest,
    GenerationKind,
    ProgressData,
    QuotaCategory,
    RecipeRequest,
    RecommendationRequest,
    UserProfile,
    WorkoutModifications,
    WorkoutRequest,
)
from app.schemas.plans import DietPlan, FoodAnalysis, Recipe, RecommendationSet, WorkoutPlan
from app.schemas.records import (
    CompleteProfile,
    GenerationLogEntry,
    ProgressUpdate,
    Routine,
    StoredDietPlan,
    StoredRecommendation,
    UsageSummary,
)
from app.services.gemini import ImageInput, TextProvider
from app.services.insights import progress_insights
from app.services.json_repair import decode_response
from app.services.macros import rescale
from app.services.plan_writer import PlanWriter
from app.services.prompt_builder import build_prompt
from app.services.quota import QuotaTracker
from app.services.shape_validator import ParsedPlan, validate_plan
from app.services.store import PersistenceStore
from app.utils.errors import (
    LevelUpException,
    MalformedResponseError,
    NotFoundError,
    PartialGenerationError,
    ValidationError,
)


logger = logging.getLogger(__name__)

# Kinds for which an unparseable response is an error rather than a fallback plan.
STRICT_KINDS = (GenerationKind.DIET, GenerationKind.RECOMMENDATION, GenerationKind.FOOD_VISION)

INITIAL_PROGRESS = ProgressData(completed_workouts=0, adherence_rate=100)
INITIAL_CONTEXT = "Initial profile setup - new user starting fitness journey"
PROGRESS_CONTEXT = "Progress update - analyze performance and suggest improvements"


class GenerationService:
    """
    Entry point for every generation use case.

    Args:
        provider: Generative text provider.
        store: Persistence store.
        quota: Monthly quota gate.
        writer: Persists plans with their catalog links and meals.
    """

    def __init__(
        self,
        provider: TextProvider,
        store: PersistenceStore,
        quota: QuotaTracker,
        writer: PlanWriter
    ):
        self.provider = provider
        self.store = store
        self.quota = quota
        self.writer = writer

    # -- Pipeline steps ----------------------------------------------------

    async def _load_profile(self, user_id: str) -> Optional[UserProfile]:
        """Stored profile, or None; a failed lookup never blocks generation."""
        try:
            profile = await self.store.get_user_profile(user_id)
        except Exception as e:
            logger.warning(f"Could not load profile for user {user_id}, continuing without it: {e}")
            return None
        if profile is None:
            logger.info(f"No stored profile for user {user_id}")
        return profile

    async def _audit(
        self,
        user_id: str,
        kind: GenerationKind,
        request: Dict[str, Any],
        started: float,
        response: Optional[Dict[str, Any]] = None,
        error: Optional[Exception] = None
    ) -> None:
        entry = GenerationLogEntry(
            user_id=user_id,
            category=kind.value,
            model=self.provider.model_name,
            request=request,
            response=response,
            success=error is None,
            latency_ms=int((time.time() - started) * 1000),
            error_message=str(error) if error else None,
        )
        try:
            await self.store.log_generation(entry)
        except Exception as e:
            logger.error(f"Failed to write generation audit log for user {user_id}: {e}")

    async def _generate(
        self,
        kind: GenerationKind,
        request,
        profile: Optional[UserProfile],
        meal_type: Optional[str] = None
    ) -> ParsedPlan:
        """Prompt, call the provider, decode and validate."""
        prompt = build_prompt(request, profile)
        raw = await self.provider.generate(prompt, kind)
        return self._parse(kind, raw, meal_type)

    @staticmethod
    def _parse(kind: GenerationKind, raw: str, meal_type: Optional[str] = None) -> ParsedPlan:
        result = decode_response(raw, kind, meal_type)

        if result.used_fallback and kind in STRICT_KINDS:
            raise MalformedResponseError(
                kind.value,
                detail=f"Response could not be parsed after repair ({len(raw)} chars)"
            )
        return validate_plan(kind, result.data)

    # -- Use cases ---------------------------------------------------------

    async def generate_workout(self, request: WorkoutRequest) -> Routine:
        """
        Generate and store a workout routine.

        Raises:
            QuotaExceededError: Monthly workout limit reached; the provider is not called.
            ProviderError: The provider call failed.
            ShapeMismatchError: The response did not match a workout shape.
        """
        logger.info(f"Generating workout for user {request.user_id}")
        await self.quota.check_and_increment(request.user_id, QuotaCategory.WORKOUT)
        profile = request.user_profile or await self._load_profile(request.user_id)

        snapshot = request.model_dump(mode="json", by_alias=True)
        started = time.time()
        try:
            plan: WorkoutPlan = await self._generate(GenerationKind.WORKOUT, request, profile)
            routine = await self.writer.save_workout(request, plan)
        except Exception as e:
            await self._audit(request.user_id, GenerationKind.WORKOUT, snapshot, started, error=e)
            raise

        await self._audit(request.user_id, GenerationKind.WORKOUT, snapshot, started, response=plan.to_api())
        return routine

    async def generate_diet(self, request: DietRequest) -> StoredDietPlan:
        """
        Generate and store a diet plan with its week of meals.

        Raises:
            QuotaExceededError: Monthly diet limit reached; the provider is not called.
            MalformedResponseError: The response could not be parsed even after repair.
        """
        logger.info(f"Generating diet for user {request.user_id} ({request.total_meals} meals)")
        await self.quota.check_and_increment(request.user_id, QuotaCategory.DIET)
        profile = request.user_profile or await self._load_profile(request.user_id)

        snapshot = request.model_dump(mode="json", by_alias=True)
        started = time.time()
        try:
            plan: DietPlan = await self._generate(GenerationKind.DIET, request, profile)
            plan = plan.model_copy(update={"total_calories": request.calories})
            stored = await self.writer.save_diet(request, plan)
        except Exception as e:
            await self._audit(request.user_id, GenerationKind.DIET, snapshot, started, error=e)
            raise

        await self._audit(request.user_id, GenerationKind.DIET, snapshot, started, response=plan.to_api())
        return stored

    async def generate_recipe(self, request: RecipeRequest) -> Recipe:
        """Generate a recipe; not quota counted and not stored."""
        profile = request.user_profile or await self._load_profile(request.user_id)
        if profile is None:
            profile = DEFAULT_RECIPE_PROFILE

        snapshot = request.model_dump(mode="json", by_alias=True)
        started = time.time()
        try:
            recipe: Recipe = await self._generate(
                GenerationKind.RECIPE, request, profile, meal_type=request.meal_type
            )
        except Exception as e:
            await self._audit(request.user_id, GenerationKind.RECIPE, snapshot, started, error=e)
            raise

        await self._audit(request.user_id, GenerationKind.RECIPE, snapshot, started, response=recipe.to_api())
        return recipe

    async def generate_recommendations(self, request: RecommendationRequest) -> List[StoredRecommendation]:
        """Generate recommendations from progress data and store them for the user."""
        profile = request.user_profile or await self._load_profile(request.user_id)

        snapshot = request.model_dump(mode="json", by_alias=True)
        started = time.time()
        try:
            result: RecommendationSet = await self._generate(
                GenerationKind.RECOMMENDATION, request, profile
            )
            saved = await self.store.save_recommendations([
                StoredRecommendation(user_id=request.user_id, **item.model_dump())
                for item in result.recommendations
            ])
        except Exception as e:
            await self._audit(request.user_id, GenerationKind.RECOMMENDATION, snapshot, started, error=e)
            raise

        await self._audit(
            request.user_id, GenerationKind.RECOMMENDATION, snapshot, started, response=result.to_api()
        )
        logger.info(f"Stored {len(saved)} recommendations for user {request.user_id}")
        return saved

    async def analyze_food_image(self, request: FoodImageRequest) -> FoodAnalysis:
        """
        Recognise the foods in a photo and estimate their nutrition.

        Not quota counted and not stored. The image itself is left out of the
        audit log; only its size is recorded.

        Raises:
            ProviderError: The provider call failed.
            MalformedResponseError: The response could not be parsed even after repair.
        """
        image = ImageInput(data=request.image_bytes(), mime_type=request.mime_type)
        logger.info(f"Analysing {len(image.data)} byte {image.mime_type} food image for user {request.user_id}")

        snapshot = request.model_dump(mode="json", by_alias=True, exclude={"image_base64"})
        snapshot["imageBytes"] = len(image.data)
        started = time.time()
        try:
            prompt = build_prompt(request)
            raw = await self.provider.generate(prompt, GenerationKind.FOOD_VISION, image=image)
            analysis: FoodAnalysis = self._parse(GenerationKind.FOOD_VISION, raw)
        except Exception as e:
            await self._audit(request.user_id, GenerationKind.FOOD_VISION, snapshot, started, error=e)
            raise

        await self._audit(
            request.user_id, GenerationKind.FOOD_VISION, snapshot, started, response=analysis.to_api()
        )
        logger.info(f"Detected {len(analysis.detected_foods)} foods for user {request.user_id}")
        return analysis.model_copy(update={"raw_analysis": raw})

    async def _recommendations_or_empty(self, request: RecommendationRequest) -> List[StoredRecommendation]:
        try:
            return await self.generate_recommendations(request)
        except Exception as e:
            logger.error(f"Recommendations failed for user {request.user_id}, returning none: {e}")
            return []

    async def generate_complete_profile(self, request: CompleteProfileRequest) -> CompleteProfile:
        """
        Generate a routine and a diet concurrently, then initial recommendations.

        Raises:
            ValidationError: The two requests are for different users.
            PartialGenerationError: The routine or the diet could not be generated.
        """
        user_id = request.workout.user_id
        if request.diet.user_id != user_id:
            raise ValidationError(
                "Workout and diet requests must be for the same user",
                detail=f"{user_id} != {request.diet.user_id}"
            )

        logger.info(f"Generating complete profile for user {user_id}")
        workout, diet = await asyncio.gather(
            self.generate_workout(request.workout),
            self.generate_diet(request.diet),
            return_exceptions=True,
        )

        failures = {
            branch: result
            for branch, result in (("workout", workout), ("diet", diet))
            if isinstance(result, BaseException)
        }
        if failures:
            for branch, error in failures.items():
                logger.error(f"Complete profile {branch} generation failed for user {user_id}: {error}")
            status_codes = {
                error.status_code for error in failures.values() if isinstance(error, LevelUpException)
            }
            raise PartialGenerationError(
                {branch: str(error) for branch, error in failures.items()},
                status_code=status_codes.pop() if len(status_codes) == 1 else 502
            )

        recommendations = await self._recommendations_or_empty(RecommendationRequest(
            user_id=user_id,
            progress_data=INITIAL_PROGRESS,
            context=INITIAL_CONTEXT,
        ))
        return CompleteProfile(workout_plan=workout, diet_plan=diet, recommendations=recommendations)

    async def regenerate_workout(self, routine_id: str, modifications: WorkoutModifications) -> Routine:
        """Generate a new routine from a stored one's parameters with overrides applied."""
        existing = await self.store.get_routine(routine_id)
        if existing is None:
            raise NotFoundError("Workout routine not found", detail=f"No routine with id {routine_id}")

        overrides = modifications.model_dump(exclude_none=True)
        request = WorkoutRequest(**{
            "user_id": existing.user_id,
            "goal": existing.goal,
            "difficulty": existing.difficulty_level,
            "days_per_week": existing.days_per_week,
            "duration": existing.duration or 60,
            "equipment": existing.equipment,
            "target_muscles": existing.target_muscles,
            "preferences": existing.preferences,
            **overrides,
        })
        logger.info(f"Regenerating routine {routine_id} with {sorted(overrides)}")
        return await self.generate_workout(request)

    async def regenerate_diet(self, plan_id: str, modifications: DietModifications) -> StoredDietPlan:
        """Generate a new diet plan from a stored one's parameters with overrides applied."""
        existing = await self.store.get_diet_plan(plan_id)
        if existing is None:
            raise NotFoundError("Diet plan not found", detail=f"No diet plan with id {plan_id}")

        overrides = modifications.model_dump(exclude_none=True)
        request = DietRequest(**{**self._diet_request_fields(existing), **overrides})
        logger.info(f"Regenerating diet plan {plan_id} with {sorted(overrides)}")
        return await self.generate_diet(request)

    @staticmethod
    def _diet_request_fields(existing: StoredDietPlan) -> Dict[str, Any]:
        return {
            "user_id": existing.user_id,
            "calories": existing.target_calories,
            "goal": existing.goal,
            "restrictions": existing.restrictions,
            "meals_per_day": existing.meals_per_day,
            "target_protein": existing.requested_protein,
            "preferred_foods": existing.preferred_foods,
            "avoid_foods": existing.avoid_foods,
            "preferences": existing.preferences,
        }

    async def adjust_calories(self, plan_id: str, new_calories: int) -> StoredDietPlan:
        """
        Rescale a stored diet plan to a new daily calorie target.

        The result is stored as a new plan derived from the old one, which is
        archived rather than changed.
        """
        existing = await self.store.get_diet_plan(plan_id)
        if existing is None:
            raise NotFoundError("Diet plan not found", detail=f"No diet plan with id {plan_id}")

        plan = DietPlan.model_validate(existing.plan)
        if not plan.total_calories:
            plan = plan.model_copy(update={"total_calories": existing.target_calories})

        scaled = rescale(plan, new_calories)
        request = DietRequest(**{**self._diet_request_fields(existing), "calories": new_calories})
        return await self.writer.save_diet(request, scaled, derived_from=existing.id)

    async def get_usage(self, user_id: str) -> UsageSummary:
        return await self.quota.get_usage(user_id)

    async def update_progress(self, user_id: str, progress: ProgressData) -> ProgressUpdate:
        """Refresh recommendations from new progress figures and add rule-based insights."""
        logger.info(f"Updating progress for user {user_id}")
        recommendations = await self._recommendations_or_empty(RecommendationRequest(
            user_id=user_id,
            progress_data=progress,
            context=PROGRESS_CONTEXT,
        ))
        return ProgressUpdate(
            user_id=user_id,
            progress_data=progress.model_dump(mode="json", by_alias=True),
            recommendations=recommendations,
            insights=progress_insights(progress),
        )
