import pytest

from app.schemas.generation import (
    CompleteProfileRequest,
    DietModifications,
    DietRequest,
    ProgressData,
    RecipeRequest,
    RecommendationRequest,
    UserProfile,
    WorkoutModifications,
    WorkoutRequest,
)
from app.utils.errors import (
    MalformedResponseError,
    NotFoundError,
    PartialGenerationError,
    QuotaExceededError,
    RateLimitedError,
    ShapeMismatchError,
    ValidationError,
)
from tests.conftest import (
    as_text,
    diet_payload,
    recipe_payload,
    recommendations_payload,
    workout_payload,
)


def workout_request(user_id="u1", **overrides):
    data = dict(user_id=user_id, goal="gain_muscle", difficulty="intermediate", days_per_week=3, duration=60)
    data.update(overrides)
    return WorkoutRequest(**data)


def diet_request(user_id="u1", **overrides):
    data = dict(user_id=user_id, calories=2000, goal="lose_weight", meals_per_day=4)
    data.update(overrides)
    return DietRequest(**data)


def progress(**overrides):
    data = dict(completed_workouts=12, adherence_rate=85)
    data.update(overrides)
    return ProgressData(**data)


class TestWorkout:
    @pytest.mark.asyncio
    async def test_happy_path(self, service, provider, store):
        provider.script("workout", "```json\n" + as_text(workout_payload(days=3)) + "\n```")

        routine = await service.generate_workout(workout_request())

        assert routine.name == "Strength Builder"
        assert routine.id in store.routines
        assert len(store.routine_exercises) == 6
        assert store.quotas[("u1", 2026, 3)].workout_count == 1
        assert provider.kinds_called() == ["workout"]
        [log] = store.logs
        assert log.success is True
        assert log.category == "workout"
        assert log.model == "fake-model"
        assert log.request["daysPerWeek"] == 3
        assert log.response["name"] == "Strength Builder"

    @pytest.mark.asyncio
    async def test_quota_exceeded_skips_the_provider(self, service, provider, store):
        store.set_usage("u1", workout=5)
        provider.script("workout", as_text(workout_payload()))

        with pytest.raises(QuotaExceededError):
            await service.generate_workout(workout_request())

        assert provider.calls == []
        assert store.routines == {}
        assert store.logs == []

    @pytest.mark.asyncio
    async def test_unparseable_response_falls_back_to_basic_routine(self, service, provider, store):
        provider.script("workout", "Sorry, I can't produce JSON right now")

        routine = await service.generate_workout(workout_request())

        assert routine.name == "Basic Routine"
        assert routine.plan["exercises"][0]["name"] == "Squats"
        [link] = store.routine_exercises
        assert (link.day_of_week, link.reps_min, link.reps_max) == (1, 8, 12)

    @pytest.mark.asyncio
    async def test_shape_mismatch_persists_nothing(self, service, provider, store):
        provider.script("workout", as_text({"name": "Plan", "description": "x", "exercises": []}))

        with pytest.raises(ShapeMismatchError):
            await service.generate_workout(workout_request())

        assert store.routines == {}
        [log] = store.logs
        assert log.success is False
        assert "exercises" in log.error_message

    @pytest.mark.asyncio
    async def test_provider_error_propagates_and_is_audited(self, service, provider, store):
        provider.script("workout", RateLimitedError(detail="429"))

        with pytest.raises(RateLimitedError):
            await service.generate_workout(workout_request())

        assert store.logs[0].success is False
        assert store.quotas[("u1", 2026, 3)].workout_count == 1

    @pytest.mark.asyncio
    async def test_audit_failure_does_not_fail_generation(self, service, provider, store):
        store.fail_on.add("log_generation")
        provider.script("workout", as_text(workout_payload()))

        routine = await service.generate_workout(workout_request())

        assert routine.id in store.routines

    @pytest.mark.asyncio
    async def test_stored_profile_is_used_in_the_prompt(self, service, provider, store):
        store.profiles["u1"] = UserProfile(id="u1", age=41, weight=90, height=185)
        provider.script("workout", as_text(workout_payload()))

        await service.generate_workout(workout_request())

        _, prompt = provider.calls[0]
        assert "Age: 41 years" in prompt

    @pytest.mark.asyncio
    async def test_profile_lookup_failure_is_not_fatal(self, service, provider, store):
        store.fail_on.add("get_user_profile")
        provider.script("workout", as_text(workout_payload()))

        routine = await service.generate_workout(workout_request())

        assert routine.id in store.routines
        assert "USER DATA" not in provider.calls[0][1]


class TestDiet:
    @pytest.mark.asyncio
    async def test_week_of_meals_is_stored(self, service, provider, store):
        provider.script("diet", as_text(diet_payload(meals_per_day=4)))

        plan = await service.generate_diet(diet_request(calories=2200))

        assert plan.target_calories == 2200
        assert plan.plan["totalCalories"] == 2200
        assert len(store.diet_meals) == 28
        assert len(store.diet_meal_foods) == 28
        assert store.quotas[("u1", 2026, 3)].diet_count == 1
        assert store.logs[0].response["totalCalories"] == 2200

    @pytest.mark.asyncio
    async def test_malformed_response_is_an_error(self, service, provider, store):
        provider.script("diet", '{"name": "Broken", "meals": [{"name": "Lunch", "items": [')

        with pytest.raises(MalformedResponseError) as exc_info:
            await service.generate_diet(diet_request())

        assert exc_info.value.status_code == 422
        assert store.diet_plans == {}
        assert store.quotas[("u1", 2026, 3)].diet_count == 1
        assert store.logs[0].success is False

    @pytest.mark.asyncio
    async def test_repaired_response_is_accepted(self, service, provider, store):
        text = as_text(diet_payload(meals_per_day=3, days=1))
        provider.script("diet", "Here is the plan:\n" + text[:-1] + ",}")

        plan = await service.generate_diet(diet_request(meals_per_day=3))

        assert plan.name == "Lean Week"
        assert len(store.diet_meals) == 21


class TestRecipe:
    @pytest.mark.asyncio
    async def test_recipe_uses_default_profile_and_is_not_counted(self, service, provider, store):
        provider.script("recipe", as_text(recipe_payload("dinner")))

        recipe = await service.generate_recipe(RecipeRequest(user_id="u1", meal_type="dinner"))

        assert recipe.category == "dinner"
        assert "Age: 30 years" in provider.calls[0][1]
        assert store.quotas == {}
        assert store.logs[0].category == "recipe"

    @pytest.mark.asyncio
    async def test_unparseable_recipe_falls_back(self, service, provider):
        provider.script("recipe", "no recipe today")

        recipe = await service.generate_recipe(RecipeRequest(user_id="u1", meal_type="breakfast"))

        assert recipe.name == "Oatmeal with Fruit"
        assert recipe.category == "breakfast"
        assert recipe.nutritional_info.calories == 200


class TestRecommendations:
    @pytest.mark.asyncio
    async def test_recommendations_are_stored(self, service, provider, store):
        provider.script("recommendation", as_text(recommendations_payload(3)))

        saved = await service.generate_recommendations(
            RecommendationRequest(user_id="u1", progress_data=progress())
        )

        assert [r.title for r in saved] == ["Tip 1", "Tip 2", "Tip 3"]
        assert {r.user_id for r in store.recommendations} == {"u1"}

    @pytest.mark.asyncio
    async def test_unparseable_recommendations_are_an_error(self, service, provider, store):
        provider.script("recommendation", "I think you should rest more.")

        with pytest.raises(MalformedResponseError):
            await service.generate_recommendations(
                RecommendationRequest(user_id="u1", progress_data=progress())
            )
        assert store.recommendations == []


class TestCompleteProfile:
    @pytest.mark.asyncio
    async def test_generates_routine_diet_and_recommendations(self, service, provider, store):
        provider.script("workout", as_text(workout_payload()))
        provider.script("diet", as_text(diet_payload()))
        provider.script("recommendation", as_text(recommendations_payload(2)))

        profile = await service.generate_complete_profile(
            CompleteProfileRequest(workout=workout_request(), diet=diet_request())
        )

        assert profile.workout_plan.name == "Strength Builder"
        assert profile.diet_plan.target_calories == 2000
        assert len(profile.recommendations) == 2
        assert sorted(provider.kinds_called()) == ["diet", "recommendation", "workout"]
        assert "Initial profile setup" in provider.calls[-1][1]

    @pytest.mark.asyncio
    async def test_mismatched_users(self, service, provider):
        with pytest.raises(ValidationError):
            await service.generate_complete_profile(
                CompleteProfileRequest(workout=workout_request("u1"), diet=diet_request("u2"))
            )
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_failed_branch_raises_partial_error(self, service, provider, store):
        provider.script("workout", as_text(workout_payload()))
        provider.script("diet", "not json")

        with pytest.raises(PartialGenerationError) as exc_info:
            await service.generate_complete_profile(
                CompleteProfileRequest(workout=workout_request(), diet=diet_request())
            )

        error = exc_info.value
        assert list(error.failures) == ["diet"]
        assert error.status_code == 422
        assert len(store.routines) == 1
        assert "recommendation" not in provider.kinds_called()

    @pytest.mark.asyncio
    async def test_failed_recommendations_do_not_fail_the_profile(self, service, provider):
        provider.script("workout", as_text(workout_payload()))
        provider.script("diet", as_text(diet_payload()))
        provider.script("recommendation", RateLimitedError())

        profile = await service.generate_complete_profile(
            CompleteProfileRequest(workout=workout_request(), diet=diet_request())
        )

        assert profile.recommendations == []


class TestRegenerate:
    @pytest.mark.asyncio
    async def test_regenerate_workout_applies_modifications(self, service, provider, store):
        provider.script("workout", as_text(workout_payload()))
        original = await service.generate_workout(workout_request(equipment=["bench"]))

        regenerated = await service.regenerate_workout(
            original.id, WorkoutModifications(days_per_week=5, difficulty="advanced")
        )

        assert regenerated.id != original.id
        assert regenerated.days_per_week == 5
        assert regenerated.difficulty_level == "advanced"
        assert regenerated.equipment == ["bench"]
        assert store.routines[original.id].is_active is False
        assert "Create exactly 5 training days" in provider.calls[-1][1]
        assert store.quotas[("u1", 2026, 3)].workout_count == 2

    @pytest.mark.asyncio
    async def test_regenerate_missing_routine(self, service):
        with pytest.raises(NotFoundError):
            await service.regenerate_workout("missing", WorkoutModifications())

    @pytest.mark.asyncio
    async def test_regenerate_diet_applies_modifications(self, service, provider, store):
        provider.script("diet", as_text(diet_payload()))
        original = await service.generate_diet(diet_request(avoid_foods=["tuna"]))

        regenerated = await service.regenerate_diet(original.id, DietModifications(calories=2400))

        assert regenerated.target_calories == 2400
        assert regenerated.avoid_foods == ["tuna"]
        assert store.diet_plans[original.id].is_active is False

    @pytest.mark.asyncio
    async def test_regenerate_missing_diet(self, service):
        with pytest.raises(NotFoundError):
            await service.regenerate_diet("missing", DietModifications())


class TestAdjustCalories:
    @pytest.mark.asyncio
    async def test_rescaled_plan_is_stored_as_a_derived_plan(self, service, provider, store):
        provider.script("diet", as_text(diet_payload(calories=500)))
        original = await service.generate_diet(diet_request(calories=2000))
        calls_before = len(provider.calls)

        adjusted = await service.adjust_calories(original.id, 2500)

        assert adjusted.id != original.id
        assert adjusted.derived_from == original.id
        assert adjusted.target_calories == 2500
        assert adjusted.plan["meals"][0]["totalCalories"] == 625
        assert adjusted.target_protein == 28 * 38
        assert store.diet_plans[original.id].is_active is False
        assert store.diet_plans[original.id].plan["meals"][0]["totalCalories"] == 500
        assert len(provider.calls) == calls_before
        assert store.quotas[("u1", 2026, 3)].diet_count == 1

    @pytest.mark.asyncio
    async def test_missing_plan(self, service):
        with pytest.raises(NotFoundError):
            await service.adjust_calories("missing", 2000)


class TestProgressAndUsage:
    @pytest.mark.asyncio
    async def test_update_progress(self, service, provider):
        provider.script("recommendation", as_text(recommendations_payload(1)))

        update = await service.update_progress("u1", progress(completed_workouts=22, strength_progress={"squat": 5}))

        assert len(update.recommendations) == 1
        assert update.insights.workout_consistency == "excellent"
        assert update.insights.progress_trend == "good_progress"
        assert update.progress_data["completedWorkouts"] == 22
        assert "Progress update" in provider.calls[0][1]

    @pytest.mark.asyncio
    async def test_update_progress_survives_provider_failure(self, service, provider):
        provider.script("recommendation", RateLimitedError())

        update = await service.update_progress("u1", progress(completed_workouts=2, adherence_rate=50))

        assert update.recommendations == []
        assert update.insights.next_milestone == "Complete your first 10 workouts"

    @pytest.mark.asyncio
    async def test_usage(self, service, provider, store):
        provider.script("workout", as_text(workout_payload()))
        await service.generate_workout(workout_request())

        usage = await service.get_usage("u1")

        assert usage.workout.used == 1
        assert usage.diet.used == 0
        assert usage.plan == "free"
