import pytest

from app.schemas.generation import GenerationKind
from app.schemas.plans import WorkoutLayout
from app.services.shape_validator import (
    validate_diet,
    validate_plan,
    validate_recipe,
    validate_recommendations,
    validate_workout,
)
from app.utils.errors import ShapeMismatchError
from tests.conftest import (
    diet_payload,
    exercise,
    recipe_payload,
    recommendations_payload,
    workout_payload,
)


class TestWorkout:
    def test_day_grouped_layout(self):
        plan = validate_workout(workout_payload(days=3, exercises_per_day=2))
        assert plan.layout == WorkoutLayout.DAY_GROUPED
        assert len(plan.days) == 3
        assert len(plan.all_exercises()) == 6

    def test_legacy_layout(self):
        plan = validate_workout({
            "name": "Quick",
            "description": "Flat list",
            "exercises": [exercise("Squat"), exercise("Plank")],
        })
        assert plan.layout == WorkoutLayout.LEGACY
        assert [e.name for e in plan.all_exercises()] == ["Squat", "Plank"]

    def test_days_win_when_both_layouts_present(self):
        data = workout_payload(days=2)
        data["exercises"] = [exercise("Ignored")]
        plan = validate_workout(data)
        assert plan.layout == WorkoutLayout.DAY_GROUPED
        assert plan.exercises is None

    def test_neither_layout(self):
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_workout({"name": "Empty", "description": "x", "exercises": [], "days": []})
        assert exc_info.value.field == "exercises"

    def test_missing_name(self):
        data = workout_payload()
        del data["name"]
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_workout(data)
        assert exc_info.value.field == "name"

    def test_day_missing_name(self):
        data = workout_payload()
        del data["days"][1]["dayName"]
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_workout(data)
        assert exc_info.value.field == "days[1].dayName"

    def test_model_errors_report_the_dotted_path(self):
        data = {"name": "Plan", "description": "x", "exercises": [exercise("")]}
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_workout(data)
        assert exc_info.value.field == "exercises.0.name"
        assert exc_info.value.status_code == 422

    def test_loose_exercise_values_are_coerced(self):
        data = {
            "name": "Plan",
            "description": "x",
            "exercises": [exercise("Row", sets="4 sets", reps=12), exercise("Curl", sets="several")],
        }
        plan = validate_workout(data)
        row, curl = plan.exercises
        assert row.sets == 4
        assert row.reps == "12"
        assert curl.sets == 3


class TestDiet:
    def test_valid_week(self):
        plan = validate_diet(diet_payload(meals_per_day=4))
        assert len(plan.meals) == 28
        assert plan.meals[0].prep_time == 15
        assert plan.total_calories is None

    def test_meal_without_macros(self):
        data = diet_payload(meals_per_day=3, days=1)
        del data["meals"][2]["macros"]
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_diet(data)
        assert exc_info.value.field == "meals[2].macros"

    def test_items_must_be_a_list(self):
        data = diet_payload(meals_per_day=3, days=1)
        data["meals"][0]["items"] = "eggs and toast"
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_diet(data)
        assert exc_info.value.field == "meals[0].items"

    def test_numeric_strings_are_parsed(self):
        data = diet_payload(meals_per_day=3, days=1)
        data["meals"][0]["totalCalories"] = "450 kcal"
        data["meals"][0]["items"][0]["calories"] = "not sure"
        data["meals"][0]["macros"]["protein"] = "32g"
        plan = validate_diet(data)
        first = plan.meals[0]
        assert first.total_calories == 450
        assert first.items[0].calories == 0
        assert first.macros.protein == 32

    def test_empty_meals(self):
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_diet({"name": "Plan", "description": "x", "meals": []})
        assert exc_info.value.field == "meals"


class TestRecipe:
    def test_valid_recipe(self):
        recipe = validate_recipe(recipe_payload("dinner"))
        assert recipe.category == "dinner"
        assert recipe.prep_time == 25
        assert recipe.nutritional_info.protein == 45

    def test_category_is_required(self):
        data = recipe_payload()
        data["category"] = "  "
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_recipe(data)
        assert exc_info.value.field == "category"

    def test_steps_must_not_be_empty(self):
        data = recipe_payload()
        data["steps"] = []
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_recipe(data)
        assert exc_info.value.field == "steps"


class TestRecommendations:
    def test_valid_set(self):
        result = validate_recommendations(recommendations_payload(3))
        assert [r.title for r in result.recommendations] == ["Tip 1", "Tip 2", "Tip 3"]
        assert result.recommendations[0].metadata == {}

    def test_false_actionable_counts_as_present(self):
        data = recommendations_payload(1)
        data["recommendations"][0]["actionable"] = False
        assert validate_recommendations(data).recommendations[0].actionable is False

    def test_missing_field(self):
        data = recommendations_payload(2)
        del data["recommendations"][1]["priority"]
        with pytest.raises(ShapeMismatchError) as exc_info:
            validate_recommendations(data)
        assert exc_info.value.field == "recommendations[1].priority"


def test_validate_plan_rejects_non_objects():
    with pytest.raises(ShapeMismatchError) as exc_info:
        validate_plan(GenerationKind.DIET, ["not", "an", "object"])
    assert exc_info.value.field == "root"


def test_validate_plan_dispatches_on_kind():
    plan = validate_plan("recipe", recipe_payload())
    assert plan.name == "Chicken Quinoa Bowl"
