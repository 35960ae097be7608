"""
LevelUp AI - Generation Request Schemas.

Typed, immutable requests for every generation kind. The variants share a
``kind`` discriminator so a route or a queue can carry any of them as a
single ``GenerationRequest``.
"""

import base64
import binascii
import re
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class GenerationKind(str, Enum):
    """Kinds of content the pipeline can generate."""
    WORKOUT = "workout"
    DIET = "diet"
    RECIPE = "recipe"
    RECOMMENDATION = "recommendation"
    FOOD_VISION = "food_vision"


class QuotaCategory(str, Enum):
    """Kinds that count against the monthly quota."""
    WORKOUT = "workout"
    DIET = "diet"


class WorkoutGoal(str, Enum):
    LOSE_WEIGHT = "lose_weight"
    GAIN_MUSCLE = "gain_muscle"
    IMPROVE_ENDURANCE = "improve_endurance"
    MAINTAIN_FITNESS = "maintain_fitness"
    STRENGTH_TRAINING = "strength_training"
    FLEXIBILITY = "flexibility"


class WorkoutDifficulty(str, Enum):
    BEGINNER = "beginner"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    EXPERT = "expert"


class DietGoal(str, Enum):
    LOSE_WEIGHT = "lose_weight"
    GAIN_WEIGHT = "gain_weight"
    MAINTAIN_WEIGHT = "maintain_weight"
    BUILD_MUSCLE = "build_muscle"
    IMPROVE_HEALTH = "improve_health"


class DietaryRestriction(str, Enum):
    VEGETARIAN = "vegetarian"
    VEGAN = "vegan"
    NO_DAIRY = "no_dairy"
    NO_GLUTEN = "no_gluten"
    NO_NUTS = "no_nuts"
    KETO = "keto"
    PALEO = "paleo"
    MEDITERRANEAN = "mediterranean"
    LOW_CARB = "low_carb"
    LOW_FAT = "low_fat"


class ActivityLevel(str, Enum):
    SEDENTARY = "sedentary"
    LIGHTLY_ACTIVE = "lightly_active"
    MODERATELY_ACTIVE = "moderately_active"
    VERY_ACTIVE = "very_active"
    EXTREMELY_ACTIVE = "extremely_active"


class _RequestModel(BaseModel):
    """Frozen camelCase-aliased base for request payloads."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        use_enum_values=True,
    )


class UserPreferences(_RequestModel):
    workout_types: List[str] = Field(default_factory=list)
    dietary_restrictions: List[str] = Field(default_factory=list)
    available_equipment: List[str] = Field(default_factory=list)
    workout_duration: Optional[int] = None
    workout_frequency: Optional[int] = None


class UserProfile(_RequestModel):
    """
    Snapshot of the user's profile embedded into prompts.

    Attributes:
        age: Age in years.
        weight: Weight in kg.
        height: Height in cm.
        gender: Free-form gender label.
        activity_level: One of ActivityLevel.
        fitness_goals: Free-form list of goals.
        medical_conditions: Conditions the plan must respect.
        preferences: Stored user preferences.
    """

    id: Optional[str] = None
    age: int = Field(..., ge=1, le=120)
    weight: float = Field(..., gt=0)
    height: float = Field(..., gt=0)
    gender: str = "other"
    activity_level: str = ActivityLevel.MODERATELY_ACTIVE.value
    fitness_goals: List[str] = Field(default_factory=list)
    medical_conditions: List[str] = Field(default_factory=list)
    preferences: UserPreferences = Field(default_factory=UserPreferences)


DEFAULT_RECIPE_PROFILE = UserProfile(
    age=30,
    weight=70,
    height=170,
    gender="male",
    activity_level=ActivityLevel.MODERATELY_ACTIVE.value,
    fitness_goals=["maintain_weight"],
)


class ProgressData(_RequestModel):
    """Progress figures a recommendation request is based on."""

    completed_workouts: int = Field(..., ge=0)
    adherence_rate: float = Field(..., ge=0, le=100)
    weight_progress: Optional[float] = None
    strength_progress: Optional[Dict[str, float]] = None
    endurance_progress: Optional[float] = None
    feedback: Optional[str] = None


class WorkoutRequest(_RequestModel):
    """
    Workout routine generation request.

    Attributes:
        user_id: Owner of the generated routine.
        goal: Training goal.
        difficulty: Difficulty level.
        days_per_week: Training days per week (1-7).
        duration: Minutes per session (15-180).
        equipment: Available equipment.
        target_muscles: Muscles to emphasise.
        preferences: Free-form extra preferences.
        user_profile: Optional profile snapshot.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": "3f2b8c1e-0000-4000-8000-000000000001",
                "goal": "gain_muscle",
                "difficulty": "intermediate",
                "daysPerWeek": 4,
                "duration": 60,
                "equipment": ["dumbbells", "bench"],
            }
        }
    )

    kind: Literal["workout"] = "workout"
    user_id: str
    goal: WorkoutGoal
    difficulty: WorkoutDifficulty
    days_per_week: int = Field(..., ge=1, le=7)
    duration: int = Field(..., ge=15, le=180)
    equipment: List[str] = Field(default_factory=list)
    target_muscles: List[str] = Field(default_factory=list)
    preferences: Optional[str] = None
    user_profile: Optional[UserProfile] = None


class DietRequest(_RequestModel):
    """
    Diet plan generation request.

    ``meals_per_day`` defaults to 4; the prompt asks for ``meals_per_day * 7``
    meals and the weekly expander later checks the response against it.
    """

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "userId": "3f2b8c1e-0000-4000-8000-000000000001",
                "calories": 2200,
                "goal": "lose_weight",
                "restrictions": ["no_dairy"],
                "mealsPerDay": 4,
            }
        }
    )

    kind: Literal["diet"] = "diet"
    user_id: str
    calories: int = Field(..., ge=1000, le=5000)
    goal: DietGoal
    restrictions: List[DietaryRestriction] = Field(default_factory=list)
    meals_per_day: int = Field(default=4, ge=3, le=6)
    target_protein: Optional[int] = Field(default=None, ge=50, le=300)
    preferred_foods: List[str] = Field(default_factory=list)
    avoid_foods: List[str] = Field(default_factory=list)
    preferences: Optional[str] = None
    user_profile: Optional[UserProfile] = None

    @property
    def total_meals(self) -> int:
        """Number of meals the provider is asked for."""
        return self.meals_per_day * 7


class RecipeRequest(_RequestModel):
    kind: Literal["recipe"] = "recipe"
    user_id: str
    meal_type: str = Field(..., min_length=1)
    user_profile: Optional[UserProfile] = None


class RecommendationRequest(_RequestModel):
    kind: Literal["recommendation"] = "recommendation"
    user_id: str
    progress_data: ProgressData
    context: Optional[str] = None
    user_profile: Optional[UserProfile] = None


ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/webp")
MAX_IMAGE_BYTES = 10 * 1024 * 1024

_DATA_URI = re.compile(r"^data:(image/[\w.+-]+);base64,", re.IGNORECASE)


class FoodImageRequest(_RequestModel):
    """
    Food photo to analyse.

    ``image_base64`` may carry a ``data:image/...;base64,`` prefix; it is
    stripped, and its MIME type is used when ``mime_type`` is not given.
    """

    kind: Literal["food_vision"] = "food_vision"
    user_id: str
    image_base64: str = Field(..., min_length=1)
    mime_type: str = "image/jpeg"
    meal_type: Optional[str] = None

    @model_validator(mode="before")
    @classmethod
    def _split_data_uri(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        key = "imageBase64" if "imageBase64" in data else "image_base64"
        value = data.get(key)
        match = _DATA_URI.match(value) if isinstance(value, str) else None
        if match is None:
            return data
        data = {**data, key: value[match.end():]}
        if "mimeType" not in data and "mime_type" not in data:
            data["mime_type"] = match.group(1)
        return data

    @field_validator("image_base64")
    @classmethod
    def _check_image(cls, value: str) -> str:
        value = "".join(value.split())
        try:
            decoded = base64.b64decode(value, validate=True)
        except (binascii.Error, ValueError):
            raise ValueError("invalid base64 image data")
        if not decoded:
            raise ValueError("image is empty")
        if len(decoded) > MAX_IMAGE_BYTES:
            raise ValueError("image must be under 10MB")
        return value

    @field_validator("mime_type")
    @classmethod
    def _check_mime_type(cls, value: str) -> str:
        value = value.lower()
        if value not in ALLOWED_IMAGE_TYPES:
            raise ValueError(f"unsupported image type {value}")
        return value

    def image_bytes(self) -> bytes:
        return base64.b64decode(self.image_base64)


GenerationRequest = Annotated[
    Union[WorkoutRequest, DietRequest, RecipeRequest, RecommendationRequest, FoodImageRequest],
    Field(discriminator="kind"),
]


class WorkoutModifications(_RequestModel):
    """Fields that may be overridden when regenerating a routine."""

    goal: Optional[WorkoutGoal] = None
    difficulty: Optional[WorkoutDifficulty] = None
    days_per_week: Optional[int] = Field(default=None, ge=1, le=7)
    duration: Optional[int] = Field(default=None, ge=15, le=180)
    equipment: Optional[List[str]] = None
    target_muscles: Optional[List[str]] = None
    preferences: Optional[str] = None


class DietModifications(_RequestModel):
    """Fields that may be overridden when regenerating a diet plan."""

    calories: Optional[int] = Field(default=None, ge=1000, le=5000)
    goal: Optional[DietGoal] = None
    restrictions: Optional[List[DietaryRestriction]] = None
    meals_per_day: Optional[int] = Field(default=None, ge=3, le=6)
    target_protein: Optional[int] = Field(default=None, ge=50, le=300)
    preferred_foods: Optional[List[str]] = None
    avoid_foods: Optional[List[str]] = None
    preferences: Optional[str] = None


class CompleteProfileRequest(_RequestModel):
    workout: WorkoutRequest
    diet: DietRequest


class AdjustCaloriesRequest(_RequestModel):
    calories: int = Field(..., ge=1000, le=5000)
