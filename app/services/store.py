"""
LevelUp AI - Persistence Store.

``PersistenceStore`` is the contract the generation pipeline needs from a
database. ``MongoStore`` implements it on top of the Beanie documents in
``app.models.mongodb``.

Shared counters and catalog entries are only ever changed through single
atomic statements: the quota counter with a conditional ``$inc`` and catalog
entries with insert-or-reuse on a unique name key.
"""

import logging
from abc import ABC, abstractmethod
from typing import List, Optional, Type, TypeVar

from beanie import Document
from beanie.odm.operators.update.general import Set
from beanie.odm.queries.update import UpdateResponse
from pydantic import BaseModel
from pymongo.errors import DuplicateKeyError

from app.models.mongodb import (
    DietMealDocument,
    DietMealFoodDocument,
    DietPlanDocument,
    ExerciseDocument,
    FoodDocument,
    GenerationLogDocument,
    PlanLimitsDocument,
    QuotaDocument,
    RecommendationDocument,
    RoutineDocument,
    RoutineExerciseDocument,
    SubscriptionDocument,
    UserProfileDocument,
)
from app.schemas.generation import UserProfile
from app.schemas.records import (
    CatalogExercise,
    CatalogFood,
    DietMeal,
    DietMealFood,
    GenerationLogEntry,
    PlanLimits,
    QuotaRecord,
    Routine,
    RoutineExercise,
    StoredDietPlan,
    StoredRecommendation,
)


logger = logging.getLogger(__name__)

UNLIMITED = -1

R = TypeVar("R", bound=BaseModel)


def catalog_key(name: str) -> str:
    """Case-insensitive identity of a catalog entry."""
    return name.strip().lower()


class PersistenceStore(ABC):
    """Everything the generation pipeline reads from or writes to storage."""

    # -- Users & subscriptions ---------------------------------------------

    @abstractmethod
    async def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        ...

    @abstractmethod
    async def get_active_plan_name(self, user_id: str) -> Optional[str]:
        ...

    @abstractmethod
    async def get_plan_limits(self, plan_name: str) -> Optional[PlanLimits]:
        ...

    # -- Quota -------------------------------------------------------------

    @abstractmethod
    async def get_quota(self, user_id: str, year: int, month: int) -> Optional[QuotaRecord]:
        ...

    @abstractmethod
    async def ensure_quota(self, user_id: str, year: int, month: int) -> None:
        """Create the zeroed (user, year, month) record if it does not exist."""

    @abstractmethod
    async def increment_quota(
        self, user_id: str, year: int, month: int, category: str, limit: int
    ) -> Optional[QuotaRecord]:
        """
        Atomically add one to the category counter if it is below ``limit``.

        Returns the updated record, or None when the counter is already at the
        limit. A limit of -1 increments unconditionally.
        """

    # -- Routines ----------------------------------------------------------

    @abstractmethod
    async def create_routine(self, routine: Routine) -> Routine:
        """Store a routine and archive the user's previously active ones."""

    @abstractmethod
    async def get_routine(self, routine_id: str) -> Optional[Routine]:
        ...

    @abstractmethod
    async def add_routine_exercises(self, links: List[RoutineExercise]) -> None:
        ...

    # -- Diet plans --------------------------------------------------------

    @abstractmethod
    async def create_diet_plan(self, plan: StoredDietPlan) -> StoredDietPlan:
        """Store a diet plan and archive the user's previously active ones."""

    @abstractmethod
    async def get_diet_plan(self, plan_id: str) -> Optional[StoredDietPlan]:
        ...

    @abstractmethod
    async def add_diet_meals(self, meals: List[DietMeal]) -> List[DietMeal]:
        ...

    @abstractmethod
    async def add_diet_meal_foods(self, links: List[DietMealFood]) -> None:
        ...

    # -- Catalog -----------------------------------------------------------

    @abstractmethod
    async def find_exercise(self, name: str) -> Optional[CatalogExercise]:
        ...

    @abstractmethod
    async def insert_exercise(self, exercise: CatalogExercise) -> CatalogExercise:
        """Insert unless an entry with the same name exists; return whichever is stored."""

    @abstractmethod
    async def any_exercise(self) -> Optional[CatalogExercise]:
        ...

    @abstractmethod
    async def find_food(self, name: str) -> Optional[CatalogFood]:
        ...

    @abstractmethod
    async def insert_food(self, food: CatalogFood) -> CatalogFood:
        """Insert unless an entry with the same name exists; return whichever is stored."""

    # -- Recommendations & audit -------------------------------------------

    @abstractmethod
    async def save_recommendations(
        self, recommendations: List[StoredRecommendation]
    ) -> List[StoredRecommendation]:
        ...

    @abstractmethod
    async def log_generation(self, entry: GenerationLogEntry) -> None:
        ...


def _to_document(record: BaseModel, document_cls: Type[Document], **extra) -> Document:
    data = record.model_dump()
    if "id" in data:
        data["uid"] = data.pop("id")
    data.update(extra)
    return document_cls(**data)


def _to_record(document: Document, record_cls: Type[R]) -> R:
    data = document.model_dump(exclude={"id", "revision_id"})
    if "uid" in data:
        data["id"] = data.pop("uid")
    return record_cls.model_validate(data)


class MongoStore(PersistenceStore):
    """PersistenceStore backed by MongoDB through Beanie."""

    async def get_user_profile(self, user_id: str) -> Optional[UserProfile]:
        document = await UserProfileDocument.find_one(UserProfileDocument.user_id == user_id)
        if not document:
            return None
        data = document.model_dump(exclude={"id", "revision_id", "updated_at"})
        data["id"] = data.pop("user_id")
        return UserProfile.model_validate(data)

    async def get_active_plan_name(self, user_id: str) -> Optional[str]:
        subscription = await SubscriptionDocument.find_one(
            SubscriptionDocument.user_id == user_id,
            SubscriptionDocument.status == "active",
        )
        return subscription.plan_name if subscription else None

    async def get_plan_limits(self, plan_name: str) -> Optional[PlanLimits]:
        document = await PlanLimitsDocument.find_one(PlanLimitsDocument.plan_name == plan_name)
        return _to_record(document, PlanLimits) if document else None

    async def get_quota(self, user_id: str, year: int, month: int) -> Optional[QuotaRecord]:
        document = await QuotaDocument.find_one(
            QuotaDocument.user_id == user_id,
            QuotaDocument.year == year,
            QuotaDocument.month == month,
        )
        return _to_record(document, QuotaRecord) if document else None

    async def ensure_quota(self, user_id: str, year: int, month: int) -> None:
        if await self.get_quota(user_id, year, month):
            return
        try:
            await QuotaDocument(user_id=user_id, year=year, month=month).insert()
            logger.info(f"Created quota record for {user_id} {year}-{month:02d}")
        except DuplicateKeyError:
            # Another request created it first.
            pass

    async def increment_quota(
        self, user_id: str, year: int, month: int, category: str, limit: int
    ) -> Optional[QuotaRecord]:
        field = f"{category}_count"
        query = {"user_id": user_id, "year": year, "month": month}
        if limit != UNLIMITED:
            query[field] = {"$lt": limit}

        document = await QuotaDocument.find_one(query).update(
            {"$inc": {field: 1}},
            response_type=UpdateResponse.NEW_DOCUMENT,
        )
        return _to_record(document, QuotaRecord) if document else None

    async def create_routine(self, routine: Routine) -> Routine:
        await RoutineDocument.find(
            RoutineDocument.user_id == routine.user_id,
            RoutineDocument.is_active == True,  # noqa: E712
        ).update(Set({RoutineDocument.is_active: False}))
        document = _to_document(routine, RoutineDocument)
        await document.insert()
        return _to_record(document, Routine)

    async def get_routine(self, routine_id: str) -> Optional[Routine]:
        document = await RoutineDocument.find_one(RoutineDocument.uid == routine_id)
        return _to_record(document, Routine) if document else None

    async def add_routine_exercises(self, links: List[RoutineExercise]) -> None:
        if links:
            await RoutineExerciseDocument.insert_many(
                [_to_document(link, RoutineExerciseDocument) for link in links]
            )

    async def create_diet_plan(self, plan: StoredDietPlan) -> StoredDietPlan:
        await DietPlanDocument.find(
            DietPlanDocument.user_id == plan.user_id,
            DietPlanDocument.is_active == True,  # noqa: E712
        ).update(Set({DietPlanDocument.is_active: False}))
        document = _to_document(plan, DietPlanDocument)
        await document.insert()
        return _to_record(document, StoredDietPlan)

    async def get_diet_plan(self, plan_id: str) -> Optional[StoredDietPlan]:
        document = await DietPlanDocument.find_one(DietPlanDocument.uid == plan_id)
        return _to_record(document, StoredDietPlan) if document else None

    async def add_diet_meals(self, meals: List[DietMeal]) -> List[DietMeal]:
        if meals:
            await DietMealDocument.insert_many([_to_document(meal, DietMealDocument) for meal in meals])
        return meals

    async def add_diet_meal_foods(self, links: List[DietMealFood]) -> None:
        if links:
            await DietMealFoodDocument.insert_many(
                [_to_document(link, DietMealFoodDocument) for link in links]
            )

    async def find_exercise(self, name: str) -> Optional[CatalogExercise]:
        document = await ExerciseDocument.find_one(ExerciseDocument.name_key == catalog_key(name))
        return _to_record(document, CatalogExercise) if document else None

    async def insert_exercise(self, exercise: CatalogExercise) -> CatalogExercise:
        document = _to_document(exercise, ExerciseDocument, name_key=catalog_key(exercise.name))
        try:
            await document.insert()
            return exercise
        except DuplicateKeyError:
            logger.info(f"Exercise '{exercise.name}' was created concurrently, reusing it")
            existing = await self.find_exercise(exercise.name)
            if existing is None:
                raise
            return existing

    async def any_exercise(self) -> Optional[CatalogExercise]:
        document = await ExerciseDocument.find_one({})
        return _to_record(document, CatalogExercise) if document else None

    async def find_food(self, name: str) -> Optional[CatalogFood]:
        document = await FoodDocument.find_one(FoodDocument.name_key == catalog_key(name))
        return _to_record(document, CatalogFood) if document else None

    async def insert_food(self, food: CatalogFood) -> CatalogFood:
        document = _to_document(food, FoodDocument, name_key=catalog_key(food.name))
        try:
            await document.insert()
            return food
        except DuplicateKeyError:
            logger.info(f"Food '{food.name}' was created concurrently, reusing it")
            existing = await self.find_food(food.name)
            if existing is None:
                raise
            return existing

    async def save_recommendations(
        self, recommendations: List[StoredRecommendation]
    ) -> List[StoredRecommendation]:
        if recommendations:
            await RecommendationDocument.insert_many(
                [_to_document(item, RecommendationDocument) for item in recommendations]
            )
        return recommendations

    async def log_generation(self, entry: GenerationLogEntry) -> None:
        await _to_document(entry, GenerationLogDocument).insert()
