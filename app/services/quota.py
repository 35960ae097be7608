"""
LevelUp AI - Quota Tracker.

Per-user monthly generation limits. ``check_and_increment`` is the gate every
quota-counted generation passes before the provider is called.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from settings import settings
from app.schemas.generation import QuotaCategory
from app.schemas.records import CategoryUsage, PlanLimits, QuotaRecord, UsageSummary
from app.services.store import UNLIMITED, PersistenceStore
from app.utils.errors import NotFoundError, QuotaExceededError


logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class QuotaTracker:
    """
    Enforces monthly generation limits.

    The counter is only ever changed by the store's conditional increment, so
    concurrent requests from the same user cannot push usage past the limit.

    Args:
        store: Persistence store holding plans, limits and counters.
        clock: Returns the current time; the month window is taken from it.
    """

    def __init__(self, store: PersistenceStore, clock: Optional[Callable[[], datetime]] = None):
        self.store = store
        self.clock = clock or _utcnow

    async def _plan_and_limits(self, user_id: str) -> PlanLimits:
        plan_name = await self.store.get_active_plan_name(user_id) or settings.DEFAULT_SUBSCRIPTION_PLAN
        limits = await self.store.get_plan_limits(plan_name)
        if limits is None:
            raise NotFoundError(
                "Subscription plan limits not found",
                detail=f"No limits configured for plan '{plan_name}'"
            )
        return limits

    async def check_and_increment(self, user_id: str, category: QuotaCategory) -> QuotaRecord:
        """
        Count one generation against the user's monthly limit.

        Args:
            user_id: User requesting a generation.
            category: "workout" or "diet".

        Returns:
            QuotaRecord: Counters after the increment.

        Raises:
            QuotaExceededError: The user is already at the limit; nothing is counted.
            NotFoundError: The user's plan has no configured limits.
        """
        category = QuotaCategory(category).value
        limits = await self._plan_and_limits(user_id)
        limit = limits.limit_for(category)

        now = self.clock()
        await self.store.ensure_quota(user_id, now.year, now.month)
        record = await self.store.increment_quota(user_id, now.year, now.month, category, limit)

        if record is None:
            logger.info(f"User {user_id} reached {category} limit ({limit}) on plan '{limits.plan_name}'")
            raise QuotaExceededError(category, limit)

        if limit == UNLIMITED:
            logger.debug(f"User {user_id} {category} usage: {record.count_for(category)} (unlimited)")
        else:
            logger.debug(f"User {user_id} {category} usage: {record.count_for(category)}/{limit}")
        return record

    async def get_usage(self, user_id: str) -> UsageSummary:
        """Current month's usage and limits for both categories."""
        limits = await self._plan_and_limits(user_id)
        now = self.clock()
        record = await self.store.get_quota(user_id, now.year, now.month)

        return UsageSummary(
            plan=limits.plan_name,
            workout=CategoryUsage(used=record.workout_count if record else 0, limit=limits.workout_limit),
            diet=CategoryUsage(used=record.diet_count if record else 0, limit=limits.diet_limit),
            month=now.month,
            year=now.year,
        )
