# database.py
"""
LevelUp AI MongoDB Database Connection.

Uses Motor async driver with Beanie ODM.
"""

from motor.motor_asyncio import AsyncIOMotorClient
from beanie import init_beanie
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class Database:
    """MongoDB database connection manager."""

    client: Optional[AsyncIOMotorClient] = None
    _initialized: bool = False

    @classmethod
    async def connect_db(cls, database_url: str, database_name: str):
        """
        Connect to MongoDB.

        Args:
            database_url: MongoDB connection string
            database_name: Database name to use
        """
        # Skip if already initialized (prevents multiple worker initialization)
        if cls._initialized:
            return

        try:
            cls.client = AsyncIOMotorClient(
                database_url,
                serverSelectionTimeoutMS=5000,  # 5 second timeout
                maxPoolSize=50,
                minPoolSize=10
            )

            db = cls.client[database_name]

            # Test connection with ping
            await cls.client.admin.command('ping')
            logger.info(f"Connected to MongoDB: {database_name}")

            from app.models.mongodb import DOCUMENT_MODELS

            await init_beanie(database=db, document_models=DOCUMENT_MODELS)
            logger.info("Beanie ODM initialized with all models")

            from settings import settings
            await cls.seed_plan_limits(settings.DEFAULT_PLAN_LIMITS)
            cls._initialized = True

        except Exception as e:
            logger.error(f"Error connecting to MongoDB: {e}")
            raise

    @classmethod
    async def seed_plan_limits(cls, limits: Dict[str, Dict[str, int]]):
        """
        Create subscription plan limits that do not exist yet.

        Existing plans are left as they are so limits edited in the database
        survive restarts.
        """
        from app.models.mongodb import PlanLimitsDocument

        for plan_name, plan_limits in limits.items():
            existing = await PlanLimitsDocument.find_one(PlanLimitsDocument.plan_name == plan_name)
            if existing:
                continue
            await PlanLimitsDocument(
                plan_name=plan_name,
                workout_limit=plan_limits.get("workout", 0),
                diet_limit=plan_limits.get("diet", 0),
            ).insert()
            logger.info(f"Seeded plan limits for '{plan_name}': {plan_limits}")

    @classmethod
    async def close_db(cls):
        """Close MongoDB connection."""
        if cls.client:
            cls.client.close()
            cls._initialized = False
            logger.info("MongoDB connection closed")

    @classmethod
    async def ping(cls) -> bool:
        """Test MongoDB connection."""
        if not cls.client:
            return False
        try:
            await cls.client.admin.command('ping')
            return True
        except Exception:
            return False
