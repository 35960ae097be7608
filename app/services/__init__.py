"""LevelUp AI - Services Package."""

from .gemini import GeminiProvider, TextProvider
from .store import MongoStore, PersistenceStore
from .quota import QuotaTracker
from .catalog import CatalogResolver
from .plan_writer import PlanWriter
from .generation import GenerationService

__all__ = [
    "GeminiProvider",
    "TextProvider",
    "MongoStore",
    "PersistenceStore",
    "QuotaTracker",
    "CatalogResolver",
    "PlanWriter",
    "GenerationService",
]
