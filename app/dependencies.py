"""
LevelUp AI - FastAPI Dependencies.

The provider, store and services are built once at startup and kept on
``app.state``; routes receive them through these dependencies.
"""

from typing import Optional

from fastapi import Request

from app.services.catalog import CatalogResolver
from app.services.gemini import GeminiProvider, TextProvider
from app.services.generation import GenerationService
from app.services.plan_writer import PlanWriter
from app.services.quota import QuotaTracker
from app.services.store import MongoStore, PersistenceStore
from app.utils.errors import ConfigurationError


def build_generation_service(
    provider: Optional[TextProvider] = None,
    store: Optional[PersistenceStore] = None
) -> GenerationService:
    """
    Wire the generation pipeline.

    Args:
        provider: Text provider (defaults to Gemini).
        store: Persistence store (defaults to MongoDB).

    Returns:
        GenerationService: Ready-to-use service.
    """
    provider = provider or GeminiProvider()
    store = store or MongoStore()
    return GenerationService(
        provider=provider,
        store=store,
        quota=QuotaTracker(store),
        writer=PlanWriter(store, CatalogResolver(store)),
    )


def get_generation_service(request: Request) -> GenerationService:
    """
    Get the generation service built at startup.

    Raises:
        ConfigurationError: If the application started without one.
    """
    service = getattr(request.app.state, "generation_service", None)
    if service is None:
        raise ConfigurationError("Generation service not initialised")
    return service
