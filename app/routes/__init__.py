"""LevelUp AI - API Routes Package."""

from app.routes import generation

__all__ = ["generation"]
