"""LevelUp AI - Utilities Package."""

from app.utils.errors import (
    LevelUpException,
    ValidationError,
    NotFoundError,
    ConfigurationError,
    QuotaExceededError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
    AuthFailureError,
    EmptyResponseError,
    NoJsonFoundError,
    MalformedResponseError,
    ShapeMismatchError,
    PartialGenerationError,
)

__all__ = [
    "LevelUpException",
    "ValidationError",
    "NotFoundError",
    "ConfigurationError",
    "QuotaExceededError",
    "ProviderError",
    "ProviderUnavailableError",
    "RateLimitedError",
    "AuthFailureError",
    "EmptyResponseError",
    "NoJsonFoundError",
    "MalformedResponseError",
    "ShapeMismatchError",
    "PartialGenerationError",
]
