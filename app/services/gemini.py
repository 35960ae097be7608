"""
LevelUp AI - Gemini Provider.

Sends prompts, and optionally an image, to Google Gemini through the google-genai async client and maps
every failure onto the provider error hierarchy. No retries happen here; the
caller decides what to do with a failure.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types

from settings import settings
from app.schemas.generation import GenerationKind
from app.utils.errors import (
    AuthFailureError,
    ConfigurationError,
    EmptyResponseError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
)


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GenerationBudget:
    """Sampling settings and output cap for one generation kind."""
    temperature: float
    max_output_tokens: int
    top_p: Optional[float] = None
    top_k: Optional[int] = None


GENERATION_BUDGETS: Dict[GenerationKind, GenerationBudget] = {
    GenerationKind.WORKOUT: GenerationBudget(temperature=0.7, max_output_tokens=4096),
    # A full week of meals needs the largest budget.
    GenerationKind.DIET: GenerationBudget(temperature=0.7, max_output_tokens=8000, top_p=0.95, top_k=40),
    GenerationKind.RECIPE: GenerationBudget(temperature=0.7, max_output_tokens=1200),
    GenerationKind.RECOMMENDATION: GenerationBudget(temperature=0.8, max_output_tokens=800),
    GenerationKind.FOOD_VISION: GenerationBudget(temperature=0.7, max_output_tokens=1000),
}


@dataclass(frozen=True)
class ImageInput:
    """Raw image sent alongside a prompt."""
    data: bytes
    mime_type: str = "image/jpeg"


class TextProvider(ABC):
    """Anything that turns a prompt into generated text."""

    model_name: str

    @abstractmethod
    async def generate(
        self,
        prompt: str,
        kind: GenerationKind,
        image: Optional[ImageInput] = None
    ) -> str:
        """
        Generate text for ``prompt``, looking at ``image`` when one is given.

        Raises:
            ProviderError: Or one of its subclasses on any failure.
        """


def classify_api_error(error: genai_errors.APIError) -> ProviderError:
    """Map a Gemini API error onto the provider error hierarchy."""
    code = error.code or 0
    detail = f"Gemini API error {code}: {error.message or error.status}"
    if code == 429:
        return RateLimitedError(detail=detail)
    if code in (401, 403):
        return AuthFailureError(detail=detail)
    if code >= 500:
        return ProviderUnavailableError(detail=detail)
    return ProviderError(detail=detail)


class GeminiProvider(TextProvider):
    """
    Gemini text generation.

    Args:
        api_key: Gemini API key (defaults to settings).
        model_name: Model to call (defaults to settings).
        timeout: Seconds a single call may take (defaults to settings).
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model_name: Optional[str] = None,
        timeout: Optional[float] = None
    ):
        self.api_key = api_key or settings.GEMINI_API_KEY
        self.model_name = model_name or settings.GEMINI_MODEL
        self.timeout = timeout or settings.GENERATION_TIMEOUT_SECONDS
        if self.api_key:
            self.client = genai.Client(api_key=self.api_key)
        else:
            self.client = None
            logger.warning("Gemini API key not configured - generation disabled")

    @staticmethod
    def _config_for(kind: GenerationKind) -> types.GenerateContentConfig:
        budget = GENERATION_BUDGETS[GenerationKind(kind)]
        return types.GenerateContentConfig(
            temperature=budget.temperature,
            max_output_tokens=budget.max_output_tokens,
            top_p=budget.top_p,
            top_k=budget.top_k,
        )

    @staticmethod
    def _contents(prompt: str, image: Optional[ImageInput]):
        if image is None:
            return prompt
        return [types.Part.from_bytes(data=image.data, mime_type=image.mime_type), prompt]

    async def generate(
        self,
        prompt: str,
        kind: GenerationKind,
        image: Optional[ImageInput] = None
    ) -> str:
        if self.client is None:
            raise ConfigurationError(
                "AI provider not configured",
                detail="GEMINI_API_KEY is not set"
            )

        kind = GenerationKind(kind)
        start = time.time()
        logger.info(f"Requesting {kind.value} generation from {self.model_name} ({len(prompt)} chars)")

        try:
            response = await asyncio.wait_for(
                self.client.aio.models.generate_content(
                    model=self.model_name,
                    contents=self._contents(prompt, image),
                    config=self._config_for(kind),
                ),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.error(f"Gemini {kind.value} generation timed out after {self.timeout}s")
            raise ProviderUnavailableError(detail=f"No response within {self.timeout} seconds")
        except genai_errors.APIError as e:
            logger.error(f"Gemini {kind.value} generation failed: {e}")
            raise classify_api_error(e)
        except httpx.HTTPError as e:
            logger.error(f"Gemini {kind.value} transport error: {e}")
            raise ProviderUnavailableError(detail=str(e))

        text = response.text
        elapsed_ms = (time.time() - start) * 1000
        if not text or not text.strip():
            logger.error(f"Gemini returned no text for {kind.value} after {elapsed_ms:.0f}ms")
            raise EmptyResponseError(detail=f"Model {self.model_name} returned no text")

        logger.info(f"Gemini {kind.value} response: {len(text)} chars in {elapsed_ms:.0f}ms")
        return text
