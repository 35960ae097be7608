import asyncio
from types import SimpleNamespace

import httpx
import pytest
from google.genai import errors as genai_errors
from google.genai import types

from settings import settings
from app.schemas.generation import GenerationKind
from app.services.gemini import GeminiProvider, ImageInput, classify_api_error
from app.utils.errors import (
    AuthFailureError,
    ConfigurationError,
    EmptyResponseError,
    ProviderError,
    ProviderUnavailableError,
    RateLimitedError,
)


def api_error(code, status="ERROR"):
    return genai_errors.APIError(code, {"error": {"code": code, "message": "upstream said no", "status": status}})


def make_provider(generate_content, timeout=5):
    provider = GeminiProvider(api_key="test-key", model_name="gemini-test", timeout=timeout)
    provider.client = SimpleNamespace(aio=SimpleNamespace(models=SimpleNamespace(generate_content=generate_content)))
    return provider


def returning(text, calls=None):
    async def generate_content(**kwargs):
        if calls is not None:
            calls.append(kwargs)
        return SimpleNamespace(text=text)
    return generate_content


def raising(error):
    async def generate_content(**kwargs):
        raise error
    return generate_content


@pytest.mark.parametrize("code, expected", [
    (429, RateLimitedError),
    (401, AuthFailureError),
    (403, AuthFailureError),
    (500, ProviderUnavailableError),
    (503, ProviderUnavailableError),
])
def test_classify_api_error(code, expected):
    error = classify_api_error(api_error(code))
    assert type(error) is expected
    assert str(code) in error.detail
    assert "upstream said no" in error.detail


def test_other_client_errors_stay_generic():
    error = classify_api_error(api_error(400, "INVALID_ARGUMENT"))
    assert type(error) is ProviderError
    assert error.status_code == 502


@pytest.mark.asyncio
async def test_returns_text_with_the_kind_budget():
    calls = []
    provider = make_provider(returning('{"meals": []}', calls))

    text = await provider.generate("Plan my week", GenerationKind.DIET)

    assert text == '{"meals": []}'
    [call] = calls
    assert call["model"] == "gemini-test"
    assert call["contents"] == "Plan my week"
    assert call["config"].max_output_tokens == 8000
    assert call["config"].top_k == 40


@pytest.mark.asyncio
async def test_image_is_sent_before_the_prompt():
    calls = []
    provider = make_provider(returning("{}", calls))

    await provider.generate("What is this?", GenerationKind.FOOD_VISION, image=ImageInput(b"\x89PNG", "image/png"))

    part, prompt = calls[0]["contents"]
    assert isinstance(part, types.Part)
    assert part.inline_data.data == b"\x89PNG"
    assert part.inline_data.mime_type == "image/png"
    assert prompt == "What is this?"


@pytest.mark.asyncio
@pytest.mark.parametrize("code, expected", [
    (429, RateLimitedError),
    (403, AuthFailureError),
    (503, ProviderUnavailableError),
])
async def test_api_errors_are_classified(code, expected):
    provider = make_provider(raising(api_error(code)))

    with pytest.raises(expected) as exc_info:
        await provider.generate("prompt", GenerationKind.WORKOUT)

    assert exc_info.value.status_code == expected().status_code


@pytest.mark.asyncio
async def test_timeout_is_unavailable():
    async def slow(**kwargs):
        await asyncio.sleep(1)

    provider = make_provider(slow, timeout=0.01)

    with pytest.raises(ProviderUnavailableError) as exc_info:
        await provider.generate("prompt", GenerationKind.RECIPE)

    assert "0.01 seconds" in exc_info.value.detail


@pytest.mark.asyncio
async def test_transport_error_is_unavailable():
    provider = make_provider(raising(httpx.ConnectError("connection refused")))

    with pytest.raises(ProviderUnavailableError) as exc_info:
        await provider.generate("prompt", GenerationKind.RECOMMENDATION)

    assert exc_info.value.detail == "connection refused"


@pytest.mark.asyncio
@pytest.mark.parametrize("text", [None, "", "   \n"])
async def test_blank_text_is_an_empty_response(text):
    provider = make_provider(returning(text))

    with pytest.raises(EmptyResponseError):
        await provider.generate("prompt", GenerationKind.WORKOUT)


@pytest.mark.asyncio
async def test_missing_api_key(monkeypatch):
    monkeypatch.setattr(settings, "GEMINI_API_KEY", None)
    provider = GeminiProvider()

    assert provider.client is None
    with pytest.raises(ConfigurationError):
        await provider.generate("prompt", GenerationKind.WORKOUT)
