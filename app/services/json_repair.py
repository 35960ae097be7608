"""
LevelUp AI - Response Extraction & Repair.

Turns raw generated text into a JSON object:

1. ``extract_json`` strips markdown fence lines and surrounding prose.
2. ``repair_json`` tries a strict parse, then an ordered cascade of syntactic
   rewrites (re-parsing after each one), then a kind-specific fallback plan.

``decode_response`` chains both and never raises; callers inspect the returned
stage to decide whether a fallback is acceptable for the kind they asked for.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from app.schemas.generation import GenerationKind
from app.services.fallback_plans import (
    get_fallback_diet_plan,
    get_fallback_food_analysis,
    get_fallback_recipe,
    get_fallback_recommendations,
    get_fallback_workout_plan,
)
from app.utils.errors import NoJsonFoundError


logger = logging.getLogger(__name__)

_FENCE_LINE = re.compile(r"^[ \t]*```[\w-]*[ \t]*$", re.MULTILINE)
_TRAILING_COMMA = re.compile(r",\s*([}\]])")
_CONTROL_CHARS = re.compile(r"[\x00-\x1F\x7F]")
_UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_][\w-]*)\s*:")
_UNQUOTED_VALUE = re.compile(r'("(?:[^"\\]|\\.)*"\s*:\s*)([^\s"\[{,}\]][^,}\]\n]*)')
_JSON_NUMBER = re.compile(r"-?\d+(?:\.\d+)?(?:[eE][+-]?\d+)?")
_QUOTED_NUMBER = re.compile(r'(:\s*)"\s*(-?\d+(?:\.\d+)?)\s*"')
_JSON_LITERALS = ("true", "false", "null")


class RepairStage(str, Enum):
    """How far down the cascade a response had to go."""
    STRICT = "strict"
    REPAIRED = "repaired"
    FALLBACK = "fallback"


@dataclass
class RepairResult:
    data: Dict[str, Any]
    stage: RepairStage

    @property
    def used_fallback(self) -> bool:
        return self.stage == RepairStage.FALLBACK


def extract_json(text: str) -> str:
    """
    Locate the JSON object inside generated text.

    Args:
        text: Raw provider output, possibly fenced or wrapped in prose.

    Returns:
        str: Substring from the first ``{`` to the last ``}`` inclusive.

    Raises:
        NoJsonFoundError: If the text holds no ``{``...``}`` pair.
    """
    cleaned = (text or "").strip()
    if cleaned.startswith("{") and cleaned.endswith("}"):
        return cleaned

    # Only whole fence lines are removed; backticks inside values are content.
    cleaned = _FENCE_LINE.sub("", cleaned).strip()
    if cleaned.startswith("{") and cleaned.endswith("}"):
        return cleaned

    start = cleaned.find("{")
    end = cleaned.rfind("}")
    if start == -1 or end <= start:
        raise NoJsonFoundError(detail=f"No JSON object in {len(cleaned)} chars of text")
    return cleaned[start:end + 1]


# -- Syntactic repairs -------------------------------------------------------

def strip_trailing_commas(text: str) -> str:
    return _TRAILING_COMMA.sub(r"\1", text)


def strip_control_characters(text: str) -> str:
    return _CONTROL_CHARS.sub(" ", text)


def quote_unquoted_keys(text: str) -> str:
    return _UNQUOTED_KEY.sub(r'\1"\2":', text)


def _quote_value(match: "re.Match[str]") -> str:
    prefix, raw = match.group(1), match.group(2)
    value = raw.rstrip()
    if value in _JSON_LITERALS or _JSON_NUMBER.fullmatch(value):
        return match.group(0)
    trailing = raw[len(value):]
    escaped = value.replace('"', '\\"')
    return f'{prefix}"{escaped}"{trailing}'


def quote_unquoted_values(text: str) -> str:
    """Quote bare words in value position; numbers and literals stay as they are."""
    return _UNQUOTED_VALUE.sub(_quote_value, text)


def unquote_numeric_values(text: str) -> str:
    return _QUOTED_NUMBER.sub(r"\1\2", text)


REPAIR_STEPS: List[Tuple[str, Callable[[str], str]]] = [
    ("trailing_commas", strip_trailing_commas),
    ("control_characters", strip_control_characters),
    ("unquoted_keys", quote_unquoted_keys),
    ("unquoted_values", quote_unquoted_values),
    ("quoted_numbers", unquote_numeric_values),
]


def _parse_object(text: str) -> Optional[Dict[str, Any]]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        return None
    return parsed if isinstance(parsed, dict) else None


def build_fallback(kind: GenerationKind, meal_type: Optional[str] = None) -> Dict[str, Any]:
    """Minimal shape-valid object for a generation kind."""
    kind = GenerationKind(kind)
    if kind == GenerationKind.WORKOUT:
        return get_fallback_workout_plan()
    if kind == GenerationKind.DIET:
        return get_fallback_diet_plan()
    if kind == GenerationKind.RECIPE:
        return get_fallback_recipe(meal_type or "snack")
    if kind == GenerationKind.FOOD_VISION:
        return get_fallback_food_analysis()
    return get_fallback_recommendations()


def repair_json(
    text: str,
    kind: GenerationKind,
    meal_type: Optional[str] = None
) -> RepairResult:
    """
    Parse ``text`` as a JSON object, repairing it if needed.

    Never raises: when every repair fails the kind-specific fallback is
    returned with ``stage == RepairStage.FALLBACK``.
    """
    kind = GenerationKind(kind)
    parsed = _parse_object(text)
    if parsed is not None:
        logger.debug(f"Strict parse succeeded for {kind.value} ({len(text)} chars)")
        return RepairResult(data=parsed, stage=RepairStage.STRICT)

    candidate = text
    for name, step in REPAIR_STEPS:
        candidate = step(candidate)
        parsed = _parse_object(candidate)
        if parsed is not None:
            logger.warning(f"Recovered {kind.value} response after repair step '{name}'")
            return RepairResult(data=parsed, stage=RepairStage.REPAIRED)

    logger.warning(
        f"All repairs failed for {kind.value} response, using fallback. "
        f"Payload head: {text[:200]!r}"
    )
    return RepairResult(data=build_fallback(kind, meal_type), stage=RepairStage.FALLBACK)


def decode_response(
    raw: str,
    kind: GenerationKind,
    meal_type: Optional[str] = None
) -> RepairResult:
    """
    Extract and repair a provider response.

    A response with no JSON object at all goes straight to the fallback.
    """
    kind = GenerationKind(kind)
    logger.debug(f"Decoding {kind.value} response ({len(raw or '')} chars)")
    try:
        payload = extract_json(raw)
    except NoJsonFoundError as e:
        logger.warning(f"{e.message} for {kind.value}: {e.detail}")
        return RepairResult(data=build_fallback(kind, meal_type), stage=RepairStage.FALLBACK)
    return repair_json(payload, kind, meal_type)
