"""
LevelUp AI - Catalog Resolver.

Maps free-text exercise and food names from generated plans onto canonical
catalog entries, creating entries for names the catalog has not seen yet.
Names match case-insensitively; the store guarantees one entry per name.
"""

import asyncio
import logging
import re
from typing import Dict, Iterable, List, Optional, Tuple

from app.schemas.plans import Exercise, FoodItem
from app.schemas.records import CatalogExercise, CatalogFood
from app.services.store import PersistenceStore, catalog_key


logger = logging.getLogger(__name__)

DEFAULT_EQUIPMENT = "bodyweight"
DEFAULT_FOOD_CATEGORY = "Other"
DEFAULT_QUANTITY_GRAMS = 100.0

EQUIPMENT_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("barbell", ("barra", "barbell")),
    ("dumbbells", ("mancuerna", "dumbbell")),
    ("machine", ("máquina", "maquina", "machine")),
    ("kettlebell", ("kettlebell",)),
    ("trx", ("trx",)),
    ("resistance_band", ("banda", "band")),
)

FOOD_CATEGORY_KEYWORDS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("Protein", ("pollo", "pavo", "carne", "pescado", "atún", "salmón", "huevo", "tofu",
                 "chicken", "turkey", "beef", "fish", "tuna", "salmon", "egg")),
    ("Dairy", ("leche", "yogur", "queso", "milk", "yogurt", "cheese")),
    ("Grains", ("arroz", "avena", "pan", "pasta", "quinoa", "cereal", "rice", "oat", "bread")),
    ("Fruits", ("manzana", "plátano", "naranja", "fresa", "arándano", "uva",
                "apple", "banana", "orange", "strawberr", "blueberr", "grape")),
    ("Vegetables", ("lechuga", "tomate", "brócoli", "zanahoria", "espinaca", "pepino",
                    "lettuce", "tomato", "broccoli", "carrot", "spinach", "cucumber")),
    ("Nuts & Seeds", ("nuez", "almendra", "semilla", "walnut", "almond", "seed")),
    ("Fats", ("aceite", "mantequilla", "aguacate", "oil", "butter", "avocado")),
)

# Approximate weight of household measures, checked in order.
UNIT_GRAMS: Tuple[Tuple[Tuple[str, ...], float], ...] = (
    (("cucharadita", "teaspoon", "tsp"), 5),
    (("cucharada", "tablespoon", "tbsp"), 15),
    (("taza", "cup"), 240),
    (("mediano", "mediana", "media", "medium"), 150),
    (("pequeño", "pequeña", "small"), 100),
    (("grande", "large"), 200),
)

_GRAMS = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:gramos?|grams?|gr|g)\b")
_MILLILITRES = re.compile(r"(\d+(?:[.,]\d+)?)\s*(?:mililitros?|ml)\b")
_NUMBER = re.compile(r"(\d+(?:[.,]\d+)?)")


def infer_equipment(exercise_name: str) -> str:
    name = exercise_name.lower()
    for equipment, keywords in EQUIPMENT_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return equipment
    return DEFAULT_EQUIPMENT


def infer_food_category(food_name: str) -> str:
    name = food_name.lower()
    for category, keywords in FOOD_CATEGORY_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return category
    return DEFAULT_FOOD_CATEGORY


def _to_float(text: str) -> float:
    return float(text.replace(",", "."))


def parse_quantity_to_grams(quantity: Optional[str]) -> float:
    """
    Convert a free-text quantity to grams.

    Examples:
        "100g" -> 100, "250 ml" -> 250 (1 ml taken as 1 g),
        "1 taza" -> 240, "1 cucharada" -> 15, "" -> 100
    """
    if not quantity:
        return DEFAULT_QUANTITY_GRAMS

    text = quantity.lower()
    for pattern in (_GRAMS, _MILLILITRES):
        match = pattern.search(text)
        if match:
            return _to_float(match.group(1))

    for keywords, grams in UNIT_GRAMS:
        if any(keyword in text for keyword in keywords):
            return float(grams)

    match = _NUMBER.search(text)
    if match:
        return _to_float(match.group(1))
    return DEFAULT_QUANTITY_GRAMS


class CatalogResolver:
    """
    Resolves plan entries to catalog identifiers.

    Args:
        store: Persistence store holding the catalog.
    """

    def __init__(self, store: PersistenceStore):
        self.store = store

    async def resolve_exercise(self, exercise: Exercise) -> Optional[str]:
        """
        Find or create the catalog entry for an exercise.

        If the entry cannot be created, any existing exercise is used instead
        so the routine link can still be written. Returns None only when the
        catalog is unusable.
        """
        name = exercise.name.strip()
        try:
            existing = await self.store.find_exercise(name)
            if existing:
                return existing.id

            entry = await self.store.insert_exercise(CatalogExercise(
                name=name,
                equipment=infer_equipment(name),
                muscle_groups=list(exercise.target_muscles),
                instructions=exercise.instructions or "",
            ))
            logger.info(f"Created catalog exercise: {name}")
            return entry.id
        except Exception as e:
            logger.error(f"Error creating exercise '{name}': {e}")

        try:
            fallback = await self.store.any_exercise()
        except Exception as e:
            logger.error(f"Error looking up fallback exercise: {e}")
            return None
        return fallback.id if fallback else None

    async def resolve_exercises(self, exercises: Iterable[Exercise]) -> List[Optional[str]]:
        """Resolve every exercise concurrently; ids come back in input order."""
        return list(await asyncio.gather(*(self.resolve_exercise(exercise) for exercise in exercises)))

    async def resolve_food(self, item: FoodItem) -> Optional[str]:
        """Find or create the catalog entry for a food; None if that fails."""
        name = item.name.strip()
        try:
            existing = await self.store.find_food(name)
            if existing:
                logger.debug(f"Reusing catalog food: {name}")
                return existing.id

            entry = await self.store.insert_food(CatalogFood(
                name=name,
                category=infer_food_category(name),
                calories_per_100g=item.calories or 0,
                protein_per_100g=item.protein or 0,
                carbs_per_100g=item.carbs or 0,
                fat_per_100g=item.fat or 0,
                fiber_per_100g=item.fiber or 0,
            ))
            logger.info(f"Created catalog food: {name}")
            return entry.id
        except Exception as e:
            logger.error(f"Error creating food '{name}': {e}")
            return None

    async def resolve_foods(self, items: Iterable[FoodItem]) -> Dict[str, Optional[str]]:
        """
        Resolve distinct food names concurrently.

        Returns:
            Dict[str, Optional[str]]: Catalog id keyed by ``catalog_key(name)``.
        """
        unique: Dict[str, FoodItem] = {}
        for item in items:
            unique.setdefault(catalog_key(item.name), item)

        ids = await asyncio.gather(*(self.resolve_food(item) for item in unique.values()))
        return dict(zip(unique.keys(), ids))
