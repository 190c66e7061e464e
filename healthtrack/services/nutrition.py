"""Calorie lookup over a static nutrition table.

The table is read once at startup, flattened to ``"Group > Item" -> kcal per
100 g`` and wrapped read-only; request handlers receive it through a
dependency and never mutate it.
"""
from __future__ import annotations

import json
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterable, Mapping, Optional

DEFAULT_CALORIES_PATH = Path(__file__).resolve().parent.parent / "data" / "calories.json"

NutritionTable = Mapping[str, float]


def flatten_meals(data: Mapping[str, Any], prefix: str = "") -> Dict[str, float]:
    meals: Dict[str, float] = {}
    for key, value in data.items():
        if isinstance(value, Mapping):
            meals.update(flatten_meals(value, f"{prefix}{key} > "))
        elif isinstance(value, bool) or not isinstance(value, (int, float)):
            raise ValueError(f"calorie value for {prefix}{key!s} is not a number")
        else:
            meals[f"{prefix}{key}"] = float(value)
    return meals


def load_nutrition_table(path: Optional[Path] = None) -> NutritionTable:
    source = Path(path or DEFAULT_CALORIES_PATH)
    try:
        data = json.loads(source.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        raise RuntimeError(f"Cannot load nutrition table from {source}: {exc}") from exc
    if not isinstance(data, Mapping):
        raise RuntimeError(f"Nutrition table {source} must be a JSON object")
    try:
        return MappingProxyType(flatten_meals(data))
    except ValueError as exc:
        raise RuntimeError(f"Nutrition table {source} is malformed: {exc}") from exc


def meal_calories(table: NutritionTable, items: Iterable[Any]) -> float:
    """Sum kcal for ``items`` (objects with ``meal`` and ``quantity`` in grams).

    Meals missing from the table contribute nothing.
    """
    total = 0.0
    for item in items:
        per_100g = table.get(item.meal)
        if per_100g is not None:
            total += per_100g / 100 * item.quantity
    return total


def day_calories(table: NutritionTable, day_meals: Mapping[str, Iterable[Any]]) -> float:
    return sum(meal_calories(table, items) for items in day_meals.values())


def compute_bmi(height_cm: float, weight_kg: float) -> float:
    metres = height_cm / 100
    return round(weight_kg / (metres * metres), 1)


__all__ = [
    "DEFAULT_CALORIES_PATH",
    "NutritionTable",
    "compute_bmi",
    "day_calories",
    "flatten_meals",
    "load_nutrition_table",
    "meal_calories",
]
