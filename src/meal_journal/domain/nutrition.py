"""Nutrition domain models."""

import math
import re
from dataclasses import dataclass

MACRO_FIELDS = ("calories", "protein", "carbs", "fat", "fiber", "sugar")

QUANTITY_PATTERN = re.compile(r"^(\d+(\.\d+)?)\s*(.+)$")


@dataclass(frozen=True)
class Macros:
    """Calories and macronutrients (grams) for a food or a meal."""

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0
    fiber: float = 0.0
    sugar: float = 0.0

    def scaled(self, factor: float) -> "Macros":
        """Return every field multiplied by factor."""
        return Macros(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
            fiber=self.fiber * factor,
            sugar=self.sugar * factor,
        )

    def plus(self, other: "Macros") -> "Macros":
        """Return the elementwise sum."""
        return Macros(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
            fiber=self.fiber + other.fiber,
            sugar=self.sugar + other.sugar,
        )

    def as_dict(self) -> dict[str, float]:
        return {name: getattr(self, name) for name in MACRO_FIELDS}


def parse_quantity(text: str) -> tuple[float, str] | None:
    """Split "3 cookies" into (3.0, "cookies"); None when there is no leading number."""
    match = QUANTITY_PATTERN.match(text)
    if match is None:
        return None
    return float(match.group(1)), match.group(3)


def round_half_up(value: float, places: int = 0) -> float:
    """Round with halves going up, like JavaScript's Math.round.

    Values too large to scale, and NaN or infinity, are returned as they are.
    """
    factor = 10**places
    scaled = value * factor + 0.5
    if not math.isfinite(scaled):
        return value
    return math.floor(scaled) / factor
