"""Domain models for logged meals."""

from dataclasses import dataclass
from datetime import date, datetime

from meal_journal.domain.analysis import MealAnalysis


@dataclass(frozen=True)
class StoredImage:
    """Image bytes accepted for upload."""

    filename: str
    content: bytes
    content_type: str


@dataclass(frozen=True)
class MealRecord:
    """Persisted meal with its analysis."""

    id: int
    user_id: str
    image_path: str | None
    analysis: MealAnalysis
    note: str | None
    created_at: datetime


@dataclass(frozen=True)
class DailyStats:
    """Totals across the meals logged on one day."""

    day: date
    total_calories: float
    total_protein: float
    total_carbs: float
    total_fat: float
    total_fiber: float
    total_sugar: float
    meal_count: int
