"""Meal persistence and daily statistics."""

import logging
import secrets
from dataclasses import dataclass
from datetime import UTC, date, datetime, time, timedelta
from pathlib import Path
from typing import Protocol

from meal_journal.domain.analysis import MealAnalysis
from meal_journal.domain.meals import DailyStats, MealRecord, StoredImage

_logger = logging.getLogger(__name__)

_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/webp": ".webp",
    "image/gif": ".gif",
}


class MealRepository(Protocol):
    """Persistence interface for meals."""

    def create_meal(  # noqa: PLR0913
        self,
        user_id: str,
        image_path: str | None,
        analysis: dict[str, object],
        note: str | None,
        logged_at: datetime,
    ) -> MealRecord:
        """Insert a meal row and return it."""

    def list_meals(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[MealRecord]:
        """Return the user's meals, newest first, optionally within [start, end)."""

    def get_meal(self, meal_id: int, user_id: str) -> MealRecord | None:
        """Return a meal owned by the user, if present."""

    def delete_meal(self, meal_id: int, user_id: str) -> None:
        """Delete a meal owned by the user."""


class ImageStorage(Protocol):
    """Storage interface for meal photos."""

    def save(self, filename: str, content: bytes, content_type: str) -> None:
        """Store image bytes under a filename."""

    def load(self, filename: str) -> bytes | None:
        """Return image bytes, or None when the file does not exist."""

    def delete(self, filename: str) -> None:
        """Delete a stored image."""


@dataclass
class MealService:
    """Service that stores, lists and aggregates logged meals."""

    repository: MealRepository
    image_storage: ImageStorage

    def save_meal(
        self,
        user_id: str,
        analysis: MealAnalysis,
        user_note: str | None = None,
        image: StoredImage | None = None,
    ) -> MealRecord:
        """Persist an analyzed meal with its optional photo."""
        image_path = None
        if image is not None:
            image_path = build_image_name(image.filename, image.content_type)
            self.image_storage.save(image_path, image.content, image.content_type)
        try:
            meal = self.repository.create_meal(
                user_id=user_id,
                image_path=image_path,
                analysis=analysis.to_payload(),
                note=compose_note(user_note, analysis.notes),
                logged_at=datetime.now(tz=UTC),
            )
        except Exception:
            if image_path is not None:
                self.image_storage.delete(image_path)
            raise
        _logger.info("Meal saved: id=%s user=%s", meal.id, user_id)
        return meal

    def list_meals(self, user_id: str) -> list[MealRecord]:
        """Return all meals for the user, newest first."""
        return self.repository.list_meals(user_id)

    def meals_between(
        self, user_id: str, start: datetime, end: datetime | None = None
    ) -> list[MealRecord]:
        """Return meals logged in [start, end)."""
        return self.repository.list_meals(user_id, start=start, end=end)

    def delete_meal(self, user_id: str, meal_id: int) -> bool:
        """Delete a meal and its photo; False when the user has no such meal."""
        meal = self.repository.get_meal(meal_id, user_id)
        if meal is None:
            return False
        self.repository.delete_meal(meal_id, user_id)
        if meal.image_path:
            self.image_storage.delete(meal.image_path)
        return True

    def load_image(self, filename: str) -> bytes | None:
        """Return stored photo bytes."""
        return self.image_storage.load(filename)

    def daily_stats(self, user_id: str, day: date) -> DailyStats:
        """Sum meal totals over one UTC day."""
        start = datetime.combine(day, time.min, tzinfo=UTC)
        meals = self.meals_between(user_id, start, start + timedelta(days=1))
        totals = [meal.analysis.totals for meal in meals]
        return DailyStats(
            day=day,
            total_calories=sum(t.calories for t in totals),
            total_protein=sum(t.protein for t in totals),
            total_carbs=sum(t.carbs for t in totals),
            total_fat=sum(t.fat for t in totals),
            total_fiber=sum(t.fiber for t in totals),
            total_sugar=sum(t.sugar for t in totals),
            meal_count=len(meals),
        )


def compose_note(user_note: str | None, model_notes: str | None) -> str | None:
    """Combine the user's note with the model's observations."""
    user_text = (user_note or "").strip()
    model_text = (model_notes or "").strip()
    if user_text and model_text:
        return f"{user_text}\n\nAI Analysis: {model_text}"
    return user_text or model_text or None


def build_image_name(original_filename: str, content_type: str) -> str:
    """Return a unique storage name like food-1700000000000-123456789.jpg."""
    suffix = Path(original_filename).suffix.lower() or _EXTENSIONS.get(
        content_type, ".jpg"
    )
    timestamp = int(datetime.now(tz=UTC).timestamp() * 1000)
    return f"food-{timestamp}-{secrets.randbelow(10**9)}{suffix}"
