"""Supabase repository for meals."""

import json
from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meal_journal.domain.analysis import MealAnalysis
from meal_journal.domain.meals import MealRecord
from meal_journal.services.meals import MealRepository

_COLUMNS = "id, user_id, image_path, analysis, note, created_at"


@dataclass
class SupabaseMealRepository(MealRepository):
    """Supabase implementation for meals."""

    client: Client

    def create_meal(  # noqa: PLR0913
        self,
        user_id: str,
        image_path: str | None,
        analysis: dict[str, object],
        note: str | None,
        logged_at: datetime,
    ) -> MealRecord:
        """Insert a meal row and return it."""
        response = (
            self.client.table("meals")
            .insert(
                {
                    "user_id": user_id,
                    "image_path": image_path,
                    "analysis": analysis,
                    "note": note,
                    "created_at": logged_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create meal")
        return _parse_meal(response.data[0])

    def list_meals(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[MealRecord]:
        """Return meals for a user, newest first."""
        query = self.client.table("meals").select(_COLUMNS).eq("user_id", user_id)
        if start is not None:
            query = query.gte("created_at", start.isoformat())
        if end is not None:
            query = query.lt("created_at", end.isoformat())
        response = query.order("created_at", desc=True).execute()
        return [_parse_meal(row) for row in response.data or []]

    def get_meal(self, meal_id: int, user_id: str) -> MealRecord | None:
        """Return a meal owned by the user."""
        response = (
            self.client.table("meals")
            .select(_COLUMNS)
            .eq("id", meal_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_meal(response.data[0])

    def delete_meal(self, meal_id: int, user_id: str) -> None:
        """Delete a meal owned by the user."""
        self.client.table("meals").delete().eq("id", meal_id).eq(
            "user_id", user_id
        ).execute()


def _parse_meal(row: dict[str, object]) -> MealRecord:
    raw_analysis = row.get("analysis") or {}
    if isinstance(raw_analysis, str):
        raw_analysis = json.loads(raw_analysis)
    return MealRecord(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        image_path=row.get("image_path"),
        analysis=MealAnalysis.model_validate(raw_analysis),
        note=row.get("note"),
        created_at=datetime.fromisoformat(str(row["created_at"])),
    )
