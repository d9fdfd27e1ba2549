"""Supabase repository for goals."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meal_journal.domain.goals import Goal, GoalFields, GoalTargets
from meal_journal.services.goals import GoalRepository

_COLUMNS = (
    "id, user_id, name, description, guidelines, evaluation_criteria, targets, "
    "created_at"
)


@dataclass
class SupabaseGoalRepository(GoalRepository):
    """Supabase implementation for goals."""

    client: Client

    def create_goal(self, user_id: str, fields: GoalFields) -> Goal:
        """Insert a goal row and return it."""
        response = (
            self.client.table("goals")
            .insert({"user_id": user_id, **_fields_payload(fields)})
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to create goal")
        return _parse_goal(response.data[0])

    def list_goals(self, user_id: str) -> list[Goal]:
        """Return the user's goals, newest first."""
        response = (
            self.client.table("goals")
            .select(_COLUMNS)
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return [_parse_goal(row) for row in response.data or []]

    def get_goal(self, goal_id: int, user_id: str) -> Goal | None:
        """Return a goal owned by the user."""
        response = (
            self.client.table("goals")
            .select(_COLUMNS)
            .eq("id", goal_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_goal(response.data[0])

    def update_goal(self, goal_id: int, user_id: str, fields: GoalFields) -> Goal | None:
        """Replace a goal's editable fields."""
        response = (
            self.client.table("goals")
            .update(_fields_payload(fields))
            .eq("id", goal_id)
            .eq("user_id", user_id)
            .execute()
        )
        if not response.data:
            return None
        return _parse_goal(response.data[0])

    def delete_goal(self, goal_id: int, user_id: str) -> bool:
        """Delete a goal owned by the user."""
        response = (
            self.client.table("goals")
            .delete()
            .eq("id", goal_id)
            .eq("user_id", user_id)
            .execute()
        )
        return bool(response.data)


def _fields_payload(fields: GoalFields) -> dict[str, object]:
    return {
        "name": fields.name,
        "description": fields.description,
        "guidelines": fields.guidelines,
        "evaluation_criteria": fields.evaluation_criteria,
        "targets": fields.targets.as_dict(),
    }


def _parse_goal(row: dict[str, object]) -> Goal:
    targets = row.get("targets") or {}
    created_at = row.get("created_at")
    return Goal(
        id=int(row["id"]),
        user_id=str(row["user_id"]),
        name=str(row.get("name", "")),
        description=str(row.get("description") or ""),
        guidelines=str(row.get("guidelines") or ""),
        evaluation_criteria=str(row.get("evaluation_criteria") or ""),
        targets=GoalTargets(
            calories=targets.get("calories"),
            protein=targets.get("protein"),
            carbs=targets.get("carbs"),
            fat=targets.get("fat"),
        ),
        created_at=(
            datetime.fromisoformat(created_at)
            if isinstance(created_at, str) and created_at
            else None
        ),
    )
