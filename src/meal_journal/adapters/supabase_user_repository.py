"""Supabase-backed user repository."""

from dataclasses import dataclass
from datetime import UTC, datetime

from supabase import Client

from meal_journal.domain.models import UserRecord
from meal_journal.services.users import UserRepository


@dataclass
class SupabaseUserRepository(UserRepository):
    """Supabase implementation for user persistence."""

    client: Client

    def upsert_user(self, user_id: str, phone_number: str) -> None:
        """Insert or refresh the user row."""
        self.client.table("users").upsert(
            {
                "id": user_id,
                "phone_number": phone_number,
                "updated_at": datetime.now(tz=UTC).isoformat(),
            }
        ).execute()

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return the user row, if present."""
        response = (
            self.client.table("users")
            .select("id, phone_number, created_at, updated_at")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return UserRecord(
            id=str(row["id"]),
            phone_number=str(row["phone_number"]),
            created_at=_parse_timestamp(row.get("created_at")),
            updated_at=_parse_timestamp(row.get("updated_at")),
        )


def _parse_timestamp(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None
