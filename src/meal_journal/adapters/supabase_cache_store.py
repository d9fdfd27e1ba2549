"""Supabase table backing the insight cache."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meal_journal.services.cache import CacheStore


@dataclass
class SupabaseCacheStore(CacheStore):
    """Stores cached insights in the insight_cache table."""

    client: Client

    def read(self, key: str) -> tuple[dict[str, object], datetime] | None:
        """Return the cached value and its write time."""
        response = (
            self.client.table("insight_cache")
            .select("key, value, stored_at")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        return row["value"], datetime.fromisoformat(row["stored_at"])

    def write(self, key: str, value: dict[str, object], stored_at: datetime) -> None:
        """Insert or replace a cache row."""
        self.client.table("insight_cache").upsert(
            {"key": key, "value": value, "stored_at": stored_at.isoformat()}
        ).execute()

    def remove(self, key: str) -> None:
        """Delete a cache row."""
        self.client.table("insight_cache").delete().eq("key", key).execute()
