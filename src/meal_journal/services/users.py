"""User-related business logic."""

from dataclasses import dataclass
from typing import Protocol

from meal_journal.domain.models import UserRecord


class UserRepository(Protocol):
    """Persistence interface for user data."""

    def upsert_user(self, user_id: str, phone_number: str) -> None:
        """Create the user or refresh its phone number and updated_at."""

    def get_user(self, user_id: str) -> UserRecord | None:
        """Return the user by id, if present."""


@dataclass
class UserService:
    """Application service for user lifecycle actions."""

    repository: UserRepository

    def ensure_user(self, user_id: str, phone_number: str) -> None:
        """Record the identity presented by an authenticated request."""
        self.repository.upsert_user(user_id, phone_number)

    def get_profile(self, user_id: str) -> UserRecord | None:
        """Return the stored user row."""
        return self.repository.get_user(user_id)
