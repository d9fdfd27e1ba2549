"""Domain models for the meal journal."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class UserRecord:
    """Represents a user stored in the database."""

    id: str
    phone_number: str
    created_at: datetime | None = None
    updated_at: datetime | None = None
