"""Supabase Storage bucket for meal photos."""

import logging
from dataclasses import dataclass

from supabase import Client

from meal_journal.services.meals import ImageStorage

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseImageStorage(ImageStorage):
    """Stores meal photos in a Supabase Storage bucket."""

    client: Client
    bucket: str

    def save(self, filename: str, content: bytes, content_type: str) -> None:
        """Upload image bytes."""
        self.client.storage.from_(self.bucket).upload(
            path=filename,
            file=content,
            file_options={"content-type": content_type},
        )

    def load(self, filename: str) -> bytes | None:
        """Download image bytes, or None when the object is missing."""
        try:
            return self.client.storage.from_(self.bucket).download(filename)
        except Exception:
            _logger.warning("Image not found in bucket: %s", filename)
            return None

    def delete(self, filename: str) -> None:
        """Remove an image from the bucket."""
        self.client.storage.from_(self.bucket).remove([filename])
