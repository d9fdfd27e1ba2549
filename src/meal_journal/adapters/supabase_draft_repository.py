"""Supabase-backed draft storage."""

import base64
from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from meal_journal.domain.analysis import MealAnalysis
from meal_journal.domain.ingredients import board_from_dict, board_to_dict
from meal_journal.domain.meals import StoredImage
from meal_journal.services.drafts import Draft, DraftStore

_COLUMNS = "id, user_id, analysis, board, description, image, created_at"


@dataclass
class SupabaseDraftRepository(DraftStore):
    """Supabase implementation for meal drafts."""

    client: Client

    def get(self, draft_id: str) -> Draft | None:
        """Return a draft by id, if present."""
        response = (
            self.client.table("meal_drafts")
            .select(_COLUMNS)
            .eq("id", draft_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_draft(response.data[0])

    def put(self, draft: Draft) -> None:
        """Insert or replace a draft row."""
        response = (
            self.client.table("meal_drafts")
            .upsert(
                {
                    "id": draft.id,
                    "user_id": draft.user_id,
                    "analysis": draft.analysis.to_payload(),
                    "board": board_to_dict(draft.board),
                    "description": draft.description,
                    "image": _image_to_dict(draft.image),
                    "created_at": draft.created_at.isoformat(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to store draft")

    def remove(self, draft_id: str) -> None:
        """Delete a draft row."""
        self.client.table("meal_drafts").delete().eq("id", draft_id).execute()

    def remove_expired(self, created_before: datetime) -> None:
        """Delete drafts created before the cutoff."""
        self.client.table("meal_drafts").delete().lt(
            "created_at", created_before.isoformat()
        ).execute()


def _image_to_dict(image: StoredImage | None) -> dict[str, str] | None:
    if image is None:
        return None
    return {
        "filename": image.filename,
        "content_type": image.content_type,
        "data": base64.b64encode(image.content).decode("ascii"),
    }


def _parse_draft(row: dict[str, object]) -> Draft:
    image = row.get("image")
    return Draft(
        id=row["id"],
        user_id=row["user_id"],
        analysis=MealAnalysis.model_validate(row["analysis"]),
        board=board_from_dict(row["board"]),
        description=row.get("description"),
        image=(
            StoredImage(
                filename=image["filename"],
                content=base64.b64decode(image["data"]),
                content_type=image["content_type"],
            )
            if image
            else None
        ),
        created_at=datetime.fromisoformat(row["created_at"]),
    )
