"""Editable meal drafts: analyze, adjust, reanalyze, save."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status

from meal_journal.api.auth import Identity, require_identity
from meal_journal.api.errors import ApiError, service_failure
from meal_journal.api.presenters import draft_payload
from meal_journal.api.schemas import (
    DraftTextRequest,
    IngredientEditRequest,
    NewIngredientRequest,
    ServingUpdateRequest,
)
from meal_journal.api.uploads import read_image_upload
from meal_journal.app_logging import log_action
from meal_journal.services.drafts import DraftStateError

if TYPE_CHECKING:
    from meal_journal.containers import AppContainer
    from meal_journal.services.drafts import Draft

router = APIRouter(prefix="/api/drafts", tags=["drafts"])


@router.post("/photo")
async def start_photo_draft(
    request: Request,
    image: UploadFile | None = File(default=None),
    note: str | None = Form(default=None),
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Analyze a photo into a new draft."""
    container: AppContainer = request.app.state.container
    stored = await read_image_upload(image, container.settings)
    try:
        draft = await container.draft_service.start_from_image(
            identity.user_id, stored, description=note
        )
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to analyze food image"
        ) from exc
    return {"draft": draft_payload(draft)}


@router.post("/text")
async def start_text_draft(
    body: DraftTextRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Analyze a description into a new draft."""
    container: AppContainer = request.app.state.container
    if not body.description.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No description provided")
    try:
        draft = await container.draft_service.start_from_text(
            identity.user_id, body.description
        )
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to analyze text description"
        ) from exc
    return {"draft": draft_payload(draft)}


@router.get("/{draft_id}")
async def get_draft(
    draft_id: str, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    return _found(container.draft_service.get(identity.user_id, draft_id))


@router.patch("/{draft_id}/items/{item_id}")
async def adjust_serving(
    draft_id: str,
    item_id: str,
    body: ServingUpdateRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Change one ingredient's serving multiplier."""
    container: AppContainer = request.app.state.container
    return _found(
        container.draft_service.adjust_serving(
            identity.user_id, draft_id, item_id, body.serving_multiplier
        )
    )


@router.delete("/{draft_id}/items/{item_id}")
async def remove_item(
    draft_id: str,
    item_id: str,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    return _found(
        container.draft_service.remove_item(identity.user_id, draft_id, item_id)
    )


@router.post("/{draft_id}/items")
async def add_item(
    draft_id: str,
    body: NewIngredientRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Add an ingredient with user-entered macros."""
    container: AppContainer = request.app.state.container
    return _found(
        container.draft_service.add_item(
            identity.user_id,
            draft_id,
            body.name.strip(),
            body.estimated_quantity,
            body.macros(),
        )
    )


@router.post("/{draft_id}/edits")
async def record_edit(
    draft_id: str,
    body: IngredientEditRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Record a free-text correction; the draft needs reanalysis afterwards."""
    container: AppContainer = request.app.state.container
    return _found(
        container.draft_service.record_edit(identity.user_id, draft_id, body.text)
    )


@router.delete("/{draft_id}/edits")
async def discard_edit(
    draft_id: str, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    return _found(container.draft_service.discard_edit(identity.user_id, draft_id))


@router.post("/{draft_id}/reanalyze")
async def reanalyze(
    draft_id: str, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Send the pending correction to the model and replace the ingredients."""
    container: AppContainer = request.app.state.container
    try:
        draft = await container.draft_service.reanalyze(identity.user_id, draft_id)
    except DraftStateError as exc:
        raise ApiError(status.HTTP_409_CONFLICT, str(exc)) from exc
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to reanalyze ingredients"
        ) from exc
    return _found(draft)


@router.post("/{draft_id}/save")
async def save_draft(
    draft_id: str, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Persist the draft as a meal."""
    container: AppContainer = request.app.state.container
    try:
        meal = container.draft_service.save(identity.user_id, draft_id)
    except DraftStateError as exc:
        raise ApiError(status.HTTP_409_CONFLICT, str(exc)) from exc
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to save meal") from exc
    if meal is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Draft not found")
    log_action(identity.phone_number, f"save meal {meal.id}")
    return {
        "success": True,
        "mealId": meal.id,
        "analysis": meal.analysis.to_payload(),
        "note": meal.note,
    }


def _found(draft: Draft | None) -> dict[str, object]:
    if draft is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Draft or ingredient not found")
    return {"draft": draft_payload(draft)}
