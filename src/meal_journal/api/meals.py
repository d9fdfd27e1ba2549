"""Meal analysis, history and upload endpoints."""

from __future__ import annotations

import json
from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile, status
from fastapi.responses import Response
from pydantic import ValidationError

from meal_journal.api.auth import Identity, require_identity
from meal_journal.api.errors import ApiError, service_failure
from meal_journal.api.presenters import meal_payload, stats_payload, user_payload
from meal_journal.api.schemas import ActionLogRequest, TextAnalysisRequest
from meal_journal.api.uploads import read_image_upload
from meal_journal.app_logging import log_action
from meal_journal.domain.analysis import MealAnalysis
from meal_journal.services.analysis import detect_mime_type

if TYPE_CHECKING:
    from meal_journal.containers import AppContainer
    from meal_journal.domain.meals import MealRecord, StoredImage

router = APIRouter(tags=["meals"])


@router.post("/api/analyze-food-only")
async def analyze_food_only(
    request: Request,
    image: UploadFile | None = File(default=None),
    note: str | None = Form(default=None),
    ingredient_notes: str | None = Form(default=None),
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Analyze a meal photo without saving it."""
    container: AppContainer = request.app.state.container
    stored = await read_image_upload(image, container.settings)
    try:
        analysis = await container.analysis_service.analyze_image(
            stored.content, ingredient_notes=ingredient_notes, user_description=note
        )
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to analyze food image"
        ) from exc
    return {"success": True, "analysis": analysis.to_payload()}


@router.post("/api/analyze-food")
async def analyze_food(  # noqa: PLR0913
    request: Request,
    image: UploadFile | None = File(default=None),
    note: str | None = Form(default=None),
    ingredient_notes: str | None = Form(default=None),
    analysis: str | None = Form(default=None),
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Analyze a meal photo, or take an edited analysis, and save the meal."""
    container: AppContainer = request.app.state.container
    stored = await read_image_upload(image, container.settings)
    if analysis:
        meal_analysis = _parse_provided_analysis(analysis)
    else:
        try:
            meal_analysis = await container.analysis_service.analyze_image(
                stored.content,
                ingredient_notes=ingredient_notes,
                user_description=note,
            )
        except Exception as exc:
            raise service_failure(
                container.settings, exc, "Failed to analyze food image"
            ) from exc
    meal = _save(container, identity, meal_analysis, note, stored)
    return _saved_response(meal)


@router.post("/api/analyze-text-only")
async def analyze_text_only(
    body: TextAnalysisRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Analyze a meal description without saving it."""
    container: AppContainer = request.app.state.container
    if not body.description.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No description provided")
    try:
        analysis = await container.analysis_service.analyze_text(body.description)
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to analyze text description"
        ) from exc
    return {"success": True, "analysis": analysis.to_payload()}


@router.post("/api/analyze-text")
async def analyze_text(
    body: TextAnalysisRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Analyze a meal description, or take an edited analysis, and save the meal."""
    container: AppContainer = request.app.state.container
    if not body.description.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No description provided")
    if body.analysis:
        meal_analysis = _parse_provided_analysis(body.analysis)
    else:
        try:
            meal_analysis = await container.analysis_service.analyze_text(
                body.description
            )
        except Exception as exc:
            raise service_failure(
                container.settings, exc, "Failed to analyze text description"
            ) from exc
    meal = _save(container, identity, meal_analysis, body.note, None)
    return _saved_response(meal)


@router.get("/api/meals")
async def list_meals(
    request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Return the caller's meals, newest first."""
    container: AppContainer = request.app.state.container
    try:
        meals = container.meal_service.list_meals(identity.user_id)
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to fetch meals") from exc
    return {"meals": [meal_payload(meal) for meal in meals]}


@router.delete("/api/meals/{meal_id}")
async def delete_meal(
    meal_id: int, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Delete one of the caller's meals and its photo."""
    container: AppContainer = request.app.state.container
    try:
        deleted = container.meal_service.delete_meal(identity.user_id, meal_id)
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to delete meal") from exc
    if not deleted:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Meal not found")
    log_action(identity.phone_number, f"delete meal {meal_id}")
    return {"success": True, "message": "Meal deleted successfully"}


@router.get("/api/stats/daily")
async def daily_stats(
    request: Request,
    day: date | None = None,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Return totals over one UTC day, today by default."""
    container: AppContainer = request.app.state.container
    resolved_day = day or datetime.now(tz=UTC).date()
    try:
        stats = container.meal_service.daily_stats(identity.user_id, resolved_day)
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to fetch daily stats"
        ) from exc
    return {"stats": stats_payload(stats)}


@router.get("/api/user/profile")
async def user_profile(
    request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    try:
        user = container.user_service.get_profile(identity.user_id)
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to fetch user profile"
        ) from exc
    if user is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "User not found")
    return {"user": user_payload(user)}


@router.get("/uploads/{filename}")
async def uploaded_image(filename: str, request: Request) -> Response:
    """Serve a stored meal photo."""
    container: AppContainer = request.app.state.container
    content = container.meal_service.load_image(filename)
    if content is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Image not found")
    return Response(content=content, media_type=detect_mime_type(content))


@router.post("/log-action")
async def record_action(body: ActionLogRequest) -> dict[str, object]:
    """Append a client-reported action to the action log."""
    log_action(body.phone, body.action, body.status)
    return {"success": True}


def _parse_provided_analysis(raw: str | dict[str, object]) -> MealAnalysis:
    """Validate an analysis the client already edited.

    Its foods already carry scaled values, so they are kept as given and only the
    totals are recomputed from them.
    """
    try:
        data = json.loads(raw) if isinstance(raw, str) else raw
        return MealAnalysis.model_validate(data).with_food_totals()
    except (ValueError, ValidationError) as exc:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST, "Invalid analysis data provided"
        ) from exc


def _save(
    container: AppContainer,
    identity: Identity,
    analysis: MealAnalysis,
    note: str | None,
    image: StoredImage | None,
) -> MealRecord:
    try:
        meal = container.meal_service.save_meal(
            identity.user_id, analysis, user_note=note, image=image
        )
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to save meal") from exc
    log_action(identity.phone_number, f"save meal {meal.id}")
    return meal


def _saved_response(meal: MealRecord) -> dict[str, object]:
    return {
        "success": True,
        "mealId": meal.id,
        "analysis": meal.analysis.to_payload(),
        "note": meal.note,
    }
