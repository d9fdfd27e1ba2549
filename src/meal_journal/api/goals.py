"""Goal management and goal insight endpoints."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Request, status

from meal_journal.api.auth import Identity, require_identity
from meal_journal.api.errors import ApiError, service_failure
from meal_journal.api.presenters import goal_payload, preset_payload
from meal_journal.api.schemas import GenerateGoalRequest, GoalRequest
from meal_journal.domain.goals import PRESET_GOALS

if TYPE_CHECKING:
    from meal_journal.containers import AppContainer

router = APIRouter(prefix="/api", tags=["goals"])


@router.get("/goals")
async def list_goals(
    request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    try:
        goals = container.goal_service.list_goals(identity.user_id)
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to fetch goals") from exc
    return {"goals": [goal_payload(goal) for goal in goals]}


@router.post("/goals")
async def create_goal(
    body: GoalRequest, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    try:
        goal = container.goal_service.create_goal(identity.user_id, body.to_fields())
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to create goal") from exc
    return {"goal": goal_payload(goal)}


@router.get("/goals/{goal_id}")
async def get_goal(
    goal_id: int, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    goal = container.goal_service.get_goal(identity.user_id, goal_id)
    if goal is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Goal not found")
    return {"goal": goal_payload(goal)}


@router.put("/goals/{goal_id}")
async def update_goal(
    goal_id: int,
    body: GoalRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    try:
        goal = container.goal_service.update_goal(
            identity.user_id, goal_id, body.to_fields()
        )
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to update goal") from exc
    if goal is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Goal not found")
    return {"goal": goal_payload(goal)}


@router.delete("/goals/{goal_id}")
async def delete_goal(
    goal_id: int, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    try:
        deleted = container.goal_service.delete_goal(identity.user_id, goal_id)
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to delete goal") from exc
    if not deleted:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Goal not found")
    return {"success": True}


@router.post("/generate-goal")
async def generate_goal(
    body: GenerateGoalRequest,
    request: Request,
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Draft goal fields from a free-text description; nothing is saved."""
    container: AppContainer = request.app.state.container
    if not body.description.strip():
        raise ApiError(status.HTTP_400_BAD_REQUEST, "No description provided")
    try:
        template = await container.goal_service.generate_goal(body.description)
    except Exception as exc:
        raise service_failure(container.settings, exc, "Failed to generate goal") from exc
    return {"goal": template.model_dump(by_alias=True)}


@router.post("/goals/{goal_id}/progress")
async def goal_progress(
    goal_id: int, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Assess the last week of meals against the goal."""
    container: AppContainer = request.app.state.container
    try:
        result = await container.goal_service.analyze_progress(
            identity.user_id, goal_id
        )
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to analyze goal progress"
        ) from exc
    if result is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Goal not found")
    return result


@router.post("/goals/{goal_id}/today")
async def today_recommendation(
    goal_id: int, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    """Advise on the rest of today's eating for the goal."""
    container: AppContainer = request.app.state.container
    try:
        result = await container.goal_service.today_recommendation(
            identity.user_id, goal_id
        )
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to analyze today's meals"
        ) from exc
    if result is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Goal not found")
    return result


@router.get("/goal-presets")
async def list_goal_presets(
    identity: Identity = Depends(require_identity),
) -> dict[str, object]:
    """Built-in goals that need no saved goal row."""
    return {
        "presets": [preset_payload(key, preset) for key, preset in PRESET_GOALS.items()]
    }


@router.post("/goal-presets/{preset_key}/progress")
async def preset_progress(
    preset_key: str, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    try:
        result = await container.goal_service.analyze_preset_progress(
            identity.user_id, preset_key
        )
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to analyze goal progress"
        ) from exc
    if result is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Goal not found")
    return result


@router.post("/goal-presets/{preset_key}/today")
async def preset_today(
    preset_key: str, request: Request, identity: Identity = Depends(require_identity)
) -> dict[str, object]:
    container: AppContainer = request.app.state.container
    try:
        result = await container.goal_service.preset_today_recommendation(
            identity.user_id, preset_key
        )
    except Exception as exc:
        raise service_failure(
            container.settings, exc, "Failed to analyze today's meals"
        ) from exc
    if result is None:
        raise ApiError(status.HTTP_404_NOT_FOUND, "Goal not found")
    return result
