"""JSON payloads returned by the API."""

from meal_journal.domain.goals import Goal, GoalFields
from meal_journal.domain.ingredients import format_serving_display, recompute_totals
from meal_journal.domain.meals import DailyStats, MealRecord
from meal_journal.domain.models import UserRecord
from meal_journal.services.drafts import Draft


def meal_payload(meal: MealRecord) -> dict[str, object]:
    return {
        "id": meal.id,
        "image_path": meal.image_path,
        "image_url": f"/uploads/{meal.image_path}" if meal.image_path else None,
        "analysis": meal.analysis.to_payload(),
        "note": meal.note,
        "created_at": meal.created_at.isoformat(),
    }


def draft_payload(draft: Draft) -> dict[str, object]:
    """Draft with per-item display values and derived totals."""
    board = draft.board
    return {
        "id": draft.id,
        "meal_title": draft.analysis.meal_title,
        "meal_type": draft.analysis.meal_type,
        "notes": draft.analysis.notes,
        "description": draft.description,
        "has_image": draft.image is not None,
        "items": [
            {
                "id": item.id,
                "name": item.name,
                "estimated_quantity": item.quantity_text,
                "servingMultiplier": item.serving_multiplier,
                "servingDisplay": format_serving_display(
                    item.quantity_text, item.serving_multiplier
                ),
                "confidence": item.confidence.value,
                "macros": item.current.as_dict(),
                "unitMacros": item.original.as_dict(),
            }
            for item in board.items
        ],
        "totals": recompute_totals(board).as_dict(),
        "needsReanalysis": board.needs_reanalysis,
        "pendingEdit": board.pending_edit,
        "created_at": draft.created_at.isoformat(),
    }


def goal_payload(goal: Goal) -> dict[str, object]:
    return {
        "id": goal.id,
        "name": goal.name,
        "description": goal.description,
        "guidelines": goal.guidelines,
        "evaluationCriteria": goal.evaluation_criteria,
        "targets": goal.targets.as_dict(),
        "created_at": goal.created_at.isoformat() if goal.created_at else None,
    }


def preset_payload(key: str, preset: GoalFields) -> dict[str, object]:
    return {
        "key": key,
        "name": preset.name,
        "description": preset.description,
        "guidelines": preset.guidelines,
        "evaluationCriteria": preset.evaluation_criteria,
        "targets": preset.targets.as_dict(),
    }


def user_payload(user: UserRecord) -> dict[str, object]:
    return {
        "id": user.id,
        "phone_number": user.phone_number,
        "created_at": user.created_at.isoformat() if user.created_at else None,
        "updated_at": user.updated_at.isoformat() if user.updated_at else None,
    }


def stats_payload(stats: DailyStats) -> dict[str, object]:
    return {
        "day": stats.day.isoformat(),
        "total_calories": stats.total_calories,
        "total_protein": stats.total_protein,
        "total_carbs": stats.total_carbs,
        "total_fat": stats.total_fat,
        "total_fiber": stats.total_fiber,
        "total_sugar": stats.total_sugar,
        "meal_count": stats.meal_count,
    }
