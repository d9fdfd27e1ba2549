"""Dietary goals and model-generated progress insights."""

import logging
from collections.abc import Callable
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime, time, timedelta
from typing import Protocol

from meal_journal.domain.analysis import GoalInsight, GoalTemplate, TodayRecommendation
from meal_journal.domain.goals import (
    PRESET_GOALS,
    DayTotals,
    Goal,
    GoalFields,
    MealSnapshot,
    ProgressStats,
)
from meal_journal.domain.meals import MealRecord
from meal_journal.services.analysis import NutritionModelClient
from meal_journal.services.cache import InsightCache
from meal_journal.services.meals import MealService

_logger = logging.getLogger(__name__)

PROGRESS_WINDOW_DAYS = 7

GOAL_INSIGHT_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "trend": {
            "type": "string",
            "description": "Brief assessment of the current trend (1-2 sentences)",
        },
        "recommendation": {
            "type": "string",
            "description": "Specific, actionable recommendation (2-3 sentences)",
        },
    },
    "required": ["trend", "recommendation"],
    "additionalProperties": False,
}

TODAY_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "recommendation": {
            "type": "string",
            "description": "What to eat and avoid for the rest of today",
        }
    },
    "required": ["recommendation"],
    "additionalProperties": False,
}

_NULLABLE_NUMBER = {"anyOf": [{"type": "number"}, {"type": "null"}]}

GOAL_TEMPLATE_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "description": {"type": "string"},
        "guidelines": {"type": "string"},
        "evaluationCriteria": {"type": "string"},
        "targets": {
            "type": "object",
            "properties": {
                "calories": _NULLABLE_NUMBER,
                "protein": _NULLABLE_NUMBER,
                "carbs": _NULLABLE_NUMBER,
                "fat": _NULLABLE_NUMBER,
            },
            "required": ["calories", "protein", "carbs", "fat"],
            "additionalProperties": False,
        },
    },
    "required": ["name", "description", "guidelines", "evaluationCriteria", "targets"],
    "additionalProperties": False,
}

_SYSTEM_PROMPT = (
    "You are a friendly nutrition coach. Analyze meal data for diet goal "
    "compliance and give encouraging, actionable advice."
)


class GoalRepository(Protocol):
    """Persistence interface for goals."""

    def create_goal(self, user_id: str, fields: GoalFields) -> Goal:
        """Insert a goal and return it."""

    def list_goals(self, user_id: str) -> list[Goal]:
        """Return the user's goals, newest first."""

    def get_goal(self, goal_id: int, user_id: str) -> Goal | None:
        """Return a goal owned by the user, if present."""

    def update_goal(self, goal_id: int, user_id: str, fields: GoalFields) -> Goal | None:
        """Replace a goal's fields and return the updated goal."""

    def delete_goal(self, goal_id: int, user_id: str) -> bool:
        """Delete a goal; False when the user has no such goal."""


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


@dataclass
class GoalService:
    """Service for goal CRUD and cached goal insights."""

    repository: GoalRepository
    meal_service: MealService
    client: NutritionModelClient
    cache: InsightCache
    model: str
    store: bool
    clock: Callable[[], datetime] = field(default=_utcnow)

    def create_goal(self, user_id: str, fields: GoalFields) -> Goal:
        return self.repository.create_goal(user_id, fields)

    def list_goals(self, user_id: str) -> list[Goal]:
        return self.repository.list_goals(user_id)

    def get_goal(self, user_id: str, goal_id: int) -> Goal | None:
        return self.repository.get_goal(goal_id, user_id)

    def update_goal(
        self, user_id: str, goal_id: int, fields: GoalFields
    ) -> Goal | None:
        return self.repository.update_goal(goal_id, user_id, fields)

    def delete_goal(self, user_id: str, goal_id: int) -> bool:
        return self.repository.delete_goal(goal_id, user_id)

    async def generate_goal(self, description: str) -> GoalTemplate:
        """Turn a free-text goal into structured, unsaved goal fields."""
        raw = await self.client.generate(
            model=self.model,
            store=self.store,
            max_output_tokens=800,
            system_prompt=_SYSTEM_PROMPT,
            prompt=(
                "Create a dietary goal from this description: "
                f"{description.strip()}\n\n"
                "Return a short name, a one-sentence description, concrete "
                "guidelines, criteria for evaluating meals against the goal, "
                "and daily numeric targets where they make sense (null otherwise)."
            ),
            schema_name="goal_template",
            schema=GOAL_TEMPLATE_SCHEMA,
        )
        return GoalTemplate.model_validate(raw)

    async def analyze_progress(
        self, user_id: str, goal_id: int
    ) -> dict[str, object] | None:
        """Assess the last week of meals against a goal, cached for a day."""
        goal = self.repository.get_goal(goal_id, user_id)
        if goal is None:
            return None
        return await self._progress(
            user_id, goal, f"goal-progress:{user_id}:{goal_id}"
        )

    async def analyze_preset_progress(
        self, user_id: str, preset_key: str
    ) -> dict[str, object] | None:
        """Assess the last week of meals against a built-in goal."""
        preset = PRESET_GOALS.get(preset_key)
        if preset is None:
            return None
        return await self._progress(
            user_id, preset, f"goal-progress:{user_id}:preset:{preset_key}"
        )

    async def today_recommendation(
        self, user_id: str, goal_id: int
    ) -> dict[str, object] | None:
        """Advise on the rest of today's eating, cached per day."""
        goal = self.repository.get_goal(goal_id, user_id)
        if goal is None:
            return None
        return await self._today(user_id, goal, f"today:{user_id}:{goal_id}")

    async def preset_today_recommendation(
        self, user_id: str, preset_key: str
    ) -> dict[str, object] | None:
        """Advise on the rest of today's eating for a built-in goal."""
        preset = PRESET_GOALS.get(preset_key)
        if preset is None:
            return None
        return await self._today(
            user_id, preset, f"today:{user_id}:preset:{preset_key}"
        )

    async def _progress(
        self, user_id: str, goal: Goal | GoalFields, cache_key: str
    ) -> dict[str, object]:
        cached = self.cache.get(cache_key)
        if cached is not None:
            return {**cached.value, "cached": True}

        since = self.clock() - timedelta(days=PROGRESS_WINDOW_DAYS)
        meals = [
            to_snapshot(meal)
            for meal in self.meal_service.meals_between(user_id, since)
        ]
        stats = summarize_progress(meals)
        raw = await self.client.generate(
            model=self.model,
            store=self.store,
            max_output_tokens=500,
            system_prompt=_SYSTEM_PROMPT,
            prompt=_progress_prompt(goal, meals, stats),
            schema_name="goal_analysis",
            schema=GOAL_INSIGHT_SCHEMA,
        )
        insight = GoalInsight.model_validate(raw)
        result: dict[str, object] = {
            "analysis": insight.model_dump(),
            "stats": asdict(stats),
            "relevantMeals": [_snapshot_payload(meal) for meal in meals],
        }
        self.cache.put(cache_key, result)
        _logger.info("Goal progress analyzed: key=%s meals=%s", cache_key, len(meals))
        return {**result, "cached": False}

    async def _today(
        self, user_id: str, goal: Goal | GoalFields, key_prefix: str
    ) -> dict[str, object]:
        now = self.clock()
        cache_key = f"{key_prefix}:{now.date().isoformat()}"
        cached = self.cache.get(cache_key)
        if cached is not None:
            return {**cached.value, "cached": True}

        start = datetime.combine(now.date(), time.min, tzinfo=UTC)
        meals = [
            to_snapshot(meal)
            for meal in self.meal_service.meals_between(
                user_id, start, start + timedelta(days=1)
            )
        ]
        totals = summarize_day(meals)
        raw = await self.client.generate(
            model=self.model,
            store=self.store,
            max_output_tokens=300,
            system_prompt=_SYSTEM_PROMPT,
            prompt=_today_prompt(goal, meals, totals),
            schema_name="today_recommendation",
            schema=TODAY_SCHEMA,
        )
        advice = TodayRecommendation.model_validate(raw)
        result: dict[str, object] = {
            "recommendation": advice.recommendation,
            "totals": asdict(totals),
        }
        self.cache.put(cache_key, result)
        return {**result, "cached": False}


def to_snapshot(meal: MealRecord) -> MealSnapshot:
    totals = meal.analysis.totals
    return MealSnapshot(
        logged_at=meal.created_at,
        calories=totals.calories,
        protein=totals.protein,
        carbs=totals.carbs,
        fat=totals.fat,
        fiber=totals.fiber,
        sugar=totals.sugar,
        foods=[food.name for food in meal.analysis.foods],
        note=meal.note or "",
    )


def summarize_progress(meals: list[MealSnapshot]) -> ProgressStats:
    """Per-meal averages and the protein/carbs/fat split by grams."""
    count = len(meals)
    total_protein = sum(meal.protein for meal in meals)
    total_carbs = sum(meal.carbs for meal in meals)
    total_fat = sum(meal.fat for meal in meals)
    total_macros = total_protein + total_carbs + total_fat

    def average(values: list[float]) -> float:
        return sum(values) / count if count else 0.0

    def percent(part: float) -> float:
        return part / total_macros * 100 if total_macros > 0 else 0.0

    return ProgressStats(
        meal_count=count,
        avg_calories=average([meal.calories for meal in meals]),
        avg_protein=average([meal.protein for meal in meals]),
        avg_carbs=average([meal.carbs for meal in meals]),
        avg_fat=average([meal.fat for meal in meals]),
        avg_fiber=average([meal.fiber for meal in meals]),
        avg_sugar=average([meal.sugar for meal in meals]),
        protein_percent=percent(total_protein),
        carbs_percent=percent(total_carbs),
        fat_percent=percent(total_fat),
    )


def summarize_day(meals: list[MealSnapshot]) -> DayTotals:
    return DayTotals(
        meal_count=len(meals),
        calories=sum(meal.calories for meal in meals),
        protein=sum(meal.protein for meal in meals),
        carbs=sum(meal.carbs for meal in meals),
        fat=sum(meal.fat for meal in meals),
        fiber=sum(meal.fiber for meal in meals),
        sugar=sum(meal.sugar for meal in meals),
    )


def _goal_guidelines(goal: Goal | GoalFields) -> str:
    lines = [f"Goal: {goal.name}"]
    if goal.description:
        lines.append(goal.description)
    if goal.guidelines:
        lines.append(f"Guidelines:\n{goal.guidelines}")
    if goal.evaluation_criteria:
        lines.append(f"Evaluation criteria:\n{goal.evaluation_criteria}")
    targets = {k: v for k, v in goal.targets.as_dict().items() if v is not None}
    if targets:
        lines.append(
            "Daily targets: "
            + ", ".join(f"{name} {value:g}" for name, value in targets.items())
        )
    return "\n".join(lines)


def _meal_line(meal: MealSnapshot, when: str) -> str:
    line = (
        f"- {when}: {meal.calories:.0f} cal, {meal.protein:.1f}g protein, "
        f"{meal.carbs:.1f}g carbs, {meal.fat:.1f}g fat"
    )
    if meal.note:
        line += f" (Note: {meal.note})"
    return line


def _progress_prompt(
    goal: Goal | GoalFields, meals: list[MealSnapshot], stats: ProgressStats
) -> str:
    details = "\n".join(
        _meal_line(meal, meal.logged_at.date().isoformat()) for meal in meals
    )
    return (
        f"Analyze this user's recent meals for compliance with their goal.\n\n"
        f"Recent meals ({stats.meal_count} meals in last "
        f"{PROGRESS_WINDOW_DAYS} days):\n"
        f"- Average calories: {stats.avg_calories:.0f}\n"
        f"- Average protein: {stats.avg_protein:.1f}g\n"
        f"- Average carbs: {stats.avg_carbs:.1f}g\n"
        f"- Average fat: {stats.avg_fat:.1f}g\n"
        f"- Average fiber: {stats.avg_fiber:.1f}g\n"
        f"- Average sugar: {stats.avg_sugar:.1f}g\n"
        f"- Macro breakdown: {stats.protein_percent:.1f}% protein, "
        f"{stats.carbs_percent:.1f}% carbs, {stats.fat_percent:.1f}% fat\n\n"
        f"Recent meal details:\n{details or '- none'}\n\n"
        f"{_goal_guidelines(goal)}\n\n"
        "Give the overall trend (improving, declining, or maintaining), name "
        "specific good meals and meals that need improvement by date, and list "
        "actionable steps. Write casually, like talking to a friend."
    )


def _today_prompt(
    goal: Goal | GoalFields, meals: list[MealSnapshot], totals: DayTotals
) -> str:
    details = "\n".join(
        _meal_line(meal, meal.logged_at.strftime("%H:%M")) for meal in meals
    )
    return (
        "Analyze this user's meals for TODAY and advise on the rest of the day.\n\n"
        f"Today's meals so far ({totals.meal_count} meals):\n"
        f"- Total calories: {totals.calories:.0f}\n"
        f"- Total protein: {totals.protein:.1f}g\n"
        f"- Total carbs: {totals.carbs:.1f}g\n"
        f"- Total fat: {totals.fat:.1f}g\n"
        f"- Total fiber: {totals.fiber:.1f}g\n"
        f"- Total sugar: {totals.sugar:.1f}g\n\n"
        f"Today's meal details:\n{details or '- none'}\n\n"
        f"{_goal_guidelines(goal)}\n\n"
        "Say how they're doing so far, suggest 2-3 foods for the rest of today, "
        "what to avoid, and why. Keep it short and don't use markdown."
    )


def _snapshot_payload(meal: MealSnapshot) -> dict[str, object]:
    payload = asdict(meal)
    payload["logged_at"] = meal.logged_at.isoformat()
    return payload
