"""Meal analysis via the nutrition model."""

import base64
import logging
from dataclasses import dataclass
from typing import Protocol

from meal_journal.domain.analysis import MealAnalysis
from meal_journal.services.serving import normalize_serving_sizes

_logger = logging.getLogger(__name__)

_MACRO_DESCRIPTIONS = {
    "calories": "Calories in the food item",
    "protein": "Protein content in grams",
    "carbs": "Carbohydrate content in grams",
    "fat": "Fat content in grams",
    "fiber": "Fiber content in grams",
    "sugar": "Sugar content in grams",
}

NUTRITION_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "foods": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "name": {"type": "string"},
                    "estimated_quantity": {
                        "type": "string",
                        "description": "Estimated portion size, e.g. '3 cookies'",
                    },
                    **{
                        name: {"type": "number", "description": description}
                        for name, description in _MACRO_DESCRIPTIONS.items()
                    },
                    "confidence": {"type": "string", "enum": ["high", "medium", "low"]},
                },
                "required": [
                    "name",
                    "estimated_quantity",
                    *_MACRO_DESCRIPTIONS,
                    "confidence",
                ],
                "additionalProperties": False,
            },
        },
        **{f"total_{name}": {"type": "number"} for name in _MACRO_DESCRIPTIONS},
        "meal_type": {
            "type": "string",
            "enum": ["breakfast", "lunch", "dinner", "snack"],
        },
        "meal_title": {"type": "string", "description": "Short title for the meal"},
        "notes": {"type": "string", "description": "Observations about the meal"},
    },
    "required": [
        "foods",
        *(f"total_{name}" for name in _MACRO_DESCRIPTIONS),
        "meal_type",
        "meal_title",
        "notes",
    ],
    "additionalProperties": False,
}

_SYSTEM_PROMPT = (
    "You are a nutrition expert. Analyze meals and provide detailed nutritional "
    "information in a structured format."
)
_ACCURACY_HINT = (
    "Be as accurate as possible with portion sizes and nutritional values. "
    "If you're unsure about specific values, provide reasonable estimates and "
    "mark confidence as 'low'."
)


class NutritionModelClient(Protocol):
    """Interface for structured-output calls to the language model."""

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        store: bool,
        max_output_tokens: int,
        system_prompt: str,
        prompt: str,
        schema_name: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return the structured JSON produced by the model."""


@dataclass
class AnalysisService:
    """Builds analysis prompts and validates the normalized result."""

    client: NutritionModelClient
    model: str
    store: bool
    max_output_tokens: int = 1000

    async def analyze_image(
        self,
        image_bytes: bytes,
        ingredient_notes: str | None = None,
        user_description: str | None = None,
    ) -> MealAnalysis:
        """Analyze a meal photo, optionally guided by the user's words."""
        if user_description and user_description.strip():
            prompt = (
                "Analyze this food image with the following user description: "
                f"{user_description.strip()}\n\n"
                "Use this description to identify ingredients and estimate "
                f"portion sizes. {_ACCURACY_HINT}"
            )
        elif ingredient_notes and ingredient_notes.strip():
            prompt = _reanalysis_prompt("food image", ingredient_notes)
        else:
            prompt = (
                "Analyze this food image and provide detailed nutritional "
                f"information. {_ACCURACY_HINT}"
            )
        raw = await self.client.generate(
            model=self.model,
            store=self.store,
            max_output_tokens=self.max_output_tokens,
            system_prompt=_SYSTEM_PROMPT,
            prompt=prompt,
            schema_name="nutrition_analysis",
            schema=NUTRITION_SCHEMA,
            image_data_url=_to_data_url(image_bytes),
        )
        return _to_analysis(raw)

    async def analyze_text(
        self, description: str, notes: str | None = None
    ) -> MealAnalysis:
        """Analyze a free-text meal description."""
        prompt = (
            "Analyze this meal description and provide detailed nutritional "
            f"information: {description.strip()}\n\n{_ACCURACY_HINT} "
            "Consider typical serving sizes for the foods mentioned."
        )
        if notes and notes.strip():
            prompt += "\n\n" + _reanalysis_prompt("meal description", notes)
        raw = await self.client.generate(
            model=self.model,
            store=self.store,
            max_output_tokens=self.max_output_tokens,
            system_prompt=_SYSTEM_PROMPT,
            prompt=prompt,
            schema_name="nutrition_analysis",
            schema=NUTRITION_SCHEMA,
        )
        return _to_analysis(raw)


def _reanalysis_prompt(subject: str, notes: str) -> str:
    return (
        f"Please reanalyze this {subject} with the following additional "
        f"information: {notes.strip()}\n\n"
        "If the user mentions specific ingredients, include them. If they "
        "correct the previous analysis, apply those corrections. "
        f"{_ACCURACY_HINT}"
    )


def _to_analysis(raw: dict[str, object]) -> MealAnalysis:
    normalized = normalize_serving_sizes(raw)
    analysis = MealAnalysis.model_validate(normalized)
    _logger.info(
        "Meal analysis: foods=%s calories=%s",
        len(analysis.foods),
        analysis.total_calories,
    )
    return analysis


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    if image_bytes[:6] in {b"GIF87a", b"GIF89a"}:
        return "image/gif"
    return "image/jpeg"
