"""Structured meal analysis models returned by the nutrition model."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from meal_journal.domain.nutrition import Macros


class Confidence(str, Enum):
    """Provenance of a food item."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    USER_ADDED = "user_added"


class MacroValues(BaseModel):
    """Per-unit macro values stored alongside an edited food item."""

    calories: float = Field(default=0.0, ge=0.0)
    protein: float = Field(default=0.0, ge=0.0)
    carbs: float = Field(default=0.0, ge=0.0)
    fat: float = Field(default=0.0, ge=0.0)
    fiber: float = Field(default=0.0, ge=0.0)
    sugar: float = Field(default=0.0, ge=0.0)

    def to_macros(self) -> Macros:
        return Macros(**self.model_dump())


class FoodItem(BaseModel):
    """Single detected or user-added food item."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = "item"
    estimated_quantity: str | None = None
    calories: float = Field(default=0.0, ge=0.0)
    protein: float = Field(default=0.0, ge=0.0)
    carbs: float = Field(default=0.0, ge=0.0)
    fat: float = Field(default=0.0, ge=0.0)
    fiber: float = Field(default=0.0, ge=0.0)
    sugar: float = Field(default=0.0, ge=0.0)
    confidence: Confidence = Confidence.MEDIUM
    serving_multiplier: float | None = Field(
        default=None, alias="servingMultiplier", gt=0.0
    )
    unit_macros: MacroValues | None = Field(default=None, alias="unitMacros")

    @property
    def macros(self) -> Macros:
        """Macro fields as stored on the item."""
        return Macros(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
            fiber=self.fiber,
            sugar=self.sugar,
        )


class MealAnalysis(BaseModel):
    """Structured analysis of one meal."""

    model_config = ConfigDict(extra="ignore")

    foods: list[FoodItem] = Field(default_factory=list)
    total_calories: float = 0.0
    total_protein: float = 0.0
    total_carbs: float = 0.0
    total_fat: float = 0.0
    total_fiber: float = 0.0
    total_sugar: float = 0.0
    meal_type: str | None = None
    notes: str | None = None
    meal_title: str | None = None

    @property
    def totals(self) -> Macros:
        return Macros(
            calories=self.total_calories,
            protein=self.total_protein,
            carbs=self.total_carbs,
            fat=self.total_fat,
            fiber=self.total_fiber,
            sugar=self.total_sugar,
        )

    def with_totals(self, totals: Macros) -> "MealAnalysis":
        return self.model_copy(
            update={
                "total_calories": totals.calories,
                "total_protein": totals.protein,
                "total_carbs": totals.carbs,
                "total_fat": totals.fat,
                "total_fiber": totals.fiber,
                "total_sugar": totals.sugar,
            }
        )

    def with_food_totals(self) -> "MealAnalysis":
        """Replace the totals with the sum of the foods' macros as listed."""
        totals = Macros()
        for food in self.foods:
            totals = totals.plus(food.macros)
        return self.with_totals(totals)

    def to_payload(self) -> dict[str, object]:
        """Serialize with the wire field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class GoalInsight(BaseModel):
    """Model assessment of goal progress."""

    trend: str
    recommendation: str


class TodayRecommendation(BaseModel):
    """Model advice for the rest of the day."""

    recommendation: str


class GoalTemplate(BaseModel):
    """Goal fields generated from a free-text description."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    guidelines: str = ""
    evaluation_criteria: str = Field(default="", alias="evaluationCriteria")
    targets: dict[str, float | None] = Field(default_factory=dict)
