"""Request bodies accepted by the API."""

from pydantic import BaseModel, ConfigDict, Field

from meal_journal.domain.goals import GoalFields, GoalTargets
from meal_journal.domain.nutrition import Macros


class TextAnalysisRequest(BaseModel):
    description: str = ""
    note: str | None = None
    analysis: str | dict[str, object] | None = None


class DraftTextRequest(BaseModel):
    description: str = ""


class ServingUpdateRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    serving_multiplier: float = Field(alias="servingMultiplier", allow_inf_nan=False)


class NewIngredientRequest(BaseModel):
    """An ingredient typed in by the user with its macros."""

    name: str = Field(min_length=1)
    estimated_quantity: str | None = None
    calories: float = Field(default=0.0, ge=0.0)
    protein: float = Field(default=0.0, ge=0.0)
    carbs: float = Field(default=0.0, ge=0.0)
    fat: float = Field(default=0.0, ge=0.0)
    fiber: float = Field(default=0.0, ge=0.0)
    sugar: float = Field(default=0.0, ge=0.0)

    def macros(self) -> Macros:
        return Macros(
            calories=self.calories,
            protein=self.protein,
            carbs=self.carbs,
            fat=self.fat,
            fiber=self.fiber,
            sugar=self.sugar,
        )


class IngredientEditRequest(BaseModel):
    text: str = Field(min_length=1)


class GoalTargetsBody(BaseModel):
    calories: float | None = Field(default=None, ge=0.0)
    protein: float | None = Field(default=None, ge=0.0)
    carbs: float | None = Field(default=None, ge=0.0)
    fat: float | None = Field(default=None, ge=0.0)


class GoalRequest(BaseModel):
    """Goal fields as sent by the client."""

    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(min_length=1)
    description: str = ""
    guidelines: str = ""
    evaluation_criteria: str = Field(default="", alias="evaluationCriteria")
    targets: GoalTargetsBody = Field(default_factory=GoalTargetsBody)

    def to_fields(self) -> GoalFields:
        return GoalFields(
            name=self.name.strip(),
            description=self.description,
            guidelines=self.guidelines,
            evaluation_criteria=self.evaluation_criteria,
            targets=GoalTargets(**self.targets.model_dump()),
        )


class GenerateGoalRequest(BaseModel):
    description: str = ""


class ActionLogRequest(BaseModel):
    phone: str | None = None
    action: str
    status: int | str | None = None
