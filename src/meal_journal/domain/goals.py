"""Domain models for dietary goals."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class GoalTargets:
    """Optional daily numeric targets."""

    calories: float | None = None
    protein: float | None = None
    carbs: float | None = None
    fat: float | None = None

    def as_dict(self) -> dict[str, float | None]:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


@dataclass(frozen=True)
class GoalFields:
    """User-editable goal fields."""

    name: str
    description: str = ""
    guidelines: str = ""
    evaluation_criteria: str = ""
    targets: GoalTargets = field(default_factory=GoalTargets)


@dataclass(frozen=True)
class Goal:
    """Named set of dietary guidelines owned by a user."""

    id: int
    user_id: str
    name: str
    description: str
    guidelines: str
    evaluation_criteria: str
    targets: GoalTargets = field(default_factory=GoalTargets)
    created_at: datetime | None = None


@dataclass(frozen=True)
class MealSnapshot:
    """Meal totals used as input to goal scoring."""

    logged_at: datetime
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float
    sugar: float
    foods: list[str]
    note: str


@dataclass(frozen=True)
class ProgressStats:
    """Aggregates over the meals considered for goal progress."""

    meal_count: int
    avg_calories: float
    avg_protein: float
    avg_carbs: float
    avg_fat: float
    avg_fiber: float
    avg_sugar: float
    protein_percent: float
    carbs_percent: float
    fat_percent: float


@dataclass(frozen=True)
class DayTotals:
    """Totals over today's meals."""

    meal_count: int
    calories: float
    protein: float
    carbs: float
    fat: float
    fiber: float
    sugar: float


KETO_GUIDELINES = """Keto Diet Guidelines:
- Target macros: 70-80% fat, 20-25% protein, 5-10% carbs
- Daily carb limit: 20-50g net carbs
- Focus on high-fat foods, moderate protein, very low carbs"""

ANTI_INFLAMMATORY_GUIDELINES = """Anti-Inflammatory Diet Guidelines:
- Focus on whole, unprocessed foods
- Include: fatty fish, berries, leafy greens, nuts, olive oil
- Avoid: processed meats, refined carbs, added sugars, trans fats
- Limit: alcohol, fried foods, excessive red meat
- Emphasize: omega-3 rich foods, antioxidants, fiber"""

# Built-in goals every user can be scored against without creating a goal row.
PRESET_GOALS: dict[str, GoalFields] = {
    "keto": GoalFields(
        name="Keto",
        description="High-fat, moderate-protein, very low-carb eating.",
        guidelines=KETO_GUIDELINES,
        evaluation_criteria=(
            "Good keto choices keep net carbs low and get most calories from fat."
        ),
    ),
    "antiInflammatory": GoalFields(
        name="Anti-inflammatory",
        description="Whole foods that help reduce inflammation.",
        guidelines=ANTI_INFLAMMATORY_GUIDELINES,
        evaluation_criteria=(
            "Good choices are whole, unprocessed foods rich in omega-3s, "
            "antioxidants and fiber, with little added sugar."
        ),
    ),
}
