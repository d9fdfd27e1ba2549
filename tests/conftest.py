"""Shared test fixtures."""

import copy
from dataclasses import dataclass, field
from datetime import UTC, datetime

import pytest

from meal_journal.config import Settings
from meal_journal.containers import AppContainer
from meal_journal.domain.analysis import MealAnalysis
from meal_journal.domain.goals import Goal, GoalFields
from meal_journal.domain.meals import MealRecord
from meal_journal.domain.models import UserRecord
from meal_journal.services.analysis import AnalysisService, NutritionModelClient
from meal_journal.services.cache import InMemoryCacheStore, InsightCache
from meal_journal.services.drafts import DraftService, InMemoryDraftStore
from meal_journal.services.goals import GoalRepository, GoalService
from meal_journal.services.meals import ImageStorage, MealRepository, MealService
from meal_journal.services.users import UserRepository, UserService

USER_ID = "user-1"
PHONE = "+15550100"
AUTH_HEADERS = {"Authorization": f"Bearer {USER_ID}:{PHONE}"}

# Tiny but valid-looking JPEG signature.
JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-body"


def cookie_analysis_payload() -> dict[str, object]:
    """Model output for three cookies and a cup of milk."""
    return {
        "foods": [
            {
                "name": "chocolate chip cookies",
                "estimated_quantity": "3 cookies",
                "calories": 300,
                "protein": 3,
                "carbs": 45,
                "fat": 12,
                "fiber": 1.5,
                "sugar": 24,
                "confidence": "high",
            },
            {
                "name": "milk",
                "estimated_quantity": "1 cup",
                "calories": 120,
                "protein": 8,
                "carbs": 12,
                "fat": 5,
                "fiber": 0,
                "sugar": 12,
                "confidence": "medium",
            },
        ],
        "total_calories": 420,
        "total_protein": 11,
        "total_carbs": 57,
        "total_fat": 17,
        "total_fiber": 1.5,
        "total_sugar": 36,
        "meal_type": "snack",
        "meal_title": "Cookies and milk",
        "notes": "Classic afternoon snack",
    }


@dataclass
class FakeNutritionModelClient(NutritionModelClient):
    """Fake model client returning queued payloads per schema name."""

    queued: dict[str, list[dict[str, object]]] = field(default_factory=dict)
    calls: list[dict[str, object]] = field(default_factory=list)
    error: Exception | None = None

    def queue(self, schema_name: str, payload: dict[str, object]) -> None:
        self.queued.setdefault(schema_name, []).append(payload)

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
        self.calls.append(
            {
                "model": model,
                "max_output_tokens": max_output_tokens,
                "prompt": prompt,
                "schema_name": schema_name,
                "image_data_url": image_data_url,
            }
        )
        if self.error is not None:
            raise self.error
        pending = self.queued.get(schema_name)
        if pending:
            return pending.pop(0)
        return copy.deepcopy(_DEFAULT_PAYLOADS[schema_name])


_DEFAULT_PAYLOADS: dict[str, dict[str, object]] = {
    "nutrition_analysis": cookie_analysis_payload(),
    "goal_analysis": {
        "trend": "Protein is trending up.",
        "recommendation": "Keep adding eggs at breakfast.",
    },
    "today_recommendation": {"recommendation": "Have grilled fish for dinner."},
    "goal_template": {
        "name": "High protein",
        "description": "Eat more protein.",
        "guidelines": "Protein with every meal.",
        "evaluationCriteria": "At least 30g protein per meal.",
        "targets": {"calories": None, "protein": 150, "carbs": None, "fat": None},
    },
}


@dataclass
class InMemoryUserRepository(UserRepository):
    """In-memory user repository for tests."""

    users: dict[str, UserRecord] = field(default_factory=dict)

    def upsert_user(self, user_id: str, phone_number: str) -> None:
        existing = self.users.get(user_id)
        now = datetime.now(tz=UTC)
        self.users[user_id] = UserRecord(
            id=user_id,
            phone_number=phone_number,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )

    def get_user(self, user_id: str) -> UserRecord | None:
        return self.users.get(user_id)


@dataclass
class InMemoryMealRepository(MealRepository):
    """In-memory meal repository for tests."""

    meals: dict[int, MealRecord] = field(default_factory=dict)
    next_id: int = 1

    def create_meal(  # noqa: PLR0913
        self,
        user_id: str,
        image_path: str | None,
        analysis: dict[str, object],
        note: str | None,
        logged_at: datetime,
    ) -> MealRecord:
        meal = MealRecord(
            id=self.next_id,
            user_id=user_id,
            image_path=image_path,
            analysis=MealAnalysis.model_validate(analysis),
            note=note,
            created_at=logged_at,
        )
        self.meals[meal.id] = meal
        self.next_id += 1
        return meal

    def list_meals(
        self,
        user_id: str,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[MealRecord]:
        meals = [
            meal
            for meal in self.meals.values()
            if meal.user_id == user_id
            and (start is None or meal.created_at >= start)
            and (end is None or meal.created_at < end)
        ]
        return sorted(meals, key=lambda meal: meal.created_at, reverse=True)

    def get_meal(self, meal_id: int, user_id: str) -> MealRecord | None:
        meal = self.meals.get(meal_id)
        if meal is None or meal.user_id != user_id:
            return None
        return meal

    def delete_meal(self, meal_id: int, user_id: str) -> None:
        if self.get_meal(meal_id, user_id) is not None:
            del self.meals[meal_id]


@dataclass
class InMemoryImageStorage(ImageStorage):
    """In-memory photo storage for tests."""

    files: dict[str, bytes] = field(default_factory=dict)

    def save(self, filename: str, content: bytes, content_type: str) -> None:
        self.files[filename] = content

    def load(self, filename: str) -> bytes | None:
        return self.files.get(filename)

    def delete(self, filename: str) -> None:
        self.files.pop(filename, None)


@dataclass
class InMemoryGoalRepository(GoalRepository):
    """In-memory goal repository for tests."""

    goals: dict[int, Goal] = field(default_factory=dict)
    next_id: int = 1

    def create_goal(self, user_id: str, fields: GoalFields) -> Goal:
        goal = _goal_from_fields(self.next_id, user_id, fields)
        self.goals[goal.id] = goal
        self.next_id += 1
        return goal

    def list_goals(self, user_id: str) -> list[Goal]:
        return [goal for goal in self.goals.values() if goal.user_id == user_id]

    def get_goal(self, goal_id: int, user_id: str) -> Goal | None:
        goal = self.goals.get(goal_id)
        if goal is None or goal.user_id != user_id:
            return None
        return goal

    def update_goal(self, goal_id: int, user_id: str, fields: GoalFields) -> Goal | None:
        current = self.get_goal(goal_id, user_id)
        if current is None:
            return None
        goal = _goal_from_fields(goal_id, user_id, fields, current.created_at)
        self.goals[goal_id] = goal
        return goal

    def delete_goal(self, goal_id: int, user_id: str) -> bool:
        if self.get_goal(goal_id, user_id) is None:
            return False
        del self.goals[goal_id]
        return True


def _goal_from_fields(
    goal_id: int,
    user_id: str,
    fields: GoalFields,
    created_at: datetime | None = None,
) -> Goal:
    return Goal(
        id=goal_id,
        user_id=user_id,
        name=fields.name,
        description=fields.description,
        guidelines=fields.guidelines,
        evaluation_criteria=fields.evaluation_criteria,
        targets=fields.targets,
        created_at=created_at or datetime.now(tz=UTC),
    )


def make_meal(  # noqa: PLR0913
    meal_id: int,
    created_at: datetime,
    calories: float,
    protein: float = 0.0,
    carbs: float = 0.0,
    fat: float = 0.0,
    user_id: str = USER_ID,
    note: str | None = None,
) -> MealRecord:
    """Build a stored meal with the given totals."""
    analysis = MealAnalysis.model_validate(
        {
            "foods": [{"name": f"meal {meal_id}", "calories": calories}],
            "total_calories": calories,
            "total_protein": protein,
            "total_carbs": carbs,
            "total_fat": fat,
        }
    )
    return MealRecord(
        id=meal_id,
        user_id=user_id,
        image_path=None,
        analysis=analysis,
        note=note,
        created_at=created_at,
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="test.service.key",
        openai_api_key="openai-key",
        environment="test",
    )


@pytest.fixture
def model_client() -> FakeNutritionModelClient:
    return FakeNutritionModelClient()


@pytest.fixture
def user_repository() -> InMemoryUserRepository:
    return InMemoryUserRepository()


@pytest.fixture
def meal_repository() -> InMemoryMealRepository:
    return InMemoryMealRepository()


@pytest.fixture
def image_storage() -> InMemoryImageStorage:
    return InMemoryImageStorage()


@pytest.fixture
def goal_repository() -> InMemoryGoalRepository:
    return InMemoryGoalRepository()


@pytest.fixture
def analysis_service(
    settings: Settings, model_client: FakeNutritionModelClient
) -> AnalysisService:
    return AnalysisService(
        client=model_client,
        model=settings.openai_model,
        store=settings.openai_store,
    )


@pytest.fixture
def meal_service(
    meal_repository: InMemoryMealRepository, image_storage: InMemoryImageStorage
) -> MealService:
    return MealService(repository=meal_repository, image_storage=image_storage)


@pytest.fixture
def draft_service(
    analysis_service: AnalysisService, meal_service: MealService
) -> DraftService:
    return DraftService(
        analysis_service=analysis_service,
        meal_service=meal_service,
        store=InMemoryDraftStore(),
    )


@pytest.fixture
def goal_service(
    settings: Settings,
    goal_repository: InMemoryGoalRepository,
    meal_service: MealService,
    model_client: FakeNutritionModelClient,
) -> GoalService:
    return GoalService(
        repository=goal_repository,
        meal_service=meal_service,
        client=model_client,
        cache=InsightCache(InMemoryCacheStore()),
        model=settings.openai_model,
        store=settings.openai_store,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    user_repository: InMemoryUserRepository,
    analysis_service: AnalysisService,
    meal_service: MealService,
    draft_service: DraftService,
    goal_service: GoalService,
) -> AppContainer:
    async def close_resources() -> None:
        return None

    return AppContainer(
        settings=settings,
        user_service=UserService(user_repository),
        analysis_service=analysis_service,
        meal_service=meal_service,
        draft_service=draft_service,
        goal_service=goal_service,
        close_resources=close_resources,
    )
