"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from meal_journal.adapters.openai_nutrition_client import OpenAINutritionClient
from meal_journal.adapters.supabase_cache_store import SupabaseCacheStore
from meal_journal.adapters.supabase_draft_repository import SupabaseDraftRepository
from meal_journal.adapters.supabase_goal_repository import SupabaseGoalRepository
from meal_journal.adapters.supabase_image_storage import SupabaseImageStorage
from meal_journal.adapters.supabase_meal_repository import SupabaseMealRepository
from meal_journal.adapters.supabase_user_repository import SupabaseUserRepository
from meal_journal.config import Settings
from meal_journal.services.analysis import AnalysisService
from meal_journal.services.cache import InsightCache
from meal_journal.services.drafts import DraftService
from meal_journal.services.goals import GoalService
from meal_journal.services.meals import MealService
from meal_journal.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    user_service: UserService
    analysis_service: AnalysisService
    meal_service: MealService
    draft_service: DraftService
    goal_service: GoalService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    user_service = UserService(SupabaseUserRepository(supabase_client))
    meal_service = MealService(
        repository=SupabaseMealRepository(supabase_client),
        image_storage=SupabaseImageStorage(
            supabase_client, resolved_settings.image_bucket
        ),
    )
    openai_client = OpenAINutritionClient.create(resolved_settings.openai_api_key)
    analysis_service = AnalysisService(
        client=openai_client,
        model=resolved_settings.openai_model,
        store=resolved_settings.openai_store,
        max_output_tokens=resolved_settings.openai_max_output_tokens,
    )
    draft_service = DraftService(
        analysis_service=analysis_service,
        meal_service=meal_service,
        store=SupabaseDraftRepository(supabase_client),
        ttl_seconds=resolved_settings.draft_ttl_seconds,
    )
    goal_service = GoalService(
        repository=SupabaseGoalRepository(supabase_client),
        meal_service=meal_service,
        client=openai_client,
        cache=InsightCache(
            SupabaseCacheStore(supabase_client),
            ttl_seconds=resolved_settings.insight_ttl_seconds,
        ),
        model=resolved_settings.openai_model,
        store=resolved_settings.openai_store,
    )

    async def close_resources() -> None:
        await openai_client.client.close()

    return AppContainer(
        settings=resolved_settings,
        user_service=user_service,
        analysis_service=analysis_service,
        meal_service=meal_service,
        draft_service=draft_service,
        goal_service=goal_service,
        close_resources=close_resources,
    )
