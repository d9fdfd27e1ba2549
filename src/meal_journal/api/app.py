"""FastAPI application factory."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from meal_journal.api.drafts import router as drafts_router
from meal_journal.api.errors import ApiError, handle_api_error, handle_validation_error
from meal_journal.api.goals import router as goals_router
from meal_journal.api.meals import router as meals_router
from meal_journal.app_logging import configure_logging
from meal_journal.config import parse_cors_origins
from meal_journal.containers import AppContainer


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.action_log_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.add_middleware(
        CORSMiddleware,
        allow_origins=parse_cors_origins(container.settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ApiError, handle_api_error)
    app.add_exception_handler(RequestValidationError, handle_validation_error)

    app.include_router(meals_router)
    app.include_router(drafts_router)
    app.include_router(goals_router)

    @app.get("/api/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "OK", "message": "Meal journal API is running"}

    return app
