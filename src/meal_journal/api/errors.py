"""Error responses shared by the API routers."""

import logging

from fastapi import Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from meal_journal.app_logging import log_action
from meal_journal.config import Settings

_logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An error returned to the client as {"error", "details"}."""

    def __init__(
        self, status_code: int, error: str, details: object | None = None
    ) -> None:
        super().__init__(error)
        self.status_code = status_code
        self.error = error
        self.details = details


def service_failure(settings: Settings, exc: Exception, error: str) -> ApiError:
    """Log a failed external call and build a 500 response for it.

    Exception text is only returned in the local environment.
    """
    _logger.exception(error)
    details = None
    if settings.environment == "local":
        details = f"{type(exc).__name__}: {exc}".strip()
    return ApiError(500, error, details)


async def handle_api_error(request: Request, exc: ApiError) -> JSONResponse:
    body: dict[str, object] = {"error": exc.error}
    if exc.details is not None:
        body["details"] = exc.details
    log_action(
        getattr(request.state, "phone_number", None),
        f"API error at {request.method} {request.url.path}: {exc.error}",
        exc.status_code,
    )
    return JSONResponse(status_code=exc.status_code, content=body)


async def handle_validation_error(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report malformed request bodies as 400."""
    return await handle_api_error(
        request,
        ApiError(400, "Invalid request", jsonable_encoder(exc.errors())),
    )
