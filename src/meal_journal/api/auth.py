"""Bearer-token identity for API requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from fastapi import Header, Request, status

from meal_journal.api.errors import ApiError

if TYPE_CHECKING:
    from meal_journal.containers import AppContainer

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """The user a request acts for."""

    user_id: str
    phone_number: str


def parse_bearer_token(authorization: str | None) -> Identity | None:
    """Parse "Bearer <userId>:<phoneNumber>"."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer":
        return None
    user_id, _, phone_number = token.strip().partition(":")
    if not user_id or not phone_number:
        return None
    return Identity(user_id=user_id, phone_number=phone_number)


async def require_identity(
    request: Request,
    authorization: str | None = Header(default=None),
) -> Identity:
    """Resolve the caller and record the user row."""
    if not authorization:
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED, "No authorization token provided"
        )
    identity = parse_bearer_token(authorization)
    if identity is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Invalid token format")
    request.state.phone_number = identity.phone_number
    container: AppContainer = request.app.state.container
    try:
        container.user_service.ensure_user(identity.user_id, identity.phone_number)
    except Exception as exc:
        _logger.exception("Failed to record user %s", identity.user_id)
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED, "Authentication failed"
        ) from exc
    return identity
