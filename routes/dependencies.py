"""
Request actor dependencies.

Sign-in happens upstream: the gateway forwards the signed-in user's id and
role in X-User-Id / X-User-Role, and, when API_KEY is configured, proves
itself with X-API-Key.
"""

from typing import Optional
import secrets
import structlog

from fastapi import Depends, Header
from pydantic import ValidationError as PydanticValidationError

from config import get_settings
from models.actor import Actor, Role
from exceptions import AuthenticationError, PermissionDeniedError

logger = structlog.get_logger(__name__)


async def get_current_actor(
    x_user_id: Optional[str] = Header(None),
    x_user_role: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None),
) -> Actor:
    """
    Resolve the calling user from gateway headers.

    Raises:
        AuthenticationError: Missing/invalid headers or wrong API key
    """
    expected_key = get_settings().api_key
    if expected_key and not secrets.compare_digest(x_api_key or "", expected_key):
        logger.warning("api_key_rejected")
        raise AuthenticationError("Invalid API key")

    if not x_user_id or not x_user_role:
        raise AuthenticationError()

    try:
        return Actor(id=x_user_id, role=x_user_role)
    except PydanticValidationError:
        logger.warning("unknown_role", role=x_user_role)
        raise AuthenticationError(f"Unknown role: {x_user_role}")


def require_roles(*roles: Role):
    """
    Dependency factory for role-based access.

    Usage:
        actor: Actor = Depends(require_roles(Role.ADMIN))
    """
    allowed = [role.value for role in roles]

    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in roles:
            logger.warning(
                "permission_denied",
                actor=actor.id,
                role=actor.role.value,
                allowed=allowed
            )
            raise PermissionDeniedError(actor.role.value, allowed)
        return actor

    return role_checker
