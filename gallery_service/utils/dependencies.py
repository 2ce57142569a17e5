"""
FastAPI Dependencies
Service access and authentication dependencies
"""

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from typing import Optional, Annotated
import logging

from gallery_service.models.user import UserRole
from gallery_service.services.container import ServiceContainer
from gallery_service.utils.exceptions import ForbiddenError, UnauthorizedError

logger = logging.getLogger(__name__)

# Missing credentials are reported through our own error envelope
security = HTTPBearer(auto_error=False)


def get_services(request: Request) -> ServiceContainer:
    """Services built by the application lifespan"""
    return request.app.state.services


Services = Annotated[ServiceContainer, Depends(get_services)]


async def get_current_user(
    services: Services,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> dict:
    """
    Get current authenticated user from the bearer access token

    Raises:
        UnauthorizedError: Missing, invalid or expired token, or inactive user
    """
    if credentials is None:
        raise UnauthorizedError("Authentication required")
    return await services.auth.authenticate(credentials.credentials)


async def get_optional_user(
    services: Services,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security)
) -> Optional[dict]:
    """
    Get optional user (for endpoints that work with or without auth)

    An invalid token is treated as anonymous.
    """
    if credentials is None:
        return None
    try:
        return await services.auth.authenticate(credentials.credentials)
    except UnauthorizedError as e:
        logger.debug(f"Optional authentication failed: {e.message}")
        return None


async def require_admin(current_user: dict = Depends(get_current_user)) -> dict:
    if current_user.get("role") != UserRole.ADMIN.value:
        raise ForbiddenError("Admin access required")
    return current_user


# Type aliases for cleaner dependency injection
CurrentUser = Annotated[dict, Depends(get_current_user)]
OptionalUser = Annotated[Optional[dict], Depends(get_optional_user)]
AdminUser = Annotated[dict, Depends(require_admin)]
