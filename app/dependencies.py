"""FastAPI dependencies."""

from collections.abc import Awaitable, Callable
from typing import Annotated
from uuid import UUID

import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.core.exceptions import ForbiddenException, RateLimitException, UnauthorizedException
from app.core.rate_limit import RateLimitStore
from app.core.roles import Identity, UserRole
from app.core.security import decode_access_token
from app.database import get_db

logger = structlog.get_logger(__name__)

# Missing credentials are reported by get_current_identity, not by HTTPBearer
security = HTTPBearer(auto_error=False)


async def get_current_identity(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
) -> Identity:
    """
    Resolve the caller from a bearer token.

    The token alone is trusted: the subject and role it carries are not
    re-checked against the database.

    Args:
        credentials: Bearer token credentials, if any

    Returns:
        Caller's user ID and role

    Raises:
        UnauthorizedException: If the token is missing, invalid or expired
    """
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Missing bearer token")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise UnauthorizedException("Invalid or expired token")

    subject = payload.get("sub")
    role = payload.get("role")
    if not isinstance(subject, str) or not isinstance(role, str):
        raise UnauthorizedException("Invalid or expired token")

    try:
        return Identity(id=UUID(subject), role=UserRole(role))
    except ValueError:
        raise UnauthorizedException("Invalid or expired token") from None


def require_capability(
    capability: str, message: str
) -> Callable[[Identity], Awaitable[Identity]]:
    """
    Build a dependency that admits callers whose role grants a capability.

    Args:
        capability: Name of a ``UserRole`` capability property
        message: Error message for callers without it

    Returns:
        Dependency yielding the caller's identity
    """

    async def dependency(
        identity: Annotated[Identity, Depends(get_current_identity)],
    ) -> Identity:
        if not getattr(identity.role, capability):
            raise ForbiddenException(message)
        return identity

    return dependency


require_provider = require_capability("can_manage_profile", "Providers only")
require_admin = require_capability("can_moderate", "Admin only")


def get_rate_limiter(request: Request) -> RateLimitStore:
    """Counter store owned by the running application."""
    return request.app.state.rate_limiter


def rate_limit(scope: str, limit: int, window: int) -> Callable[..., Awaitable[None]]:
    """
    Build a dependency enforcing a fixed-window limit per client IP.

    Args:
        scope: Name separating this limit's counters from others
        limit: Requests allowed per window
        window: Window length in seconds

    Returns:
        Dependency raising RateLimitException once the limit is spent
    """

    async def dependency(
        request: Request,
        store: Annotated[RateLimitStore, Depends(get_rate_limiter)],
    ) -> None:
        client = request.client.host if request.client else "unknown"
        result = await store.hit(f"{scope}:{client}", limit, window)
        if not result.allowed:
            logger.warning("rate_limit_exceeded", scope=scope, client=client)
            raise RateLimitException(
                "Too many requests, please try again later",
                retry_after=result.retry_after,
            )

    return dependency


login_rate_limit = rate_limit(
    "login", settings.login_rate_limit, settings.login_rate_window_seconds
)
register_rate_limit = rate_limit(
    "register", settings.register_rate_limit, settings.register_rate_window_seconds
)


# Type aliases for dependency injection
DatabaseSession = Annotated[AsyncSession, Depends(get_db)]
CurrentIdentity = Annotated[Identity, Depends(get_current_identity)]
ProviderIdentity = Annotated[Identity, Depends(require_provider)]
AdminIdentity = Annotated[Identity, Depends(require_admin)]
