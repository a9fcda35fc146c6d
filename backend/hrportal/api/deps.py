import logging
from typing import AsyncGenerator, Callable, Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from hrportal.core.config import settings
from hrportal.core.exceptions import AuthenticationError, AuthorizationError
from hrportal.core.logging_config import bind_principal
from hrportal.core.security import decode_access_token
from hrportal.services.access import Principal
from hrportal.services.agents import AgentCoordinator
from hrportal.services.government import GovernmentGateways

logger = logging.getLogger("hrportal.deps")

# Allow graceful handling when Authorization header is absent so we can fall back to cookies
oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.API_PREFIX}/auth/login", auto_error=False)


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """One session per request from the factory the lifespan put on app.state."""
    async with request.app.state.session_factory() as session:
        yield session


def get_gateways(request: Request) -> GovernmentGateways:
    return request.app.state.gateways


def get_agents(request: Request) -> AgentCoordinator:
    return request.app.state.agents


def _extract_token(request: Request, bearer: Optional[str]) -> Optional[str]:
    """The Authorization header wins; the ``auth-token`` cookie is the fallback."""
    if bearer:
        return bearer
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    if token and token.lower().startswith("bearer "):
        parts = token.split(" ", 1)
        token = parts[1].strip() or None
    return token


async def get_optional_principal(
    request: Request,
    token: Optional[str] = Depends(oauth2_scheme),
) -> Optional[Principal]:
    """
    Resolve the caller from a cookie or bearer token.

    Returns None for anonymous requests and for tokens that fail verification.
    """
    token = _extract_token(request, token)
    if not token:
        return None

    claims = decode_access_token(token)
    if claims is None:
        logger.debug("Rejected invalid or expired token")
        return None

    principal = Principal.from_claims(claims)
    if principal is None:
        logger.warning("Token carried malformed claims")
    else:
        bind_principal(principal.id, principal.company_id)
    return principal


async def get_current_principal(
    principal: Optional[Principal] = Depends(get_optional_principal),
) -> Principal:
    """
    Get the authenticated caller.

    Raises:
        AuthenticationError: no token, or the token is invalid or expired
    """
    if principal is None:
        raise AuthenticationError()
    return principal


def require_roles(*roles: str) -> Callable:
    """
    Dependency factory gating a route on the caller's role.

    Role mismatches answer exactly like missing credentials.
    """
    allowed = frozenset(roles)

    async def role_checker(principal: Principal = Depends(get_current_principal)) -> Principal:
        if not principal.has_role(allowed):
            logger.info(f"User {principal.id} with role {principal.role} denied (requires {sorted(allowed)})")
            raise AuthorizationError()
        return principal

    return role_checker
