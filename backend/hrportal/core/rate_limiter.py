"""
Rate limiting for the HR Portal API.
Uses SlowAPI with in-memory storage; login is the only limited route.
"""

import logging

from fastapi import Request
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from hrportal.core.config import settings

logger = logging.getLogger("hrportal.rate_limiter")


def get_real_client_ip(request: Request) -> str:
    """
    Get the real client IP, accounting for reverse proxies.
    Checks X-Forwarded-For header first, then falls back to direct IP.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        # First IP in the chain is the original client
        return forwarded_for.split(",")[0].strip()

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_real_client_ip,
    enabled=settings.RATE_LIMIT_ENABLED,
    strategy="fixed-window",
    headers_enabled=False,
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """
    Handler for rate limit exceeded errors.
    Returns the standard error envelope with retry information.
    """
    logger.warning(
        f"Rate limit exceeded for {get_real_client_ip(request)} "
        f"on {request.method} {request.url.path}"
    )
    retry_after = getattr(exc, "retry_after", 60)
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests",
            "detail": f"Please retry after {retry_after} seconds.",
        },
        headers={"Retry-After": str(retry_after)},
    )


class RateLimits:
    """Named limits applied with ``@limiter.limit``."""

    AUTH_LOGIN = settings.LOGIN_RATE_LIMIT
