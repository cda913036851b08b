"""HTTP rate limiting for the API.

Throttles dashboard clients per IP with SlowAPI. The daily budget of
outbound AI calls is a separate, process-wide limit (DailyRequestLimiter).
"""

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from core.config import settings

DEFAULT_RETRY_AFTER_SECONDS = 60


def get_client_identifier(request: Request) -> str:
    """First hop of X-Forwarded-For when behind the dashboard's proxy, else the peer address."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_client_identifier,
    default_limits=["200/minute"],
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    strategy="fixed-window",
)


class RateLimits:
    """Per-endpoint limits."""

    # Each call may spend one unit of the daily AI budget
    AI_ANALYTICS = "20/minute"
    AI_STATUS = "60/minute"
    HEALTH = "1000/minute"


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    """JSON 429 with a Retry-After header."""
    retry_after = getattr(exc, "retry_after", None) or DEFAULT_RETRY_AFTER_SECONDS
    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many requests to {request.url.path}: {exc.detail}",
            "retry_after": retry_after,
        },
        headers={"Retry-After": str(retry_after)},
    )
