"""Rate limiting utilities for API endpoints."""

from slowapi import Limiter
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from fastapi import Request
from fastapi.responses import JSONResponse
from asap_agent.config import RATE_LIMIT_ENABLED, CHAT_RATE_LIMIT
from asap_agent.logger import logger


# Initialize rate limiter
limiter = Limiter(
    key_func=get_remote_address,
    enabled=RATE_LIMIT_ENABLED,
    storage_uri="memory://",  # Use in-memory storage (for Redis: "redis://localhost:6379")
)


async def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """
    Custom handler for rate limit exceeded errors.
    Returns a user-friendly message that the chat window can display directly.
    """
    logger.warning(
        f"Rate limit exceeded for {get_remote_address(request)} on {request.url.path}"
    )

    # exc.detail is e.g. "20 per 1 minute"
    retry_info = exc.detail if exc.detail else "a short while"

    return JSONResponse(
        status_code=429,
        content={
            "detail": f"Too many messages ({retry_info}). Please wait a moment before asking again.",
        },
    )


def chat_rate_limit():
    """
    Rate limit for the chat endpoint.

    Every cache miss that no canned reply covers costs one upstream call, so
    keep CHAT_RATE_LIMIT in .env in line with the provider plan:
    - "20/minute" = default
    - "5/minute"  = free-tier keys

    Note: requests answered from the cache still count against the limit.
    """
    return limiter.limit(CHAT_RATE_LIMIT)
