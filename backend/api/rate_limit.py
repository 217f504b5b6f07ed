"""Per-client request ceiling using slowapi."""

import logging

from fastapi import Request
from fastapi.responses import JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded

from api.middleware import client_ip
from config import settings

logger = logging.getLogger(__name__)

limiter = Limiter(
    key_func=client_ip,
    default_limits=[settings.rate_limit],
    storage_uri=settings.rate_limit_storage_uri,
    strategy="fixed-window",
)


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded):
    """Return the JSON error body used by every other endpoint.

    Synchronous: SlowAPIMiddleware substitutes its own handler for a
    coroutine one.
    """
    logger.warning(f"[RateLimit] Exceeded for {client_ip(request)}: {exc.detail}")
    return JSONResponse(
        status_code=429,
        content={"success": False, "message": "Too many requests, please try again later"},
    )
