"""Request context and body-size middleware."""

import logging
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from storage.errors import FileTooLarge

logger = logging.getLogger(__name__)

# Headroom for multipart boundaries and part headers around the file body
MULTIPART_OVERHEAD_BYTES = 64 * 1024


def client_ip(request: Request) -> str:
    """First X-Forwarded-For hop, else the socket peer."""
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RequestContextMiddleware(BaseHTTPMiddleware):
    """Stamp each request with the client IP used in log lines."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request.state.client_ip = client_ip(request)
        return await call_next(request)


class RequestSizeLimitMiddleware(BaseHTTPMiddleware):
    """Reject a declared Content-Length beyond the upload ceiling before reading the body.

    Bodies without a Content-Length are still capped while streaming by
    the multipart reader.
    """

    def __init__(self, app: ASGIApp, max_size: int):
        super().__init__(app)
        self.limit = max_size
        self.max_size = max_size + MULTIPART_OVERHEAD_BYTES

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        content_length = request.headers.get("content-length")

        if content_length:
            try:
                length = int(content_length)
            except ValueError:
                return JSONResponse(
                    status_code=400,
                    content={"success": False, "message": "Invalid Content-Length header"},
                )
            if length > self.max_size:
                logger.warning(
                    f"Request body too large: {length} bytes (max: {self.max_size}) "
                    f"| IP: {client_ip(request)} | {request.url.path}"
                )
                error = FileTooLarge.for_limit(self.limit)
                return JSONResponse(
                    status_code=error.status_code,
                    content={"success": False, "message": error.message, "code": error.code},
                )

        return await call_next(request)
