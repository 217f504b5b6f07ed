"""Shared-secret check for listing and deletion endpoints.

The secret may be sent as the ``apikey`` query parameter or the
``X-API-Key`` header. With no secret configured the gate fails closed.
"""

import logging
import secrets

from fastapi import Depends, HTTPException, Request, status

from config import settings
from storage.errors import AccessNotConfigured

logger = logging.getLogger(__name__)

API_KEY_QUERY_PARAM = "apikey"
API_KEY_HEADER = "x-api-key"


class AccessGate:
    def __init__(self, secret: str | None):
        self._secret = secret or None

    @property
    def configured(self) -> bool:
        return self._secret is not None

    def authorize(self, provided: str | None) -> bool:
        """True only if a secret is configured and ``provided`` matches it."""
        if self._secret is None or provided is None:
            return False
        return secrets.compare_digest(provided.encode(), self._secret.encode())


def get_access_gate() -> AccessGate:
    """FastAPI dependency building the gate from the configured secret."""
    return AccessGate(settings.api_key)


def provided_api_key(request: Request) -> str | None:
    return request.query_params.get(API_KEY_QUERY_PARAM) or request.headers.get(API_KEY_HEADER)


async def require_api_key(
    request: Request,
    gate: AccessGate = Depends(get_access_gate),
) -> None:
    """Raise 403 unless the request carries the shared secret.

    Raises:
        AccessNotConfigured: No secret is configured server-side (500).
        HTTPException: The provided key is missing or wrong (403).
    """
    if not gate.configured:
        raise AccessNotConfigured(detail="API_KEY is not set")
    if not gate.authorize(provided_api_key(request)):
        client_ip = getattr(request.state, "client_ip", "-")
        logger.warning(f"Rejected API key | IP: {client_ip} | {request.method} {request.url.path}")
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid API key")
