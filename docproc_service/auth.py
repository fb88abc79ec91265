"""API key check for the document processing service.

When ``DOCPROC_API_KEY`` is set every non-public request must present it,
either as ``Authorization: Bearer <key>`` or in the ``X-API-Key`` header.
Without a configured key the service is open (local development).
"""

from __future__ import annotations

import hmac
import logging

from fastapi import Request

from docproc_service.config import DOCPROC_API_KEY, IS_CLOUD_RUN

logger = logging.getLogger(__name__)

# Paths that skip auth
_PUBLIC_PATHS = {"/", "/liveness", "/readiness", "/docs", "/openapi.json"}


class AuthError(Exception):
    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


def check_api_key(request: Request, *, expected: str | None = None) -> None:
    """Raise AuthError unless the request carries the configured key."""
    expected = DOCPROC_API_KEY if expected is None else expected
    if not expected:
        return

    token = _extract_key(request)
    if not token:
        raise AuthError("Missing API key")
    if not hmac.compare_digest(token.encode(), expected.encode()):
        raise AuthError("Invalid API key")


def _extract_key(request: Request) -> str | None:
    """Extract the key from the Authorization or X-API-Key header."""
    auth_header = request.headers.get("authorization", "")
    if auth_header.lower().startswith("bearer "):
        return auth_header[7:].strip()

    key = request.headers.get("x-api-key")
    if key:
        return key.strip()

    return None


def is_public_path(path: str) -> bool:
    """Check if the request path skips authentication."""
    return path in _PUBLIC_PATHS or path.startswith("/docs")


def warn_if_open() -> None:
    """Startup check: an unauthenticated deployment on Cloud Run is almost always a mistake."""
    if IS_CLOUD_RUN and not DOCPROC_API_KEY:
        logger.warning(
            "DOCPROC_API_KEY is not set on Cloud Run; upload and download endpoints are public."
        )
