"""Environment-variable-driven configuration for the document processing service.

Ingestion settings (directories, OCR, archive limits) live in
``docproc_service.ingestion.config.IngestConfig``; this module holds the
HTTP-facing ones.
"""

from __future__ import annotations

import os


def _env_bool(name: str, default: bool = False) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_csv(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# -- Server -------------------------------------------------------------------
IS_CLOUD_RUN: bool = bool(os.getenv("K_SERVICE"))
DOCPROC_LOG_LEVEL: str = os.getenv("DOCPROC_LOG_LEVEL", "INFO")
DOCPROC_PUBLIC_BASE_URL: str | None = os.getenv("DOCPROC_PUBLIC_BASE_URL")

# -- Auth ---------------------------------------------------------------------
DOCPROC_API_KEY: str | None = os.getenv("DOCPROC_API_KEY")

# -- Upload -------------------------------------------------------------------
DOCPROC_MAX_UPLOAD_BYTES: int = int(os.getenv("DOCPROC_MAX_UPLOAD_BYTES", str(200 * 1024 * 1024)))
DOCPROC_PREVIEW_CHARS: int = int(os.getenv("DOCPROC_PREVIEW_CHARS", "2000"))

# -- Rate limiting ------------------------------------------------------------
DOCPROC_RATE_LIMIT: str = os.getenv(
    "DOCPROC_RATE_LIMIT",
    "200 per 15 minutes" if IS_CLOUD_RUN else "2000 per 15 minutes",
)

# -- Image generation ---------------------------------------------------------
OPENROUTER_API_KEY: str | None = os.getenv("OPENROUTER_API_KEY")
DOCPROC_IMAGE_API_URL: str = os.getenv(
    "DOCPROC_IMAGE_API_URL", "https://openrouter.ai/api/v1/images/generations"
)
DOCPROC_IMAGE_TIMEOUT_SECONDS: float = float(os.getenv("DOCPROC_IMAGE_TIMEOUT_SECONDS", "120"))
SITE_URL: str = os.getenv("SITE_URL", "")
SITE_NAME: str = os.getenv("SITE_NAME", "")

# -- CORS ---------------------------------------------------------------------
DOCPROC_CORS_ALLOW_ORIGINS: list[str] = _env_csv("DOCPROC_CORS_ALLOW_ORIGINS", "*")
DOCPROC_CORS_ALLOW_METHODS: list[str] = _env_csv(
    "DOCPROC_CORS_ALLOW_METHODS",
    "GET,POST,OPTIONS",
)
DOCPROC_CORS_ALLOW_HEADERS: list[str] = _env_csv(
    "DOCPROC_CORS_ALLOW_HEADERS",
    "Authorization,Content-Type,X-API-Key",
)
DOCPROC_CORS_ALLOW_CREDENTIALS: bool = _env_bool("DOCPROC_CORS_ALLOW_CREDENTIALS", False)
