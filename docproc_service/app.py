"""FastAPI entry point for the document processing service.

Endpoints:
- POST /upload           - Upload one document (txt/pdf/docx/image/zip), extract text
- GET  /download         - Download a processed artifact (?file=<name>)
- POST /images/generate  - Generate images from a prompt via the remote API
- GET  /liveness         - Health check
- GET  /readiness        - Storage and OCR engine check
"""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Annotated
from urllib.parse import urlencode

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address

from docproc_service.auth import AuthError, check_api_key, is_public_path, warn_if_open
from docproc_service.config import (
    DOCPROC_CORS_ALLOW_CREDENTIALS,
    DOCPROC_CORS_ALLOW_HEADERS,
    DOCPROC_CORS_ALLOW_METHODS,
    DOCPROC_CORS_ALLOW_ORIGINS,
    DOCPROC_LOG_LEVEL,
    DOCPROC_MAX_UPLOAD_BYTES,
    DOCPROC_PREVIEW_CHARS,
    DOCPROC_PUBLIC_BASE_URL,
    DOCPROC_RATE_LIMIT,
)
from docproc_service.errors import DocprocError, UploadTooLargeError, ValidationError
from docproc_service.imagegen import generate_images
from docproc_service.ingestion.config import IngestConfig
from docproc_service.ingestion.pipeline import IngestionContext
from docproc_service.logging_config import (
    bind_request_id,
    generate_request_id,
    reset_request_id,
    setup_logging,
)
from docproc_service.models import (
    ErrorResponse,
    HealthResponse,
    ImageGenerateRequest,
    ImageGenerateResponse,
    ProcessedFile,
    UploadResponse,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan: configure logging and create the storage areas."""
    setup_logging(level=DOCPROC_LOG_LEVEL)
    warn_if_open()
    cfg = IngestConfig.from_env()
    cfg.validate()
    app.state.ingestion = IngestionContext.from_config(cfg)
    logger.info(
        "Document service started (incoming=%s processed=%s ocr=%s)",
        cfg.upload_dir,
        cfg.processed_dir,
        cfg.ocr_enabled,
    )
    yield
    logger.info("Document service stopped")


app = FastAPI(
    title="Document Processing API",
    version="0.1.0",
    lifespan=lifespan,
)


def _ingestion(request: Request) -> IngestionContext:
    """Ingestion context from app state, built on first use when no lifespan ran."""
    ctx = getattr(request.app.state, "ingestion", None)
    if ctx is None:
        cfg = IngestConfig.from_env()
        cfg.validate()
        ctx = IngestionContext.from_config(cfg)
        request.app.state.ingestion = ctx
    return ctx


# -- Errors -------------------------------------------------------------------


@app.exception_handler(DocprocError)
async def _docproc_error_handler(request: Request, exc: DocprocError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc)
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc)})


@app.exception_handler(Exception)
async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s", request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "internal error"})


@app.exception_handler(RequestValidationError)
async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=400,
        content={"error": "invalid request", "details": jsonable_encoder(exc.errors())},
    )


# -- Rate limiting ------------------------------------------------------------

limiter = Limiter(key_func=get_remote_address)
app.state.limiter = limiter


@app.exception_handler(RateLimitExceeded)
async def _rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
    return JSONResponse(status_code=429, content={"error": "Rate limit exceeded"})


if DOCPROC_CORS_ALLOW_CREDENTIALS and "*" in DOCPROC_CORS_ALLOW_ORIGINS:
    raise RuntimeError("Invalid CORS config: wildcard origin cannot be combined with credentials=true")

app.add_middleware(
    CORSMiddleware,
    allow_origins=DOCPROC_CORS_ALLOW_ORIGINS,
    allow_credentials=DOCPROC_CORS_ALLOW_CREDENTIALS,
    allow_methods=DOCPROC_CORS_ALLOW_METHODS,
    allow_headers=DOCPROC_CORS_ALLOW_HEADERS,
)


# -- Body size limit ----------------------------------------------------------

_MAX_JSON_BODY_BYTES = 2 * 1024 * 1024  # 2 MB
_MULTIPART_OVERHEAD_BYTES = 1024 * 1024


@app.middleware("http")
async def body_size_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Reject requests with bodies exceeding the size limit."""
    limit = _MAX_JSON_BODY_BYTES
    if request.url.path == "/upload":
        limit = DOCPROC_MAX_UPLOAD_BYTES + _MULTIPART_OVERHEAD_BYTES
    content_length = request.headers.get("content-length")
    if content_length is not None:
        try:
            too_large = int(content_length) > limit
        except ValueError:
            return JSONResponse(status_code=400, content={"error": "Invalid Content-Length"})
        if too_large:
            return JSONResponse(status_code=413, content={"error": "Request body too large"})
    return await call_next(request)


# -- Auth middleware ----------------------------------------------------------


@app.middleware("http")
async def auth_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Enforce the API key on all non-public paths."""
    if request.method == "OPTIONS" or is_public_path(request.url.path):
        return await call_next(request)

    try:
        check_api_key(request)
    except AuthError as exc:
        return JSONResponse(status_code=401, content={"error": exc.detail})

    return await call_next(request)


# -- Request ID middleware ----------------------------------------------------


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):  # type: ignore[no-untyped-def]
    """Attach a unique request ID for trace correlation."""
    request_id = request.headers.get("x-request-id") or generate_request_id()
    request.state.request_id = request_id
    token = bind_request_id(request_id)
    try:
        response = await call_next(request)
    finally:
        reset_request_id(token)
    response.headers["x-request-id"] = request_id
    return response


_ERROR_RESPONSES: dict[int | str, dict[str, object]] = {
    code: {"model": ErrorResponse} for code in (400, 401, 404, 413, 422, 429, 500, 502)
}


def _download_url(request: Request, artifact_name: str) -> str:
    if DOCPROC_PUBLIC_BASE_URL:
        base = DOCPROC_PUBLIC_BASE_URL.rstrip("/")
        return f"{base}/download?{urlencode({'file': artifact_name})}"
    return str(request.url_for("download_processed").include_query_params(file=artifact_name))


# -- Health -------------------------------------------------------------------


@app.get("/")
async def index() -> dict[str, object]:
    return {
        "name": "Document Processing API",
        "endpoints": {
            "upload": "POST /upload (multipart field 'file')",
            "download": "GET /download?file=<name>",
            "generate_image": "POST /images/generate",
        },
    }


@app.get("/liveness", response_model=HealthResponse)
async def liveness() -> HealthResponse:
    return HealthResponse(status="ok")


@app.get("/readiness", response_model=HealthResponse)
async def readiness(request: Request) -> JSONResponse | HealthResponse:
    ctx = _ingestion(request)
    if not os.access(ctx.processed.root, os.W_OK):
        return JSONResponse(
            status_code=503,
            content={"status": "unavailable", "error": "Processed directory not writable"},
        )
    if ctx.ocr is not None:
        version = await asyncio.to_thread(ctx.ocr.version)
        if version is None:
            return HealthResponse(status="degraded", error="OCR engine unavailable")
    return HealthResponse(status="ok")


# -- Upload -------------------------------------------------------------------


@app.post("/upload", response_model=UploadResponse, responses=_ERROR_RESPONSES)
@limiter.limit(DOCPROC_RATE_LIMIT)
async def upload(
    request: Request,
    file: Annotated[UploadFile | None, File()] = None,
) -> UploadResponse:
    """Store the upload, then extract text from it (or from each archive entry)."""
    if file is None or not file.filename:
        raise ValidationError("file is required")

    content = await file.read()
    if len(content) > DOCPROC_MAX_UPLOAD_BYTES:
        raise UploadTooLargeError("file too large")

    ctx = _ingestion(request)
    document = await asyncio.to_thread(ctx.store_upload, file.filename, content)
    logger.info(
        "Upload %s stored as %s (%d bytes, %s)",
        file.filename,
        document.stored_name,
        document.size,
        document.kind.value,
    )

    results = await ctx.pipeline.ingest(document)

    return UploadResponse(
        original_file=document.stored_name,
        processed=[
            ProcessedFile(
                filename=r.source_name,
                text_preview=r.text[:DOCPROC_PREVIEW_CHARS],
                download_url=_download_url(request, r.artifact.name) if r.artifact else None,
                format=r.kind.value,
                empty=r.empty,
                error=r.error,
                used_ocr=r.used_ocr,
                pages=r.pages,
                lossy=r.lossy,
            )
            for r in results
        ],
    )


# -- Download -----------------------------------------------------------------


@app.get("/download", name="download_processed", responses=_ERROR_RESPONSES)
async def download_processed(request: Request, file: str | None = None) -> FileResponse:
    """Return a processed artifact as an attachment."""
    if not file:
        raise ValidationError("file query param required")
    path = _ingestion(request).processed.resolve(file)
    return FileResponse(path, filename=file, media_type="application/octet-stream")


# -- Image generation ---------------------------------------------------------


@app.post(
    "/images/generate",
    response_model=ImageGenerateResponse,
    response_model_exclude_none=True,
    responses=_ERROR_RESPONSES,
)
@limiter.limit(DOCPROC_RATE_LIMIT)
async def images_generate(
    request: Request,
    body: ImageGenerateRequest,
) -> ImageGenerateResponse:
    """Generate images from a prompt; inline images are stored as artifacts."""
    ctx = _ingestion(request)
    return await generate_images(
        body,
        store=ctx.processed,
        download_url=lambda name: _download_url(request, name),
    )
