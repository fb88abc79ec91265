"""Pydantic request/response schemas for the document processing API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

# -- Upload -------------------------------------------------------------------


class ProcessedFile(BaseModel):
    filename: str
    text_preview: str
    download_url: str | None = None
    format: str
    empty: bool = Field(
        False, description="No text was extracted; for images this may mean OCR found nothing"
    )
    error: str | None = None
    used_ocr: bool = False
    pages: int | None = None
    lossy: bool = Field(False, description="Invalid UTF-8 was replaced with U+FFFD")


class UploadResponse(BaseModel):
    ok: bool = True
    original_file: str
    processed: list[ProcessedFile]


# -- Image generation ---------------------------------------------------------


class ImageGenerateRequest(BaseModel):
    prompt: str = Field(..., min_length=1, max_length=10_000)
    model: str = Field("sd-1", min_length=1, max_length=200)
    size: str = Field("1024x1024", pattern=r"^\d{2,5}x\d{2,5}$")


class GeneratedImage(BaseModel):
    filename: str | None = None
    url: str | None = None
    raw: Any | None = None


class ImageGenerateResponse(BaseModel):
    ok: bool = True
    images: list[GeneratedImage] | None = None
    raw: Any | None = None


# -- Health -------------------------------------------------------------------


class HealthResponse(BaseModel):
    status: str
    error: str | None = None


class ErrorResponse(BaseModel):
    error: str
