"""Image generation proxy.

Forwards a prompt to a remote generation API. Base64 images in the answer are
stored in the processed artifact store and returned as download links; URL
results are passed through untouched.
"""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from collections.abc import Callable
from typing import Any

import httpx

from docproc_service.config import (
    DOCPROC_IMAGE_API_URL,
    DOCPROC_IMAGE_TIMEOUT_SECONDS,
    OPENROUTER_API_KEY,
    SITE_NAME,
    SITE_URL,
)
from docproc_service.errors import ConfigurationError, UpstreamError
from docproc_service.ingestion.artifacts import ArtifactStore
from docproc_service.models import GeneratedImage, ImageGenerateRequest, ImageGenerateResponse

logger = logging.getLogger(__name__)

_MAX_RETRIES = 2
_RETRY_BACKOFF_BASE = 0.5
_RETRYABLE_STATUS = {502, 503, 504}
_MAX_ERROR_DETAIL = 2000


async def _request_with_retry(
    method: str,
    url: str,
    *,
    headers: dict[str, str],
    json: dict[str, Any] | None = None,
) -> httpx.Response:
    """Make an HTTP request with retry on transient failures."""
    for attempt in range(_MAX_RETRIES + 1):
        try:
            async with httpx.AsyncClient(timeout=DOCPROC_IMAGE_TIMEOUT_SECONDS) as client:
                resp = await client.request(method, url, headers=headers, json=json)
            if resp.status_code not in _RETRYABLE_STATUS or attempt >= _MAX_RETRIES:
                return resp
        except (httpx.ConnectError, httpx.ReadTimeout) as e:
            if attempt >= _MAX_RETRIES:
                raise
            logger.warning(
                "HTTP request failed (attempt %d/%d): %s",
                attempt + 1,
                _MAX_RETRIES + 1,
                e,
            )
        await asyncio.sleep(_RETRY_BACKOFF_BASE * (2**attempt))
    raise RuntimeError("Unreachable retry path")


def _headers(api_key: str) -> dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "HTTP-Referer": SITE_URL,
        "X-Title": SITE_NAME,
    }


async def generate_images(
    body: ImageGenerateRequest,
    *,
    store: ArtifactStore,
    download_url: Callable[[str], str],
    api_key: str | None = None,
) -> ImageGenerateResponse:
    """Call the generation API and persist any inline images.

    Raises:
        ConfigurationError: no API key is configured.
        UpstreamError: the API was unreachable, failed, or sent undecodable data.
    """
    api_key = api_key or OPENROUTER_API_KEY
    if not api_key:
        raise ConfigurationError("image generation API key missing in server")

    try:
        resp = await _request_with_retry(
            "POST",
            DOCPROC_IMAGE_API_URL,
            headers=_headers(api_key),
            json={"model": body.model, "prompt": body.prompt, "size": body.size},
        )
    except httpx.HTTPError as e:
        logger.warning("Image generation request failed: %s", e)
        raise UpstreamError("image generation service unreachable") from e

    if not resp.is_success:
        logger.warning("Image generation returned %d", resp.status_code)
        raise UpstreamError(f"image generation failed: {resp.text[:_MAX_ERROR_DETAIL]}")

    try:
        data = resp.json()
    except ValueError as e:
        raise UpstreamError("image generation returned a non-JSON response") from e

    items = data.get("data") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return ImageGenerateResponse(raw=data)

    images: list[GeneratedImage] = []
    for item in items:
        if isinstance(item, dict) and item.get("b64_json"):
            try:
                raw = base64.b64decode(item["b64_json"], validate=True)
            except (binascii.Error, ValueError) as e:
                raise UpstreamError("image generation returned malformed base64 data") from e
            artifact = await asyncio.to_thread(store.materialize, "image.png", raw)
            images.append(GeneratedImage(filename=artifact.name, url=download_url(artifact.name)))
        elif isinstance(item, dict) and item.get("url"):
            images.append(GeneratedImage(url=item["url"]))
        else:
            images.append(GeneratedImage(raw=item))

    logger.info("Image generation produced %d item(s)", len(images))
    return ImageGenerateResponse(images=images)
