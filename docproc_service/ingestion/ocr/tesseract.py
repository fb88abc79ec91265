from __future__ import annotations

import io
import logging
from typing import Any

import pytesseract
from PIL import Image, UnidentifiedImageError

from docproc_service.errors import ExtractionFailedError

logger = logging.getLogger(__name__)


class TesseractOCR:
    """
    Local OCR through the Tesseract engine.

    ``max_concurrency`` is advertised to the pipeline, which gates
    recognitions on the event loop before handing them to a worker thread.
    A queued image therefore waits without holding an executor thread.
    """

    def __init__(self, *, lang: str = "eng", max_concurrency: int = 2, timeout_s: float = 0) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be >= 1")
        self._lang = lang
        self._timeout_s = timeout_s
        self._max_concurrency = max_concurrency

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def recognize(self, *, content: bytes, name: str = "") -> tuple[str, dict[str, Any]]:
        try:
            with Image.open(io.BytesIO(content)) as img:
                img.load()
                text = pytesseract.image_to_string(img, lang=self._lang, timeout=self._timeout_s)
                size = img.size
        except pytesseract.TesseractNotFoundError as e:
            # subclass of OSError, must be caught first
            raise ExtractionFailedError("OCR engine is not installed") from e
        except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
            raise ExtractionFailedError(f"unreadable image: {name}") from e
        except (pytesseract.TesseractError, RuntimeError) as e:
            # pytesseract reports timeouts as RuntimeError
            logger.warning("Tesseract failed on %s: %s", name, e)
            raise ExtractionFailedError(f"OCR failed: {name}") from e

        meta = {
            "provider": "tesseract",
            "lang": self._lang,
            "width": size[0],
            "height": size[1],
        }
        return text or "", meta

    def version(self) -> str | None:
        try:
            return str(pytesseract.get_tesseract_version())
        except (pytesseract.TesseractNotFoundError, OSError):
            return None
