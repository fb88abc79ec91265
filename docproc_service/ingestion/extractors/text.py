from __future__ import annotations

from docproc_service.ingestion.extractors.base import Extractor
from docproc_service.ingestion.types import ExtractResult, FormatKind


class TextExtractor(Extractor):
    """UTF-8 decode with no further transformation.

    Invalid byte sequences are replaced with U+FFFD rather than raising.
    """

    kind = FormatKind.PLAIN_TEXT

    def extract(self, *, name: str, data: bytes) -> ExtractResult:
        text = data.decode("utf-8", errors="replace")
        return ExtractResult(
            text=text,
            used_ocr=False,
            pages=None,
            extraction_meta={"strategy": "text", "lossy": "\ufffd" in text},
        )
