from __future__ import annotations

from docproc_service.ingestion.extractors.base import Extractor
from docproc_service.ingestion.types import ExtractResult, FormatKind


class UnsupportedExtractor(Extractor):
    """Unknown formats degrade to empty text instead of failing."""

    def __init__(self, *, kind: FormatKind = FormatKind.UNSUPPORTED) -> None:
        self.kind = kind

    def extract(self, *, name: str, data: bytes) -> ExtractResult:
        return ExtractResult(
            text="",
            used_ocr=False,
            pages=None,
            extraction_meta={"strategy": "unsupported"},
        )
