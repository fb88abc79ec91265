from __future__ import annotations

from docproc_service.ingestion.extractors.base import Extractor, normalize_text
from docproc_service.ingestion.ocr.tesseract import TesseractOCR
from docproc_service.ingestion.types import ExtractResult, FormatKind


class ImageExtractor(Extractor):
    kind = FormatKind.IMAGE

    def __init__(self, *, ocr: TesseractOCR) -> None:
        self._ocr = ocr
        self.max_concurrency = ocr.max_concurrency

    def extract(self, *, name: str, data: bytes) -> ExtractResult:
        text, meta = self._ocr.recognize(content=data, name=name)
        return ExtractResult(
            text=normalize_text(text),
            used_ocr=True,
            pages=None,
            extraction_meta={"strategy": "tesseract", **meta},
        )
