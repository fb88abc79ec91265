from __future__ import annotations

import io
import logging

from pypdf import PdfReader

from docproc_service.errors import CorruptDocumentError
from docproc_service.ingestion.extractors.base import Extractor, normalize_text
from docproc_service.ingestion.types import ExtractResult, FormatKind

logger = logging.getLogger(__name__)


class PdfExtractor(Extractor):
    kind = FormatKind.PDF

    def extract(self, *, name: str, data: bytes) -> ExtractResult:
        try:
            r = PdfReader(io.BytesIO(data))
            pages = len(r.pages)
            parts: list[str] = []
            for p in r.pages:
                t = p.extract_text() or ""
                if t.strip():
                    parts.append(t)
        except Exception as e:
            logger.warning("PyPDF text extraction failed for %s: %s", name, e)
            raise CorruptDocumentError(f"could not parse PDF: {name}") from e

        return ExtractResult(
            text=normalize_text("\n".join(parts)),
            used_ocr=False,
            pages=pages,
            extraction_meta={"strategy": "pypdf"},
        )
