from __future__ import annotations

import io
import logging

import docx  # python-docx

from docproc_service.errors import CorruptDocumentError
from docproc_service.ingestion.extractors.base import Extractor, normalize_text
from docproc_service.ingestion.types import ExtractResult, FormatKind

logger = logging.getLogger(__name__)


class DocxExtractor(Extractor):
    kind = FormatKind.WORD_DOCUMENT

    def extract(self, *, name: str, data: bytes) -> ExtractResult:
        try:
            d = docx.Document(io.BytesIO(data))
            parts = [p.text for p in d.paragraphs if p.text and p.text.strip()]
        except Exception as e:
            logger.warning("Word document parsing failed for %s: %s", name, e)
            raise CorruptDocumentError(f"could not parse Word document: {name}") from e

        return ExtractResult(
            text=normalize_text("\n".join(parts)),
            used_ocr=False,
            pages=None,
            extraction_meta={"strategy": "docx"},
        )
