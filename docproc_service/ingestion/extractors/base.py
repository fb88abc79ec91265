from __future__ import annotations

from abc import ABC, abstractmethod

from docproc_service.ingestion.types import ExtractResult, FormatKind


class Extractor(ABC):
    kind: FormatKind
    # None = unbounded; otherwise the pipeline runs at most this many at once
    max_concurrency: int | None = None

    def can_handle(self, kind: FormatKind) -> bool:
        return kind is self.kind

    @abstractmethod
    def extract(self, *, name: str, data: bytes) -> ExtractResult: ...


def normalize_text(text: str) -> str:
    if not text:
        return ""
    # Remove null bytes, normalize whitespace a bit
    text = text.replace("\x00", "")
    # Collapse very long runs of blank lines
    while "\n\n\n\n" in text:
        text = text.replace("\n\n\n\n", "\n\n\n")
    return text.strip()
