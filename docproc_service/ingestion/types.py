from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class FormatKind(str, Enum):
    PLAIN_TEXT = "text"
    PDF = "pdf"
    WORD_DOCUMENT = "docx"
    IMAGE = "image"
    ARCHIVE = "zip"
    UNSUPPORTED = "unsupported"


class IngestStage(str, Enum):
    RECEIVED = "received"
    CLASSIFIED = "classified"
    EXTRACTING = "extracting"
    WALKING = "walking"
    MATERIALIZED = "materialized"
    COMPLETED = "completed"


@dataclass(frozen=True)
class UploadedDocument:
    original_name: str  # as sent by the client, untrusted
    stored_name: str
    stored_path: Path
    size: int
    kind: FormatKind


@dataclass(frozen=True)
class ArchiveEntry:
    name: str  # sanitized path inside the container
    raw_name: str
    data: bytes


@dataclass(frozen=True)
class Artifact:
    name: str
    path: Path
    size: int


@dataclass(frozen=True)
class ExtractResult:
    text: str
    used_ocr: bool
    pages: int | None
    extraction_meta: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ExtractionResult:
    source_name: str
    kind: FormatKind
    text: str
    artifact: Artifact | None
    error: str | None = None
    used_ocr: bool = False
    pages: int | None = None
    # invalid UTF-8 was replaced while decoding
    lossy: bool = False

    @property
    def empty(self) -> bool:
        return not self.text.strip()
