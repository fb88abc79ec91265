from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


def _get_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None:
        return default
    return v.strip().lower() in ("1", "true", "t", "yes", "y", "on")


def _get_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None:
        return default
    return int(v)


def _get_float(name: str, default: float) -> float:
    v = os.getenv(name)
    if v is None:
        return default
    return float(v)


@dataclass(frozen=True)
class IngestConfig:
    # Filesystem areas
    upload_dir: Path
    processed_dir: Path

    # OCR / Tesseract
    ocr_enabled: bool
    ocr_lang: str
    ocr_max_concurrency: int
    ocr_timeout_s: float

    # Archive hardening
    archive_max_entries: int
    archive_max_bytes: int

    @classmethod
    def from_env(cls) -> IngestConfig:
        upload_dir = Path(os.getenv("DOCPROC_UPLOAD_DIR", "./uploads"))
        processed_dir = Path(os.getenv("DOCPROC_PROCESSED_DIR", str(upload_dir / "processed")))

        return cls(
            upload_dir=upload_dir,
            processed_dir=processed_dir,
            ocr_enabled=_get_bool("DOCPROC_OCR_ENABLED", True),
            ocr_lang=os.getenv("DOCPROC_OCR_LANG", "eng"),
            ocr_max_concurrency=_get_int("DOCPROC_OCR_MAX_CONCURRENCY", 2),
            ocr_timeout_s=_get_float("DOCPROC_OCR_TIMEOUT_SECONDS", 120.0),
            archive_max_entries=_get_int("DOCPROC_ARCHIVE_MAX_ENTRIES", 10_000),
            archive_max_bytes=_get_int("DOCPROC_ARCHIVE_MAX_BYTES", 2 * 1024 * 1024 * 1024),
        )

    def validate(self) -> None:
        if self.upload_dir.resolve() == self.processed_dir.resolve():
            raise ValueError("DOCPROC_UPLOAD_DIR and DOCPROC_PROCESSED_DIR must differ")
        if not self.ocr_lang.strip():
            raise ValueError("DOCPROC_OCR_LANG must not be empty")
        if self.ocr_max_concurrency < 1:
            raise ValueError("DOCPROC_OCR_MAX_CONCURRENCY must be >= 1")
        if self.ocr_timeout_s < 0:
            raise ValueError("DOCPROC_OCR_TIMEOUT_SECONDS must be >= 0")
        if self.archive_max_entries < 1:
            raise ValueError("DOCPROC_ARCHIVE_MAX_ENTRIES must be >= 1")
        if self.archive_max_bytes < 1:
            raise ValueError("DOCPROC_ARCHIVE_MAX_BYTES must be >= 1")
