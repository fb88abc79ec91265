from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any

from docproc_service.errors import CorruptDocumentError, ExtractionFailedError
from docproc_service.ingestion.archive import ArchiveWalker
from docproc_service.ingestion.artifacts import ArtifactStore
from docproc_service.ingestion.classifier import classify
from docproc_service.ingestion.config import IngestConfig
from docproc_service.ingestion.extractors.base import Extractor
from docproc_service.ingestion.extractors.docx import DocxExtractor
from docproc_service.ingestion.extractors.image import ImageExtractor
from docproc_service.ingestion.extractors.pdf import PdfExtractor
from docproc_service.ingestion.extractors.text import TextExtractor
from docproc_service.ingestion.extractors.unsupported import UnsupportedExtractor
from docproc_service.ingestion.ocr.tesseract import TesseractOCR
from docproc_service.ingestion.types import (
    ArchiveEntry,
    ExtractionResult,
    ExtractResult,
    FormatKind,
    IngestStage,
    UploadedDocument,
)

logger = logging.getLogger(__name__)

_NESTED_ARCHIVE = ExtractResult(
    text="",
    used_ocr=False,
    pages=None,
    extraction_meta={"strategy": "nested_archive_skipped"},
)


class IngestionPipeline:
    """Classify, extract and materialize one uploaded document."""

    def __init__(
        self,
        *,
        store: ArtifactStore,
        extractors: Sequence[Extractor],
        archive_max_entries: int,
        archive_max_bytes: int,
    ) -> None:
        self._store = store
        self._by_kind: dict[FormatKind, Extractor] = {}
        # Waiters queue on the event loop, not in executor threads
        self._gates: dict[FormatKind, asyncio.Semaphore] = {}
        for ex in extractors:
            self._by_kind[ex.kind] = ex
            if ex.max_concurrency is not None:
                self._gates[ex.kind] = asyncio.Semaphore(ex.max_concurrency)

        missing = [k.value for k in FormatKind if k is not FormatKind.ARCHIVE and k not in self._by_kind]
        if missing:
            raise ValueError(f"No extractor registered for: {', '.join(missing)}")

        self._walker = ArchiveWalker(
            process=self._process_entry,
            on_unreadable=self._unreadable_entry,
            max_entries=archive_max_entries,
            max_total_bytes=archive_max_bytes,
        )

    @property
    def store(self) -> ArtifactStore:
        return self._store

    async def ingest(self, document: UploadedDocument) -> list[ExtractionResult]:
        _stage(document, IngestStage.RECEIVED)
        try:
            data = await asyncio.to_thread(document.stored_path.read_bytes)
        except OSError as e:
            raise ExtractionFailedError("uploaded document could not be read") from e

        kind = document.kind
        _stage(document, IngestStage.CLASSIFIED, kind=kind.value)

        if kind is FormatKind.ARCHIVE:
            _stage(document, IngestStage.WALKING)
            results = await self._walker.walk(data)
        else:
            _stage(document, IngestStage.EXTRACTING)
            # Document-level failures propagate to the caller as-is
            exr = await self._extract(kind, document.original_name, data)
            artifact = await asyncio.to_thread(
                self._store.materialize, f"{document.original_name}.txt", exr.text
            )
            results = [
                ExtractionResult(
                    source_name=document.original_name,
                    kind=kind,
                    text=exr.text,
                    artifact=artifact,
                    **_facts(exr),
                )
            ]

        _stage(document, IngestStage.MATERIALIZED, artifacts=len(results))
        failed = sum(1 for r in results if r.error)
        logger.info(
            "Ingested %s: %d result(s), %d failed, %d empty",
            document.stored_name,
            len(results),
            failed,
            sum(1 for r in results if r.empty),
        )
        _stage(document, IngestStage.COMPLETED)
        return results

    async def _extract(self, kind: FormatKind, name: str, data: bytes) -> ExtractResult:
        if kind is FormatKind.ARCHIVE:
            # Nested containers are stored, not expanded
            return _NESTED_ARCHIVE
        extractor = self._by_kind[kind]
        gate = self._gates.get(kind)
        if gate is None:
            return await asyncio.to_thread(extractor.extract, name=name, data=data)
        async with gate:
            return await asyncio.to_thread(extractor.extract, name=name, data=data)

    async def _process_entry(self, entry: ArchiveEntry) -> ExtractionResult:
        kind = classify(entry.name)
        exr: ExtractResult | None = None
        error: str | None = None
        try:
            exr = await self._extract(kind, entry.name, entry.data)
        except (CorruptDocumentError, ExtractionFailedError) as e:
            logger.warning("Archive entry %s failed: %s", entry.name, e)
            error = str(e)
        except Exception:
            logger.exception("Unexpected error extracting archive entry %s", entry.name)
            error = "extraction failed"

        # The raw member is kept even when extraction failed
        artifact = await asyncio.to_thread(self._store.materialize, entry.name, entry.data)
        return ExtractionResult(
            source_name=entry.name,
            kind=kind,
            text=exr.text if exr else "",
            artifact=artifact,
            error=error,
            **(_facts(exr) if exr else {}),
        )

    async def _unreadable_entry(self, entry: ArchiveEntry) -> ExtractionResult:
        return ExtractionResult(
            source_name=entry.name,
            kind=classify(entry.name),
            text="",
            artifact=None,
            error="archive entry could not be read",
        )


def _facts(exr: ExtractResult) -> dict[str, Any]:
    return {
        "used_ocr": exr.used_ocr,
        "pages": exr.pages,
        "lossy": bool(exr.extraction_meta.get("lossy", False)),
    }


def _stage(document: UploadedDocument, stage: IngestStage, **extra: object) -> None:
    logger.debug("ingest %s -> %s %s", document.stored_name, stage.value, extra or "")


def build_pipeline(
    cfg: IngestConfig,
    *,
    store: ArtifactStore,
    ocr: TesseractOCR | None,
) -> IngestionPipeline:
    extractors: list[Extractor] = [
        TextExtractor(),
        PdfExtractor(),
        DocxExtractor(),
        UnsupportedExtractor(),
    ]
    if cfg.ocr_enabled and ocr is not None:
        extractors.append(ImageExtractor(ocr=ocr))
    else:
        # Without OCR images fall back to the unsupported policy
        extractors.append(UnsupportedExtractor(kind=FormatKind.IMAGE))

    return IngestionPipeline(
        store=store,
        extractors=extractors,
        archive_max_entries=cfg.archive_max_entries,
        archive_max_bytes=cfg.archive_max_bytes,
    )


def build_ocr(cfg: IngestConfig) -> TesseractOCR | None:
    if not cfg.ocr_enabled:
        return None
    return TesseractOCR(
        lang=cfg.ocr_lang,
        max_concurrency=cfg.ocr_max_concurrency,
        timeout_s=cfg.ocr_timeout_s,
    )


@dataclass
class IngestionContext:
    """Everything one process needs to accept and ingest uploads."""

    cfg: IngestConfig
    incoming: ArtifactStore
    processed: ArtifactStore
    ocr: TesseractOCR | None
    pipeline: IngestionPipeline

    @classmethod
    def from_config(cls, cfg: IngestConfig) -> IngestionContext:
        incoming = ArtifactStore(cfg.upload_dir)
        processed = ArtifactStore(cfg.processed_dir)
        ocr = build_ocr(cfg)
        return cls(
            cfg=cfg,
            incoming=incoming,
            processed=processed,
            ocr=ocr,
            pipeline=build_pipeline(cfg, store=processed, ocr=ocr),
        )

    def store_upload(self, original_name: str, content: bytes) -> UploadedDocument:
        """Persist an upload in the incoming area under a unique sanitized name."""
        artifact = self.incoming.materialize(original_name, content)
        return UploadedDocument(
            original_name=original_name,
            stored_name=artifact.name,
            stored_path=artifact.path,
            size=artifact.size,
            kind=classify(original_name),
        )
