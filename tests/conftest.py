"""Shared test fixtures for the docproc-service test suite."""

from __future__ import annotations

from pathlib import Path

import pytest

from docproc_service.ingestion.artifacts import ArtifactStore
from docproc_service.ingestion.config import IngestConfig
from docproc_service.ingestion.pipeline import IngestionContext


@pytest.fixture
def ingest_config(tmp_path: Path) -> IngestConfig:
    """Config rooted in a temp dir, OCR disabled."""
    return IngestConfig(
        upload_dir=tmp_path / "uploads",
        processed_dir=tmp_path / "uploads" / "processed",
        ocr_enabled=False,
        ocr_lang="eng",
        ocr_max_concurrency=1,
        ocr_timeout_s=0,
        archive_max_entries=100,
        archive_max_bytes=10 * 1024 * 1024,
    )


@pytest.fixture
def ingestion_context(ingest_config: IngestConfig) -> IngestionContext:
    return IngestionContext.from_config(ingest_config)


@pytest.fixture
def processed_store(tmp_path: Path) -> ArtifactStore:
    return ArtifactStore(tmp_path / "processed")
