"""Unit tests for the format classifier (pure function, no deps)."""

from __future__ import annotations

import pytest

from docproc_service.ingestion.classifier import classify
from docproc_service.ingestion.types import FormatKind


class TestClassify:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("notes.txt", FormatKind.PLAIN_TEXT),
            ("README.md", FormatKind.PLAIN_TEXT),
            ("data.csv", FormatKind.PLAIN_TEXT),
            ("payload.json", FormatKind.PLAIN_TEXT),
            ("report.pdf", FormatKind.PDF),
            ("letter.docx", FormatKind.WORD_DOCUMENT),
            ("legacy.doc", FormatKind.WORD_DOCUMENT),
            ("scan.png", FormatKind.IMAGE),
            ("photo.jpeg", FormatKind.IMAGE),
            ("fax.tiff", FormatKind.IMAGE),
            ("bundle.zip", FormatKind.ARCHIVE),
        ],
    )
    def test_known_extensions(self, name: str, expected: FormatKind) -> None:
        assert classify(name) is expected

    @pytest.mark.parametrize("ext", [".pdf", ".docx", ".txt", ".png", ".zip", ".webp", ".md"])
    def test_case_insensitive(self, ext: str) -> None:
        assert classify(f"file{ext.upper()}") is classify(f"file{ext}")
        assert classify(f"file{ext.title()}") is classify(f"file{ext}")

    @pytest.mark.parametrize(
        "name",
        ["", "Makefile", "archive.tar.gz", "video.mp4", "noext.", ".txt", "folder/"],
    )
    def test_unknown_is_unsupported(self, name: str) -> None:
        assert classify(name) is FormatKind.UNSUPPORTED

    def test_uses_last_path_component(self) -> None:
        assert classify("docs.zip/inner/readme.txt") is FormatKind.PLAIN_TEXT
        assert classify("dir.pdf/file") is FormatKind.UNSUPPORTED
        assert classify("windows\\path\\scan.JPG") is FormatKind.IMAGE

    def test_only_final_extension_counts(self) -> None:
        assert classify("report.pdf.txt") is FormatKind.PLAIN_TEXT
        assert classify("notes.txt.exe") is FormatKind.UNSUPPORTED
