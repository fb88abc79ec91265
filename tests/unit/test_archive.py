"""Unit tests for the archive walker and entry-name sanitization."""

from __future__ import annotations

import io
import zipfile

import pytest

from docproc_service.errors import ArchiveTooLargeError, CorruptDocumentError
from docproc_service.ingestion.archive import ArchiveWalker, list_entry_kinds, sanitize_entry_name
from docproc_service.ingestion.types import ArchiveEntry, ExtractionResult, FormatKind

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


class _Recorder:
    """Stand-in entry processor that records what it was given."""

    def __init__(self) -> None:
        self.seen: list[ArchiveEntry] = []
        self.unreadable: list[ArchiveEntry] = []

    async def process(self, entry: ArchiveEntry) -> ExtractionResult:
        self.seen.append(entry)
        return ExtractionResult(
            source_name=entry.name,
            kind=FormatKind.PLAIN_TEXT,
            text=entry.data.decode("utf-8", errors="replace"),
            artifact=None,
        )

    async def on_unreadable(self, entry: ArchiveEntry) -> ExtractionResult:
        self.unreadable.append(entry)
        return ExtractionResult(
            source_name=entry.name,
            kind=FormatKind.PLAIN_TEXT,
            text="",
            artifact=None,
            error="unreadable",
        )


def _walker(rec: _Recorder, *, max_entries: int = 100, max_total_bytes: int = 1_000_000) -> ArchiveWalker:
    return ArchiveWalker(
        process=rec.process,
        on_unreadable=rec.on_unreadable,
        max_entries=max_entries,
        max_total_bytes=max_total_bytes,
    )


# ===========================================================================
# sanitize_entry_name
# ===========================================================================


class TestSanitizeEntryName:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("a.txt", "a.txt"),
            ("docs/a.txt", "docs/a.txt"),
            ("../../etc/passwd", "etc/passwd"),
            ("/abs/file.txt", "abs/file.txt"),
            ("docs/./../a.txt", "docs/a.txt"),
            ("win\\style\\path.txt", "win/style/path.txt"),
            ("C:/Windows/evil.dll", "Windows/evil.dll"),
            ("C:\\boot.ini", "boot.ini"),
            ("..", "unnamed"),
            ("", "unnamed"),
        ],
    )
    def test_sanitize(self, raw: str, expected: str) -> None:
        assert sanitize_entry_name(raw) == expected

    def test_never_contains_parent_segments(self) -> None:
        for raw in ("../x", "a/../../b", "..\\..\\c", "./../d/.."):
            assert ".." not in sanitize_entry_name(raw).split("/")


# ===========================================================================
# ArchiveWalker
# ===========================================================================


class TestArchiveWalker:
    async def test_file_and_directory_scenario(self, make_zip) -> None:
        rec = _Recorder()
        data = make_zip([("a.txt", b"foo"), ("b/", None)])

        results = await _walker(rec).walk(data)

        assert len(results) == 1
        assert results[0].source_name == "a.txt"
        assert results[0].text == "foo"

    async def test_n_files_m_dirs_yields_n_results_in_order(self, make_zip) -> None:
        rec = _Recorder()
        entries: list[tuple[str, bytes | None]] = [
            ("z-last-alphabetically.txt", b"1"),
            ("dir1/", None),
            ("dir1/m.txt", b"2"),
            ("dir2/", None),
            ("a-first-alphabetically.txt", b"3"),
            ("dir2/sub/", None),
            ("dir2/sub/k.md", b"4"),
        ]
        results = await _walker(rec).walk(make_zip(entries))

        assert [r.source_name for r in results] == [
            "z-last-alphabetically.txt",
            "dir1/m.txt",
            "a-first-alphabetically.txt",
            "dir2/sub/k.md",
        ]
        assert [r.text for r in results] == ["1", "2", "3", "4"]

    async def test_empty_archive(self, make_zip) -> None:
        rec = _Recorder()
        assert await _walker(rec).walk(make_zip([])) == []

    async def test_only_directories(self, make_zip) -> None:
        rec = _Recorder()
        assert await _walker(rec).walk(make_zip([("a/", None), ("a/b/", None)])) == []

    async def test_traversal_names_sanitized(self, make_zip) -> None:
        rec = _Recorder()
        await _walker(rec).walk(make_zip([("../../evil.txt", b"x")]))

        assert rec.seen[0].name == "evil.txt"
        assert rec.seen[0].raw_name == "../../evil.txt"

    async def test_corrupt_container_raises(self) -> None:
        rec = _Recorder()
        with pytest.raises(CorruptDocumentError):
            await _walker(rec).walk(b"PK\x03\x04 definitely not a zip")

    async def test_non_zip_bytes_raise(self) -> None:
        rec = _Recorder()
        with pytest.raises(CorruptDocumentError):
            await _walker(rec).walk(b"")

    async def test_bad_crc_entry_isolated(self) -> None:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_STORED) as zf:
            zf.writestr("good1.txt", b"first")
            zf.writestr("bad.txt", b"hello-corrupt-me")
            zf.writestr("good2.txt", b"second")
        data = buf.getvalue().replace(b"hello-corrupt-me", b"jello-corrupt-me")

        rec = _Recorder()
        results = await _walker(rec).walk(data)

        assert [r.source_name for r in results] == ["good1.txt", "bad.txt", "good2.txt"]
        assert results[1].error == "unreadable"
        assert [e.name for e in rec.unreadable] == ["bad.txt"]
        assert results[2].text == "second"

    async def test_too_many_entries(self, make_zip) -> None:
        rec = _Recorder()
        data = make_zip([(f"f{i}.txt", b"x") for i in range(5)])
        with pytest.raises(ArchiveTooLargeError):
            await _walker(rec, max_entries=4).walk(data)
        assert rec.seen == []

    async def test_directories_do_not_count_towards_entry_limit(self, make_zip) -> None:
        rec = _Recorder()
        data = make_zip([("d1/", None), ("d2/", None), ("a.txt", b"x")])
        results = await _walker(rec, max_entries=1).walk(data)
        assert len(results) == 1

    async def test_declared_size_limit(self, make_zip) -> None:
        rec = _Recorder()
        data = make_zip([("big.txt", b"0" * 10_000)])
        with pytest.raises(ArchiveTooLargeError):
            await _walker(rec, max_total_bytes=1_000).walk(data)


class TestListEntryKinds:
    def test_lists_files_with_formats(self, make_zip) -> None:
        data = make_zip([("a.txt", b"x"), ("d/", None), ("d/scan.PNG", b"y"), ("x.bin", b"z")])
        assert list_entry_kinds(data) == [
            ("a.txt", "text"),
            ("d/scan.PNG", "image"),
            ("x.bin", "unsupported"),
        ]

    def test_corrupt(self) -> None:
        with pytest.raises(CorruptDocumentError):
            list_entry_kinds(b"nope")
