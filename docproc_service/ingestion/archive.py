from __future__ import annotations

import asyncio
import io
import logging
import zipfile
import zlib
from collections.abc import Awaitable, Callable

from docproc_service.errors import ArchiveTooLargeError, CorruptDocumentError
from docproc_service.ingestion.classifier import classify
from docproc_service.ingestion.types import ArchiveEntry, ExtractionResult

logger = logging.getLogger(__name__)

EntryProcessor = Callable[[ArchiveEntry], Awaitable[ExtractionResult]]


def sanitize_entry_name(name: str) -> str:
    """
    Normalize an untrusted archive member path.

    Backslashes become ``/``; empty, ``.`` and ``..`` segments and drive
    prefixes are dropped, so the result is always a relative path that stays
    inside whatever directory it is joined to.
    """
    parts: list[str] = []
    for seg in name.replace("\\", "/").split("/"):
        if seg in ("", ".", ".."):
            continue
        if len(seg) == 2 and seg[1] == ":" and not parts:
            continue  # C:
        parts.append(seg)
    return "/".join(parts) or "unnamed"


class ArchiveWalker:
    """
    Walk a zip container entry by entry.

    Directories are skipped; every other member produces exactly one
    ExtractionResult, in the container's own order. Reading happens one
    member at a time so peak memory is one member, not the whole archive.
    """

    def __init__(
        self,
        *,
        process: EntryProcessor,
        on_unreadable: EntryProcessor,
        max_entries: int,
        max_total_bytes: int,
    ) -> None:
        self._process = process
        self._on_unreadable = on_unreadable
        self._max_entries = max_entries
        self._max_total_bytes = max_total_bytes

    async def walk(self, data: bytes) -> list[ExtractionResult]:
        try:
            zf = zipfile.ZipFile(io.BytesIO(data))
        except (zipfile.BadZipFile, zipfile.LargeZipFile, OSError) as e:
            raise CorruptDocumentError("archive could not be opened") from e

        results: list[ExtractionResult] = []
        with zf:
            members = [info for info in zf.infolist() if not info.is_dir()]
            self._check_limits(members)
            logger.info("Archive has %d file entries", len(members))

            for info in members:
                name = sanitize_entry_name(info.filename)
                try:
                    payload = await asyncio.to_thread(zf.read, info)
                except (zipfile.BadZipFile, zlib.error, OSError, RuntimeError, NotImplementedError) as e:
                    # bad CRC, truncated member, encrypted member, unknown compression
                    logger.warning("Archive entry %s unreadable: %s", info.filename, e)
                    entry = ArchiveEntry(name=name, raw_name=info.filename, data=b"")
                    results.append(await self._on_unreadable(entry))
                    continue

                entry = ArchiveEntry(name=name, raw_name=info.filename, data=payload)
                results.append(await self._process(entry))

        return results

    def _check_limits(self, members: list[zipfile.ZipInfo]) -> None:
        if len(members) > self._max_entries:
            raise ArchiveTooLargeError(
                f"archive has {len(members)} entries; at most {self._max_entries} are allowed"
            )
        declared = sum(info.file_size for info in members)
        if declared > self._max_total_bytes:
            raise ArchiveTooLargeError("archive expands beyond the allowed size")


def list_entry_kinds(data: bytes) -> list[tuple[str, str]]:
    """(sanitized name, format) for each file member; used by the CLI's --list mode."""
    try:
        with zipfile.ZipFile(io.BytesIO(data)) as zf:
            return [
                (sanitize_entry_name(i.filename), classify(i.filename).value)
                for i in zf.infolist()
                if not i.is_dir()
            ]
    except zipfile.BadZipFile as e:
        raise CorruptDocumentError("archive could not be opened") from e
