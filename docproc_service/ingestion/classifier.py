from __future__ import annotations

from docproc_service.ingestion.types import FormatKind

_SUPPORTED_EXTS: dict[str, FormatKind] = {
    ".txt": FormatKind.PLAIN_TEXT,
    ".md": FormatKind.PLAIN_TEXT,
    ".csv": FormatKind.PLAIN_TEXT,
    ".json": FormatKind.PLAIN_TEXT,
    ".pdf": FormatKind.PDF,
    ".docx": FormatKind.WORD_DOCUMENT,
    ".doc": FormatKind.WORD_DOCUMENT,
    ".png": FormatKind.IMAGE,
    ".jpg": FormatKind.IMAGE,
    ".jpeg": FormatKind.IMAGE,
    ".bmp": FormatKind.IMAGE,
    ".tiff": FormatKind.IMAGE,
    ".tif": FormatKind.IMAGE,
    ".webp": FormatKind.IMAGE,
    ".zip": FormatKind.ARCHIVE,
}


def _ext(name: str) -> str:
    # Last path component only; archive entries may use either separator
    base = name.replace("\\", "/").rsplit("/", 1)[-1].lower()
    stem, dot, suffix = base.rpartition(".")
    if not dot or not stem:
        return ""
    return f".{suffix}"


def classify(name: str) -> FormatKind:
    """Map a file name to its extraction strategy. Unknown names are UNSUPPORTED."""
    return _SUPPORTED_EXTS.get(_ext(name or ""), FormatKind.UNSUPPORTED)
