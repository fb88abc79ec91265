"""Filesystem artifact store.

Artifacts are flat files directly under one root directory. Names are
``<epoch-ms>_<sequence>_<random>_<sanitized suggestion>`` so concurrent writers
never collide, and ``resolve`` only accepts names of that same character set
so a retrieval request can never point outside the root.
"""

from __future__ import annotations

import itertools
import logging
import os
import re
import secrets
import tempfile
import time
from pathlib import Path

from docproc_service.errors import NotFoundError
from docproc_service.ingestion.types import Artifact

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")
_SAFE_NAME = re.compile(r"[A-Za-z0-9._-]+")
_MAX_SUGGESTED_LEN = 128
_TMP_PREFIX = ".tmp-"

# Shared by every store in the process; itertools.count is atomic under the GIL
_sequence = itertools.count(1)


def sanitize_name(name: str) -> str:
    """Reduce an untrusted file name to a single safe path component."""
    base = (name or "").replace("\\", "/").rsplit("/", 1)[-1]
    safe = _UNSAFE_CHARS.sub("_", base).lstrip(".")
    if len(safe) > _MAX_SUGGESTED_LEN:
        stem, dot, ext = safe.rpartition(".")
        if dot and stem and len(ext) < 16:
            safe = stem[: _MAX_SUGGESTED_LEN - len(ext) - 1] + "." + ext
        else:
            safe = safe[:_MAX_SUGGESTED_LEN]
    return safe or "file"


def _unique_name(suggested_name: str) -> str:
    ms = int(time.time() * 1000)
    return f"{ms}_{next(_sequence)}_{secrets.token_hex(4)}_{sanitize_name(suggested_name)}"


class ArtifactStore:
    def __init__(self, root: Path | str) -> None:
        self._root = Path(root).resolve()
        self._root.mkdir(parents=True, exist_ok=True)

    @property
    def root(self) -> Path:
        return self._root

    def materialize(self, suggested_name: str, content: bytes | str) -> Artifact:
        """Write content under a fresh unique name.

        The file becomes visible under its final name only once fully written.
        """
        data = content.encode("utf-8") if isinstance(content, str) else content
        name = _unique_name(suggested_name)
        final = self._root / name

        fd, tmp = tempfile.mkstemp(prefix=_TMP_PREFIX, dir=self._root)
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp, final)
        except BaseException:
            try:
                os.unlink(tmp)
            except FileNotFoundError:
                pass
            raise

        logger.debug("Materialized artifact %s (%d bytes)", name, len(data))
        return Artifact(name=name, path=final, size=len(data))

    def resolve(self, name: str) -> Path:
        """Map an issued artifact name back to its file, or raise NotFoundError."""
        if not name or name.startswith(".") or not _SAFE_NAME.fullmatch(name):
            raise NotFoundError("file not found")

        candidate = (self._root / name).resolve()
        if candidate.parent != self._root or not candidate.is_file():
            raise NotFoundError("file not found")
        return candidate
