from __future__ import annotations

import asyncio
import dataclasses
import json
import logging
import sys
from pathlib import Path

from docproc_service.errors import DocprocError
from docproc_service.ingestion.archive import list_entry_kinds
from docproc_service.ingestion.cli import build_parser
from docproc_service.ingestion.config import IngestConfig
from docproc_service.ingestion.pipeline import IngestionContext
from docproc_service.logging_config import setup_logging


def _config_from_args(args) -> IngestConfig:  # type: ignore[no-untyped-def]
    cfg = IngestConfig.from_env()
    overrides: dict[str, object] = {}
    if args.upload_dir:
        overrides["upload_dir"] = Path(args.upload_dir)
        if not args.processed_dir:
            overrides["processed_dir"] = Path(args.upload_dir) / "processed"
    if args.processed_dir:
        overrides["processed_dir"] = Path(args.processed_dir)
    if args.no_ocr:
        overrides["ocr_enabled"] = False
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


async def _amain(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Logs go to stderr, results to stdout
    setup_logging(level=args.log_level.upper())
    logger = logging.getLogger("docproc_service.ingestion")

    cfg = _config_from_args(args)
    cfg.validate()
    ctx = IngestionContext.from_config(cfg)

    failed = 0
    for raw_path in args.paths:
        path = Path(raw_path)
        out: dict[str, object] = {"path": str(path)}
        try:
            content = path.read_bytes()
            if args.list:
                out["entries"] = [{"name": n, "format": f} for n, f in list_entry_kinds(content)]
            else:
                document = ctx.store_upload(path.name, content)
                results = await ctx.pipeline.ingest(document)
                out["original_file"] = document.stored_name
                out["processed"] = [
                    {
                        "filename": r.source_name,
                        "format": r.kind.value,
                        "artifact": str(r.artifact.path) if r.artifact else None,
                        "text_preview": r.text[: max(args.preview_chars, 0)],
                        "empty": r.empty,
                        "error": r.error,
                        "used_ocr": r.used_ocr,
                        "pages": r.pages,
                        "lossy": r.lossy,
                    }
                    for r in results
                ]
        except (DocprocError, OSError) as e:
            failed += 1
            logger.warning("Failed to ingest %s: %s", path, e)
            out["error"] = str(e)
        print(json.dumps(out, ensure_ascii=False), file=sys.stdout)

    logger.info("DONE inputs=%d failed=%d", len(args.paths), failed)
    return 0 if failed == 0 else 2


def main() -> None:
    raise SystemExit(asyncio.run(_amain()))


if __name__ == "__main__":
    main()
