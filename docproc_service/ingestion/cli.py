from __future__ import annotations

import argparse


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="docproc-extract",
        description="Extract text from local documents into the processed artifact area",
    )

    p.add_argument("paths", nargs="+", help="Files to ingest (txt/md/csv/json/pdf/docx/images/zip)")
    p.add_argument(
        "--upload-dir",
        default=None,
        help="Where originals are copied (default from env DOCPROC_UPLOAD_DIR)",
    )
    p.add_argument(
        "--processed-dir",
        default=None,
        help="Where artifacts are written (default from env DOCPROC_PROCESSED_DIR)",
    )
    p.add_argument("--no-ocr", action="store_true", help="Skip OCR; images yield empty text")
    p.add_argument(
        "--preview-chars",
        type=int,
        default=2000,
        help="Characters of extracted text to print per entry (0 = none)",
    )
    p.add_argument("--list", action="store_true", help="Only list archive entries and their formats")
    p.add_argument("--log-level", default="INFO", help="Python logging level (INFO, DEBUG, ...)")
    return p
