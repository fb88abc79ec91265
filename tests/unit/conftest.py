"""Unit test conftest - builds document fixtures in memory."""

from __future__ import annotations

import io
import zipfile
from collections.abc import Callable

import pytest

ZipBuilder = Callable[[list[tuple[str, bytes | None]]], bytes]


@pytest.fixture
def make_zip() -> ZipBuilder:
    """Build a zip in memory; a ``None`` payload adds a directory entry."""

    def _build(entries: list[tuple[str, bytes | None]]) -> bytes:
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w", compression=zipfile.ZIP_DEFLATED) as zf:
            for name, payload in entries:
                if payload is None:
                    zf.writestr(zipfile.ZipInfo(name if name.endswith("/") else name + "/"), b"")
                else:
                    zf.writestr(name, payload)
        return buf.getvalue()

    return _build


@pytest.fixture
def sample_docx_bytes() -> bytes:
    """Generate a 3-paragraph DOCX file in memory."""
    docx = pytest.importorskip("docx")
    doc = docx.Document()
    doc.add_paragraph("First paragraph of the document.")
    doc.add_paragraph("Second paragraph with more detail.")
    doc.add_paragraph("Third and final paragraph.")
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def empty_docx_bytes() -> bytes:
    """Generate a valid DOCX with no paragraphs containing text."""
    docx = pytest.importorskip("docx")
    doc = docx.Document()
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


@pytest.fixture
def sample_pdf_bytes() -> bytes:
    """Generate a 1-page PDF with 3 lines via fpdf2."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.add_page()
    pdf.set_font("Helvetica", size=12)
    pdf.cell(text="Line one of the PDF document.")
    pdf.ln()
    pdf.cell(text="Line two with additional content.")
    pdf.ln()
    pdf.cell(text="Line three concludes the page.")
    return bytes(pdf.output())


@pytest.fixture
def multi_page_pdf_bytes() -> bytes:
    """Generate a 3-page PDF for page order verification."""
    fpdf = pytest.importorskip("fpdf")
    pdf = fpdf.FPDF()
    pdf.set_font("Helvetica", size=12)
    for i in range(1, 4):
        pdf.add_page()
        pdf.cell(text=f"Content on page {i}.")
    return bytes(pdf.output())


@pytest.fixture
def png_bytes() -> bytes:
    """A small white PNG."""
    image = pytest.importorskip("PIL.Image")
    buf = io.BytesIO()
    image.new("RGB", (64, 32), "white").save(buf, format="PNG")
    return buf.getvalue()
