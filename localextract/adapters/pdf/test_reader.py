"""
Tests for the PDF text reader.
"""

from __future__ import annotations

from pathlib import Path

import fitz
import pytest

from localextract.config import ExtractionError

from .reader import PdfTextReader, join_pages


def write_pdf(path: Path, pages: list[str]) -> Path:
    """Write a small PDF with one line of text per page."""
    doc = fitz.open()
    for text in pages:
        page = doc.new_page()
        page.insert_text((72, 72), text)
    doc.save(path)
    doc.close()
    return path


def test_read_pages(tmp_path: Path) -> None:
    """Test text is returned per page in order."""
    pdf = write_pdf(tmp_path / "statement.pdf", ["Balance: 500 USD", "Bank: Acme"])
    pages = PdfTextReader().read_pages(pdf)

    assert len(pages) == 2
    assert "Balance: 500 USD" in pages[0]
    assert "Bank: Acme" in pages[1]


def test_read_pages_from_bytes(tmp_path: Path) -> None:
    """Test raw file bytes are accepted."""
    pdf = write_pdf(tmp_path / "statement.pdf", ["Type: Savings"])
    pages = PdfTextReader().read_pages(pdf.read_bytes())
    assert "Type: Savings" in pages[0]


def test_max_pages(tmp_path: Path) -> None:
    """Test page limit."""
    pdf = write_pdf(tmp_path / "long.pdf", ["one", "two", "three"])
    assert len(PdfTextReader(max_pages=2).read_pages(pdf)) == 2


def test_missing_file_raises(tmp_path: Path) -> None:
    """Test a missing file raises ExtractionError."""
    with pytest.raises(ExtractionError, match="File not found"):
        PdfTextReader().read_pages(tmp_path / "missing.pdf")


def test_invalid_pdf_raises(tmp_path: Path) -> None:
    """Test a non-PDF file raises ExtractionError."""
    bogus = tmp_path / "notes.pdf"
    bogus.write_bytes(b"this is not a pdf")
    with pytest.raises(ExtractionError, match="Not a valid PDF"):
        PdfTextReader().read_pages(bogus)


def test_read_and_join_labels_pages(tmp_path: Path) -> None:
    """Test joined page text labels each page."""
    pdf = write_pdf(tmp_path / "statement.pdf", ["Balance: 500 USD", "Bank: Acme"])
    text = join_pages(PdfTextReader().read_pages(pdf))

    assert text.startswith("Page 1:\nBalance: 500 USD")
    assert "Page 2:\nBank: Acme" in text


def test_join_pages_collapses_whitespace() -> None:
    """Test page text is flattened onto one line."""
    assert join_pages(["a\n b", "c"]) == "Page 1:\na b\n\nPage 2:\nc\n\n"
