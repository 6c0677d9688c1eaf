"""
PDF Reader - Paginated plain-text extraction with PyMuPDF.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

import fitz  # PyMuPDF

from localextract.config import ExtractionError

logger = logging.getLogger(__name__)

__all__ = ["PdfTextReader", "join_pages"]


@dataclass
class PdfTextReader:
    """
    Extracts text from each page of a PDF.

    Example:
        >>> reader = PdfTextReader()
        >>> text = join_pages(reader.read_pages(Path("statement.pdf")))
    """

    max_pages: int | None = None

    def read_pages(self, source: Path | bytes) -> list[str]:
        """
        Read plain text, one string per page.

        Args:
            source: Path to a PDF file or the raw file bytes

        Returns:
            Page texts in document order

        Raises:
            ExtractionError: File missing or not a readable PDF
        """
        if isinstance(source, Path) and not source.exists():
            raise ExtractionError(f"File not found: {source}", {"path": str(source)})

        try:
            if isinstance(source, bytes):
                doc = fitz.open(stream=source, filetype="pdf")
            else:
                doc = fitz.open(source, filetype="pdf")
        except Exception as e:
            raise ExtractionError(f"Not a valid PDF document: {e}") from e

        with doc:
            pages: list[str] = []
            for page_index in range(len(doc)):
                if self.max_pages is not None and page_index >= self.max_pages:
                    break
                pages.append(doc.load_page(page_index).get_text("text"))

        logger.debug("Read %d pages", len(pages))
        return pages


def join_pages(pages: list[str]) -> str:
    """Concatenate page texts, labelling each page."""
    return "".join(
        f"Page {number}:\n{' '.join(text.split())}\n\n"
        for number, text in enumerate(pages, 1)
    )
