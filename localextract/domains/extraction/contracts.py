"""
Extraction Contracts - Interfaces for extraction domain.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol, runtime_checkable

from localextract.domains.schema import SchemaChoice

from .models import ExtractionResult


@runtime_checkable
class StructuredExtractor(Protocol):
    """
    Contract for text to structured JSON extraction.

    Example:
        >>> class MyExtractor:
        ...     async def extract_structured(self, document_text, choice) -> ExtractionResult:
        ...         ...
        >>> assert isinstance(MyExtractor(), StructuredExtractor)
    """

    async def extract_structured(
        self,
        document_text: str,
        choice: SchemaChoice,
    ) -> ExtractionResult:
        """
        Convert document text to JSON matching the chosen schema.

        Args:
            document_text: Plain text of the document
            choice: Predefined or custom schema

        Returns:
            Success with JSON text, or failure with a reason code
        """
        ...


@runtime_checkable
class PageReader(Protocol):
    """Contract for document text extraction (one string per page)."""

    def read_pages(self, source: Path | bytes) -> list[str]:
        """
        Read the text of every page.

        Raises:
            ExtractionError: Document cannot be opened
        """
        ...
