"""
Extraction Session - Owns the engine, reader and pipeline for one process.

Replaces a process-wide engine singleton with an explicit context object:
construct one session, ``start()`` it, run extractions, ``close()`` it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

from localextract.adapters.ollama import OllamaEngineFactory
from localextract.adapters.pdf import PdfTextReader, join_pages
from localextract.config import (
    CapabilityUnsupportedError,
    EngineConstructionError,
    ErrorCode,
    ExtractionError,
    LocalExtractError,
    Settings,
    get_settings,
)
from localextract.domains.capability import CapabilityStatus, probe
from localextract.domains.engine import EngineFactory, EngineLifecycleManager
from localextract.domains.schema import SchemaChoice, SchemaResolver

from .contracts import PageReader
from .models import ExtractionResult
from .pipeline import StructuredExtractionPipeline

logger = logging.getLogger(__name__)

__all__ = ["ExtractionSession"]


class ExtractionSession:
    """
    Session context for local document extraction.

    Extraction calls are serialized: one request is in flight on the engine
    at a time.

    Example:
        >>> async with ExtractionSession() as session:
        ...     if await session.start():
        ...         result = await session.extract_file(Path("statement.pdf"), PredefinedSchema())
    """

    def __init__(
        self,
        settings: Settings | None = None,
        factory: EngineFactory | None = None,
        reader: PageReader | None = None,
        capability_probe: Callable[[], CapabilityStatus] = probe,
    ) -> None:
        """
        Initialize session. Probes the host once; builds nothing else yet.

        Args:
            settings: Application settings (default: cached settings)
            factory: Engine factory (default: OllamaEngineFactory)
            reader: Page text reader (default: PdfTextReader)
            capability_probe: Host acceleration probe
        """
        self.settings = settings or get_settings()
        self.capability = capability_probe()
        logger.info(
            "Acceleration: %s",
            self.capability.backend if self.capability else "none",
        )

        self.lifecycle = EngineLifecycleManager(
            factory or OllamaEngineFactory(self.settings), self.settings.model_id
        )
        self.reader = reader or PdfTextReader(max_pages=self.settings.max_pages)
        self.pipeline = StructuredExtractionPipeline(
            self.lifecycle, SchemaResolver(), self.settings
        )
        self.last_error: LocalExtractError | None = None
        self._lock = asyncio.Lock()

    @property
    def can_run(self) -> bool:
        """Acceleration is present, or the requirement is switched off."""
        return bool(self.capability) or not self.settings.require_acceleration

    async def start(self) -> bool:
        """
        Gate on the capability probe, then build and warm up the engine.

        Returns:
            True once the engine is ready. On False, ``last_error`` holds the
            reason (unsupported host or failed construction).
        """
        if not self.can_run:
            self.last_error = CapabilityUnsupportedError(
                "No GPU acceleration detected on this host",
                {"require_acceleration": True},
            )
            logger.error(self.last_error.message)
            return False

        try:
            await self.lifecycle.ensure_ready()
        except EngineConstructionError as e:
            self.last_error = e
            logger.error("Engine unavailable: %s", e.to_dict())
            return False

        self.last_error = None
        return True

    async def extract_text(self, document_text: str, choice: SchemaChoice) -> ExtractionResult:
        """Run the pipeline on already-extracted text."""
        async with self._lock:
            return await self.pipeline.extract_structured(document_text, choice)

    async def extract_file(self, source: Path | bytes, choice: SchemaChoice) -> ExtractionResult:
        """
        Read a document and extract structured data from its text.

        Args:
            source: PDF path or raw bytes
            choice: Predefined or custom schema

        Returns:
            Extraction result; unreadable or empty documents fail with
            ``EXTRACTION_ERROR``
        """
        async with self._lock:
            try:
                pages = await asyncio.to_thread(self.reader.read_pages, source)
            except ExtractionError as e:
                logger.warning("Text extraction failed: %s", e.message)
                return ExtractionResult.from_error(e, "Could not read document.")

            if not any(page.strip() for page in pages):
                return ExtractionResult.failure(
                    ErrorCode.EXTRACTION_ERROR,
                    "No text available in document.",
                    detail=f"{len(pages)} pages without text",
                )

            return await self.pipeline.extract_structured(join_pages(pages), choice)

    async def close(self) -> None:
        await self.lifecycle.close()

    async def __aenter__(self) -> "ExtractionSession":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
