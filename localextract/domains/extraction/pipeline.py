"""
Structured Extraction Pipeline - Document text to schema-constrained JSON.

Steps: readiness gate, schema resolution, request building, constrained
generation, optional validation. Every outcome is returned as an
``ExtractionResult``; nothing raises past ``extract_structured``.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from localextract.config import ErrorCode, InvalidSchemaError, Settings, get_settings
from localextract.domains.engine import ChatMessage, EngineLifecycleManager, GenerationRequest
from localextract.domains.schema import SchemaChoice, SchemaResolver

from .models import ExtractionRequest, ExtractionResult
from .timing import Stopwatch

logger = logging.getLogger(__name__)

__all__ = ["StructuredExtractionPipeline", "EXTRACTION_PROMPT", "TRUNCATION_MARKER"]

EXTRACTION_PROMPT = "Generate a JSON from the following text:\n\n{text}"
TRUNCATION_MARKER = "\n...[truncated]"


class StructuredExtractionPipeline:
    """
    Runs one extraction against the shared engine.

    The pipeline holds no lock. Callers serialize requests on a single
    engine (see ``ExtractionSession``).

    Example:
        >>> pipeline = StructuredExtractionPipeline(lifecycle)
        >>> result = await pipeline.extract_structured(text, PredefinedSchema())
        >>> result.data["iban"]
        'DE89370400440532013000'
    """

    def __init__(
        self,
        lifecycle: EngineLifecycleManager,
        resolver: SchemaResolver | None = None,
        settings: Settings | None = None,
    ) -> None:
        """
        Initialize pipeline.

        Args:
            lifecycle: Owner of the inference engine
            resolver: Schema resolver (default: new SchemaResolver)
            settings: Generation settings (default: cached settings)
        """
        self._lifecycle = lifecycle
        self._resolver = resolver or SchemaResolver()
        self._settings = settings or get_settings()

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
        if not self._lifecycle.is_ready:
            logger.warning(
                "Extraction requested while engine is %s", self._lifecycle.state.value
            )
            return ExtractionResult.failure(
                ErrorCode.ENGINE_NOT_READY,
                "Engine not ready yet. Please wait a moment.",
                detail=self._lifecycle.state.value,
            )

        stopwatch = Stopwatch().start()
        try:
            result = await self._run(document_text, choice)
        finally:
            elapsed = stopwatch.stop()

        if result.ok:
            logger.info(
                "Extraction complete: %d chars -> %d chars of JSON in %.1fs",
                len(document_text),
                len(result.json_text or ""),
                elapsed,
            )
        else:
            logger.info("Extraction failed (%s) in %.1fs", result.reason.value, elapsed)

        return result.model_copy(update={"elapsed_seconds": elapsed})

    def build_request(self, request: ExtractionRequest) -> GenerationRequest:
        """
        Build the constrained, non-streaming generation request.

        Args:
            request: Document text and resolved schema

        Returns:
            Single user message with the schema as structural constraint
        """
        text = request.document_text
        limit = self._settings.max_document_chars
        if len(text) > limit:
            logger.warning("Document text truncated from %d to %d chars", len(text), limit)
            text = text[:limit] + TRUNCATION_MARKER

        return GenerationRequest(
            messages=[ChatMessage(role="user", content=EXTRACTION_PROMPT.format(text=text))],
            max_tokens=self._settings.max_output_tokens,
            temperature=self._settings.temperature,
            response_schema=request.resolved_schema.json_schema,
        )

    async def _run(self, document_text: str, choice: SchemaChoice) -> ExtractionResult:
        try:
            resolved = self._resolver.resolve(choice)
        except InvalidSchemaError as e:
            logger.warning("Invalid custom schema: %s", e.message)
            return ExtractionResult.from_error(e, "Invalid custom schema.")

        if not document_text.strip():
            return ExtractionResult.failure(
                ErrorCode.EXTRACTION_ERROR,
                "No text available in document.",
            )

        generation = self.build_request(ExtractionRequest(document_text, resolved))
        engine = self._lifecycle.engine

        try:
            completion = await engine.generate(generation)
        except Exception as e:
            logger.error("Generation failed: %s", e)
            return ExtractionResult.failure(
                ErrorCode.GENERATION_ERROR,
                "Error parsing document.",
                detail=str(e),
            )

        if self._settings.validate_output:
            try:
                resolved.model.model_validate_json(completion.text)
            except ValidationError as e:
                logger.warning("Output does not match schema: %d errors", e.error_count())
                return ExtractionResult.failure(
                    ErrorCode.SCHEMA_MISMATCH,
                    "Generated JSON does not match the schema.",
                    detail=str(e),
                    model_used=completion.model,
                )

        return ExtractionResult.success(
            completion.text,
            model_used=completion.model,
            prompt_tokens=completion.prompt_tokens,
            completion_tokens=completion.completion_tokens,
        )
