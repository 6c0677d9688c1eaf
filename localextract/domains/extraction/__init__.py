"""
Extraction Domain - Document text to structured JSON.

This domain handles:
- Prompt and constrained request building
- Generation against the ready engine
- Optional validation of the output against the schema
- The session context that owns engine, reader and pipeline
"""

from .contracts import PageReader, StructuredExtractor
from .models import ExtractionRequest, ExtractionResult, ExtractionStatus
from .pipeline import EXTRACTION_PROMPT, StructuredExtractionPipeline
from .session import ExtractionSession
from .timing import Stopwatch

__all__ = [
    # Contracts
    "StructuredExtractor",
    "PageReader",
    # Models
    "ExtractionRequest",
    "ExtractionResult",
    "ExtractionStatus",
    # Implementations
    "StructuredExtractionPipeline",
    "ExtractionSession",
    "Stopwatch",
    "EXTRACTION_PROMPT",
]
