"""
Adapters - External service integrations.

All calls to the inference server and the PDF library are wrapped here to
isolate domains from third-party changes.
"""

from .ollama import OllamaClient, OllamaEngine, OllamaEngineFactory
from .pdf import PdfTextReader

__all__ = [
    "OllamaClient",
    "OllamaEngine",
    "OllamaEngineFactory",
    "PdfTextReader",
]
