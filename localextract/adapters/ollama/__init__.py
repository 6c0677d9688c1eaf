"""
Ollama Adapter - Local inference server integration.

This is the ONLY place that talks to the Ollama HTTP API.
"""

from .client import OllamaClient
from .engine import OllamaEngine, OllamaEngineFactory, progress_from_pull

__all__ = [
    "OllamaClient",
    "OllamaEngine",
    "OllamaEngineFactory",
    "progress_from_pull",
]
