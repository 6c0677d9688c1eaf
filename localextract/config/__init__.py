"""
Configuration - Application settings and error taxonomy.
"""

from .errors import (
    CapabilityUnsupportedError,
    EngineConstructionError,
    EngineNotReadyError,
    ErrorCode,
    ExtractionError,
    GenerationError,
    InvalidSchemaError,
    LLMError,
    LocalExtractError,
)
from .settings import Settings, get_settings

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Errors
    "ErrorCode",
    "LocalExtractError",
    "CapabilityUnsupportedError",
    "EngineConstructionError",
    "EngineNotReadyError",
    "InvalidSchemaError",
    "GenerationError",
    "LLMError",
    "ExtractionError",
]
