"""
Error Taxonomy - Consistent error codes across the application.

Usage:
    from localextract.config.errors import ErrorCode, LocalExtractError

    raise LocalExtractError(ErrorCode.INVALID_SCHEMA, "Unknown combinator 'z.date'")
"""

from __future__ import annotations

from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    """Standardized error codes for machine-readable failure results."""

    # Host / engine errors
    CAPABILITY_UNSUPPORTED = "CAPABILITY_UNSUPPORTED"
    ENGINE_CONSTRUCTION_FAILED = "ENGINE_CONSTRUCTION_FAILED"
    ENGINE_NOT_READY = "ENGINE_NOT_READY"

    # Schema errors
    INVALID_SCHEMA = "INVALID_SCHEMA"
    SCHEMA_MISMATCH = "SCHEMA_MISMATCH"

    # Generation errors
    GENERATION_ERROR = "GENERATION_ERROR"
    LLM_UNAVAILABLE = "LLM_UNAVAILABLE"

    # Document errors
    EXTRACTION_ERROR = "EXTRACTION_ERROR"

    # General errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class LocalExtractError(Exception):
    """Base exception with error code support."""

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(f"[{code.value}] {message}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to a presentation-friendly dictionary."""
        return {
            "code": self.code.value,
            "message": self.message,
            "details": self.details,
        }


# Domain-specific exceptions for cleaner imports
class CapabilityUnsupportedError(LocalExtractError):
    """Host lacks the acceleration interface the engine needs."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.CAPABILITY_UNSUPPORTED, message, details)


class EngineConstructionError(LocalExtractError):
    """Engine build or warm-up failed. Recoverable by retrying."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.ENGINE_CONSTRUCTION_FAILED, message, details)


class EngineNotReadyError(LocalExtractError):
    """Engine was used before reaching the ready state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.ENGINE_NOT_READY, message, details)


class InvalidSchemaError(LocalExtractError):
    """Custom schema source could not be parsed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.INVALID_SCHEMA, message, details)


class GenerationError(LocalExtractError):
    """Engine-side fault during generation."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.GENERATION_ERROR, message, details)


class LLMError(LocalExtractError):
    """Local model server unreachable or misbehaving."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.LLM_UNAVAILABLE, message, details)


class ExtractionError(LocalExtractError):
    """Document text extraction errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(ErrorCode.EXTRACTION_ERROR, message, details)
