"""
Engine Models - Data types for the inference engine boundary.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field


class EngineState(str, Enum):
    """Lifecycle states of the shared inference engine."""

    ABSENT = "absent"
    CONSTRUCTING = "constructing"
    WARMING_UP = "warming_up"
    READY = "ready"
    FAILED = "failed"

    @property
    def is_loading(self) -> bool:
        """True while a construction attempt is in flight."""
        return self in (EngineState.CONSTRUCTING, EngineState.WARMING_UP)


class ProgressEvent(BaseModel):
    """Free-text load status reported while the engine is constructing."""

    text: str
    fraction: float | None = Field(default=None, ge=0.0, le=1.0)

    model_config = {"frozen": True}


class ChatMessage(BaseModel):
    """Single chat turn sent to the engine."""

    role: Literal["system", "user", "assistant"]
    content: str

    model_config = {"frozen": True}


class GenerationRequest(BaseModel):
    """
    Request handed to the engine.

    ``response_schema`` is the structural constraint: a JSON Schema object the
    engine enforces on the shape of its output. It is passed through opaquely.
    """

    messages: list[ChatMessage]
    max_tokens: int | None = Field(default=None, gt=0)
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    response_schema: dict[str, Any] | None = None
    stream: Literal[False] = False

    model_config = {"frozen": True}


class Completion(BaseModel):
    """Non-streaming completion returned by the engine."""

    text: str
    model: str
    prompt_tokens: int = 0
    completion_tokens: int = 0
    finish_reason: str | None = None

    @property
    def total_tokens(self) -> int:
        """Prompt plus completion tokens."""
        return self.prompt_tokens + self.completion_tokens
