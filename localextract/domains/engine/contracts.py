"""
Engine Contracts - Interfaces for the engine domain.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Protocol, runtime_checkable

from .models import Completion, GenerationRequest, ProgressEvent

ProgressCallback = Callable[[ProgressEvent], None]


@runtime_checkable
class InferenceEngine(Protocol):
    """
    Contract for a constructed local inference engine.

    Example:
        >>> class MyEngine:
        ...     async def generate(self, request: GenerationRequest) -> Completion:
        ...         ...
        ...     async def close(self) -> None:
        ...         ...
        >>> assert isinstance(MyEngine(), InferenceEngine)
    """

    async def generate(self, request: GenerationRequest) -> Completion:
        """
        Run one non-streaming generation.

        Args:
            request: Messages, length bound and optional structural constraint

        Returns:
            Completion with the generated text

        Raises:
            GenerationError: Engine-side fault
        """
        ...

    async def close(self) -> None:
        """Release transport resources held by the engine."""
        ...


@runtime_checkable
class EngineFactory(Protocol):
    """
    Contract for building an engine.

    Implementations report load progress through ``on_progress`` as often as
    the underlying engine ticks, and raise on any construction failure.
    """

    async def __call__(
        self,
        model_id: str,
        on_progress: ProgressCallback,
    ) -> InferenceEngine:
        ...
