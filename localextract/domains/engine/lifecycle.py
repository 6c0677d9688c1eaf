"""
Engine Lifecycle - Owns the single shared inference engine.

State machine:
    absent -> constructing -> warming_up -> ready
    constructing | warming_up -> failed -> (ensure_ready) -> constructing

Construction is single-flight: concurrent ``ensure_ready()`` callers share one
in-flight task and observe the same outcome. Once ``ready`` the engine stays
ready for the rest of the session; individual generation failures never
regress it.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

from localextract.config import EngineConstructionError, EngineNotReadyError

from .contracts import EngineFactory, InferenceEngine, ProgressCallback
from .models import ChatMessage, EngineState, GenerationRequest, ProgressEvent

logger = logging.getLogger(__name__)

__all__ = ["EngineLifecycleManager", "WARMUP_REQUEST"]

StateCallback = Callable[[EngineState], None]

WARMUP_REQUEST = GenerationRequest(
    messages=[
        ChatMessage(role="system", content="You are a helpful text to json transformer."),
        ChatMessage(role="user", content="Are you ready?"),
    ],
    max_tokens=16,
)


class EngineLifecycleManager:
    """
    Lazily constructs, warms up and exposes one inference engine.

    Example:
        >>> manager = EngineLifecycleManager(create_ollama_engine, "llama3.2:3b")
        >>> unsubscribe = manager.on_progress(lambda event: print(event.text))
        >>> engine = await manager.ensure_ready()
        >>> manager.state
        <EngineState.READY: 'ready'>
    """

    def __init__(
        self,
        factory: EngineFactory,
        model_id: str,
        warmup_request: GenerationRequest = WARMUP_REQUEST,
    ) -> None:
        """
        Initialize manager. Nothing is constructed until ``ensure_ready()``.

        Args:
            factory: Async callable building the engine
            model_id: Model identifier passed to the factory
            warmup_request: Throwaway request issued once after construction
        """
        self._factory = factory
        self._model_id = model_id
        self._warmup_request = warmup_request

        self._state = EngineState.ABSENT
        self._engine: InferenceEngine | None = None
        self._failure: EngineConstructionError | None = None
        self._inflight: asyncio.Task[InferenceEngine] | None = None
        self._attempts = 0

        self._progress_listeners: list[ProgressCallback] = []
        self._state_listeners: list[StateCallback] = []
        self._last_progress: ProgressEvent | None = None

    @property
    def model_id(self) -> str:
        return self._model_id

    @property
    def state(self) -> EngineState:
        """Current lifecycle state."""
        return self._state

    @property
    def is_ready(self) -> bool:
        return self._state is EngineState.READY

    @property
    def failure(self) -> EngineConstructionError | None:
        """Error of the most recent failed attempt, if the state is ``failed``."""
        return self._failure

    @property
    def attempts(self) -> int:
        """Number of construction attempts started so far."""
        return self._attempts

    @property
    def last_progress(self) -> ProgressEvent | None:
        """Most recent progress event (last write wins)."""
        return self._last_progress

    @property
    def engine(self) -> InferenceEngine:
        """
        The ready engine.

        Raises:
            EngineNotReadyError: State is anything but ``ready``
        """
        if self._state is not EngineState.READY or self._engine is None:
            raise EngineNotReadyError(
                f"Engine is {self._state.value}",
                {"state": self._state.value, "model_id": self._model_id},
            )
        return self._engine

    def on_progress(self, callback: ProgressCallback) -> Callable[[], None]:
        """
        Subscribe to load progress.

        Events are delivered while constructing only; nothing is delivered
        after the engine reaches ``ready`` or ``failed``.

        Returns:
            Function that removes the subscription
        """
        self._progress_listeners.append(callback)
        return _unsubscriber(self._progress_listeners, callback)

    def on_state_change(self, callback: StateCallback) -> Callable[[], None]:
        """
        Subscribe to state transitions.

        Returns:
            Function that removes the subscription
        """
        self._state_listeners.append(callback)
        return _unsubscriber(self._state_listeners, callback)

    async def ensure_ready(self) -> InferenceEngine:
        """
        Return the engine, constructing and warming it up on first use.

        Concurrent callers share a single construction. After a failure the
        next call starts again from scratch.

        Returns:
            Ready inference engine

        Raises:
            EngineConstructionError: Construction or warm-up failed
        """
        if self._state is EngineState.READY and self._engine is not None:
            return self._engine

        if self._inflight is None or self._inflight.done():
            self._inflight = asyncio.get_running_loop().create_task(self._construct())
            self._inflight.add_done_callback(_retrieve_exception)

        # Shielded so one cancelled waiter does not abort the shared build
        return await asyncio.shield(self._inflight)

    async def close(self) -> None:
        """Release the engine transport. The manager is unusable afterwards."""
        if self._engine is not None:
            await self._engine.close()

    async def _construct(self) -> InferenceEngine:
        self._attempts += 1
        self._engine = None
        self._failure = None
        self._last_progress = None
        logger.info(
            "Constructing engine: model=%s (attempt %d)", self._model_id, self._attempts
        )

        engine: InferenceEngine | None = None
        try:
            self._set_state(EngineState.CONSTRUCTING)
            engine = await self._factory(self._model_id, self._emit_progress)

            self._set_state(EngineState.WARMING_UP)
            warmup = await engine.generate(self._warmup_request)
            logger.debug("Warm-up response: %s", warmup.text)

        except asyncio.CancelledError:
            self._fail(EngineConstructionError("Engine construction was cancelled"))
            await self._discard(engine)
            raise

        except Exception as e:
            failure = EngineConstructionError(
                f"Failed to initialize engine {self._model_id}: {e}",
                {"model_id": self._model_id, "cause": type(e).__name__},
            )
            self._fail(failure)
            await self._discard(engine)
            raise failure from e

        self._engine = engine
        self._set_state(EngineState.READY)
        logger.info("Engine ready: model=%s", self._model_id)
        return engine

    def _fail(self, failure: EngineConstructionError) -> None:
        self._failure = failure
        self._set_state(EngineState.FAILED)
        logger.error("Engine construction failed: %s", failure.message)

    async def _discard(self, engine: InferenceEngine | None) -> None:
        """Close a half-built engine after a failed warm-up."""
        if engine is None:
            return
        try:
            await engine.close()
        except Exception as e:
            logger.warning("Failed to close discarded engine: %s", e)

    def _emit_progress(self, event: ProgressEvent) -> None:
        if self._state is not EngineState.CONSTRUCTING:
            return
        self._last_progress = event
        logger.debug("Engine load progress: %s", event.text)
        for listener in list(self._progress_listeners):
            try:
                listener(event)
            except Exception as e:
                logger.warning("Progress listener failed: %s", e)

    def _set_state(self, state: EngineState) -> None:
        previous, self._state = self._state, state
        logger.debug("Engine state: %s -> %s", previous.value, state.value)
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception as e:
                logger.warning("State listener failed: %s", e)


def _unsubscriber(listeners: list, callback: Callable) -> Callable[[], None]:
    def unsubscribe() -> None:
        if callback in listeners:
            listeners.remove(callback)

    return unsubscribe


def _retrieve_exception(task: asyncio.Task) -> None:
    # Failures are re-raised to every waiter; this keeps an unawaited task quiet
    if not task.cancelled():
        task.exception()
