"""
Ollama Engine - InferenceEngine implementation backed by a local Ollama server.

Construction steps:
1. Reachability check (``/api/version``)
2. Model pull with streamed progress (skipped when ``pull_model`` is off
   or the model is already present locally)
3. Weight load into memory
"""

from __future__ import annotations

import logging
from typing import Any

from localextract.config import GenerationError, Settings, get_settings
from localextract.domains.engine import (
    Completion,
    GenerationRequest,
    ProgressCallback,
    ProgressEvent,
)

from .client import OllamaClient

logger = logging.getLogger(__name__)

__all__ = ["OllamaEngine", "OllamaEngineFactory", "progress_from_pull"]


class OllamaEngine:
    """
    Inference engine that forwards requests to Ollama's chat endpoint.

    The structural constraint is sent as Ollama's ``format`` field, which
    compiles the JSON Schema into a decoding grammar server-side.
    """

    def __init__(self, client: OllamaClient, model: str, keep_alive: str = "30m") -> None:
        self._client = client
        self._model = model
        self._keep_alive = keep_alive

    @property
    def model(self) -> str:
        return self._model

    async def generate(self, request: GenerationRequest) -> Completion:
        """
        Run one non-streaming chat completion.

        Raises:
            GenerationError: Any transport, server or decoding fault
        """
        options: dict[str, Any] = {}
        if request.max_tokens is not None:
            options["num_predict"] = request.max_tokens
        if request.temperature is not None:
            options["temperature"] = request.temperature

        try:
            data = await self._client.chat(
                model=self._model,
                messages=[m.model_dump() for m in request.messages],
                format=request.response_schema,
                options=options,
                keep_alive=self._keep_alive,
            )
        except Exception as e:
            raise GenerationError(
                f"Generation failed: {e}",
                {"model": self._model, "cause": type(e).__name__},
            ) from e

        message = data.get("message") or {}
        return Completion(
            text=message.get("content", ""),
            model=data.get("model", self._model),
            prompt_tokens=data.get("prompt_eval_count", 0),
            completion_tokens=data.get("eval_count", 0),
            finish_reason=data.get("done_reason"),
        )

    async def close(self) -> None:
        await self._client.close()


class OllamaEngineFactory:
    """
    EngineFactory building ``OllamaEngine`` instances from settings.

    Example:
        >>> factory = OllamaEngineFactory()
        >>> engine = await factory("llama3.2:3b", lambda event: print(event.text))
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: OllamaClient | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self._client = client

    def _make_client(self) -> OllamaClient:
        if self._client is not None:
            return self._client
        return OllamaClient(
            base_url=self.settings.ollama_url,
            timeout=self.settings.request_timeout,
            retries=self.settings.transport_retries,
        )

    async def __call__(self, model_id: str, on_progress: ProgressCallback) -> OllamaEngine:
        client = self._make_client()

        on_progress(ProgressEvent(text=f"Connecting to {client.base_url}"))
        version = await client.version()
        logger.info("Ollama server %s at %s", version, client.base_url)

        if self.settings.pull_model and not _is_local(model_id, await client.list_models()):
            async for record in client.pull(model_id):
                on_progress(progress_from_pull(record))
        else:
            logger.debug("Not pulling %s", model_id)

        on_progress(ProgressEvent(text=f"Loading {model_id} into memory"))
        await client.load(model_id, keep_alive=self.settings.keep_alive)

        return OllamaEngine(client, model_id, keep_alive=self.settings.keep_alive)


def progress_from_pull(record: dict[str, Any]) -> ProgressEvent:
    """Convert an Ollama pull record into a progress event."""
    status = record.get("status", "")
    total = record.get("total")
    completed = record.get("completed")

    if total and completed is not None:
        fraction = min(completed / total, 1.0)
        text = (
            f"{status}: {fraction:.0%} "
            f"({completed / 1_000_000:.0f}/{total / 1_000_000:.0f} MB)"
        )
        return ProgressEvent(text=text, fraction=fraction)
    return ProgressEvent(text=status)


def _is_local(model_id: str, local_models: list[str]) -> bool:
    """Ollama lists untagged models with an implicit ``:latest`` tag."""
    return model_id in local_models or f"{model_id}:latest" in local_models
