"""
Ollama Client - HTTP client for the local Ollama inference server.

Features:
- Async HTTP client
- Streaming model pulls with progress records
- Structured outputs via JSON Schema ``format``
- Retries on transient transport errors
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from localextract.config import LLMError

logger = logging.getLogger(__name__)

__all__ = ["OllamaClient"]


class OllamaClient:
    """
    Ollama local LLM client.

    Example:
        >>> client = OllamaClient()
        >>> async for record in client.pull("llama3.2:3b"):
        ...     print(record.get("status"))
        >>> data = await client.chat("llama3.2:3b", [{"role": "user", "content": "Hi"}])
    """

    def __init__(
        self,
        base_url: str = "http://localhost:11434",
        timeout: float = 300.0,
        retries: int = 3,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama server URL
            timeout: Request timeout in seconds
            retries: Attempts per request on transport errors
            transport: Optional httpx transport (tests use ``httpx.MockTransport``)
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retries = retries
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            )
        return self._client

    async def _request(
        self,
        method: str,
        path: str,
        payload: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Send a request, retrying transport errors, and decode the JSON body."""
        client = await self._get_client()

        try:
            async for attempt in AsyncRetrying(
                retry=retry_if_exception_type(httpx.TransportError),
                stop=stop_after_attempt(self.retries),
                wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
                reraise=True,
            ):
                with attempt:
                    response = await client.request(method, path, json=payload)
        except httpx.ConnectError as e:
            raise LLMError(
                "Ollama not running. Start with: ollama serve",
                {"hint": "Run 'ollama serve' in a terminal", "url": self.base_url},
            ) from e

        if response.status_code != 200:
            raise LLMError(
                f"Ollama error: {response.status_code} {_error_text(response)}",
                {"status": response.status_code, "path": path},
            )

        data: dict[str, Any] = response.json()
        return data

    async def version(self) -> str:
        """Return the server version. Doubles as a reachability check."""
        data = await self._request("GET", "/api/version")
        return data.get("version", "")

    async def list_models(self) -> list[str]:
        """List locally available models."""
        data = await self._request("GET", "/api/tags")
        return [m["name"] for m in data.get("models", [])]

    async def pull(self, model: str) -> AsyncIterator[dict[str, Any]]:
        """
        Pull a model, yielding each progress record.

        Records look like ``{"status": "pulling 6a0746a1ec1a", "digest": ...,
        "total": 2019377376, "completed": 241970}``.

        Args:
            model: Model name

        Yields:
            Decoded progress records

        Raises:
            LLMError: Server unreachable or reported an error
        """
        client = await self._get_client()
        payload = {"model": model, "stream": True}

        try:
            async with client.stream("POST", "/api/pull", json=payload) as response:
                if response.status_code != 200:
                    await response.aread()
                    raise LLMError(
                        f"Ollama pull failed: {response.status_code} {_error_text(response)}",
                        {"status": response.status_code, "model": model},
                    )
                async for line in response.aiter_lines():
                    if not line:
                        continue
                    record = json.loads(line)
                    if "error" in record:
                        raise LLMError(
                            f"Ollama pull failed: {record['error']}", {"model": model}
                        )
                    yield record
        except httpx.ConnectError as e:
            raise LLMError(
                "Ollama not running. Start with: ollama serve",
                {"hint": "Run 'ollama serve' in a terminal", "url": self.base_url},
            ) from e

    async def load(self, model: str, keep_alive: str = "30m") -> None:
        """Load model weights into memory without generating."""
        await self._request(
            "POST",
            "/api/generate",
            {"model": model, "keep_alive": keep_alive, "stream": False},
        )

    async def chat(
        self,
        model: str,
        messages: list[dict[str, str]],
        format: dict[str, Any] | str | None = None,
        options: dict[str, Any] | None = None,
        keep_alive: str | None = None,
    ) -> dict[str, Any]:
        """
        Chat completion.

        Args:
            model: Model name
            messages: List of {"role": "system/user/assistant", "content": "..."}
            format: JSON Schema the output must conform to, or "json"
            options: Sampling options (``temperature``, ``num_predict``, ...)
            keep_alive: How long to keep the model loaded afterwards

        Returns:
            Raw response body (``message.content``, ``prompt_eval_count``, ...)
        """
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "stream": False,
        }
        if format is not None:
            payload["format"] = format
        if options:
            payload["options"] = options
        if keep_alive is not None:
            payload["keep_alive"] = keep_alive

        return await self._request("POST", "/api/chat", payload)

    async def close(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None


def _error_text(response: httpx.Response) -> str:
    try:
        return str(response.json().get("error", response.text))
    except ValueError:
        return response.text
