"""
Tests for the Ollama adapter.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from localextract.config import GenerationError, LLMError, Settings
from localextract.domains.engine import ChatMessage, GenerationRequest, ProgressEvent

from .client import OllamaClient
from .engine import OllamaEngine, OllamaEngineFactory, progress_from_pull

PULL_RECORDS = [
    {"status": "pulling manifest"},
    {"status": "pulling dde5aa3fc5ff", "digest": "sha256:dde5", "total": 2_000_000_000, "completed": 500_000_000},
    {"status": "pulling dde5aa3fc5ff", "digest": "sha256:dde5", "total": 2_000_000_000, "completed": 2_000_000_000},
    {"status": "verifying sha256 digest"},
    {"status": "success"},
]

CHAT_RESPONSE = {
    "model": "llama3.2:3b",
    "message": {"role": "assistant", "content": '{"name": "Ada"}'},
    "done": True,
    "done_reason": "stop",
    "prompt_eval_count": 42,
    "eval_count": 7,
}


class FakeOllama:
    """Records requests and answers like an Ollama server."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.chat_status = 200
        self.pull_records: list[dict[str, Any]] = list(PULL_RECORDS)
        self.connect_failures = 0
        self.local_models: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.connect_failures:
            self.connect_failures -= 1
            raise httpx.ConnectError("connection refused", request=request)

        path = request.url.path
        if path == "/api/version":
            return httpx.Response(200, json={"version": "0.5.7"})
        if path == "/api/tags":
            return httpx.Response(200, json={"models": [{"name": m} for m in self.local_models]})
        if path == "/api/pull":
            body = "\n".join(json.dumps(r) for r in self.pull_records) + "\n"
            return httpx.Response(200, content=body.encode())
        if path == "/api/generate":
            return httpx.Response(200, json={"model": "llama3.2:3b", "response": "", "done": True})
        if path == "/api/chat":
            if self.chat_status != 200:
                return httpx.Response(self.chat_status, json={"error": "model crashed"})
            return httpx.Response(200, json=CHAT_RESPONSE)
        return httpx.Response(404, json={"error": "not found"})

    def bodies(self, path: str) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests if r.url.path == path]


@pytest.fixture
def fake() -> FakeOllama:
    return FakeOllama()


@pytest.fixture
def client(fake: FakeOllama) -> OllamaClient:
    return OllamaClient(transport=httpx.MockTransport(fake.handler), retries=1)


# --- Client Tests ---


async def test_version(client: OllamaClient) -> None:
    """Test version doubles as reachability check."""
    assert await client.version() == "0.5.7"


async def test_list_models(client: OllamaClient, fake: FakeOllama) -> None:
    """Test model listing."""
    assert await client.list_models() == []
    fake.local_models = ["llama3.2:3b"]
    assert await client.list_models() == ["llama3.2:3b"]


async def test_pull_yields_records(client: OllamaClient) -> None:
    """Test streamed pull records are decoded line by line."""
    records = [r async for r in client.pull("llama3.2:3b")]
    assert records == PULL_RECORDS


async def test_pull_error_record_raises(client: OllamaClient, fake: FakeOllama) -> None:
    """Test an error record in the pull stream raises LLMError."""
    fake.pull_records = [{"status": "pulling manifest"}, {"error": "model not found"}]
    with pytest.raises(LLMError, match="model not found"):
        async for _ in client.pull("missing-model"):
            pass


async def test_chat_sends_format_and_options(client: OllamaClient, fake: FakeOllama) -> None:
    """Test chat payload carries the schema constraint."""
    schema = {"type": "object", "properties": {"name": {"type": "string"}}}
    data = await client.chat(
        "llama3.2:3b",
        [{"role": "user", "content": "Ada"}],
        format=schema,
        options={"num_predict": 256},
    )

    assert data["message"]["content"] == '{"name": "Ada"}'
    body = fake.bodies("/api/chat")[0]
    assert body["format"] == schema
    assert body["stream"] is False
    assert body["options"] == {"num_predict": 256}


async def test_http_error_raises_llm_error(client: OllamaClient, fake: FakeOllama) -> None:
    """Test non-200 responses raise LLMError with the server message."""
    fake.chat_status = 500
    with pytest.raises(LLMError, match="model crashed"):
        await client.chat("llama3.2:3b", [{"role": "user", "content": "x"}])


async def test_connect_error_raises_llm_error(fake: FakeOllama) -> None:
    """Test an unreachable server raises LLMError with a hint."""
    fake.connect_failures = 10
    client = OllamaClient(transport=httpx.MockTransport(fake.handler), retries=1)
    with pytest.raises(LLMError) as exc_info:
        await client.version()
    assert "hint" in exc_info.value.details


async def test_transport_errors_are_retried(fake: FakeOllama) -> None:
    """Test a transient connect error is retried."""
    fake.connect_failures = 1
    client = OllamaClient(transport=httpx.MockTransport(fake.handler), retries=2)
    assert await client.version() == "0.5.7"
    assert len(fake.requests) == 2


async def test_close_resets_client(client: OllamaClient) -> None:
    """Test close drops the HTTP client."""
    await client.version()
    await client.close()
    assert client._client is None


# --- Engine Tests ---


async def test_engine_generate_maps_request(client: OllamaClient, fake: FakeOllama) -> None:
    """Test GenerationRequest is translated into an Ollama chat call."""
    engine = OllamaEngine(client, "llama3.2:3b")
    schema = {"type": "object", "properties": {"name": {"type": "string"}}}
    request = GenerationRequest(
        messages=[ChatMessage(role="user", content="Name: Ada")],
        max_tokens=256,
        temperature=0.0,
        response_schema=schema,
    )

    completion = await engine.generate(request)

    assert completion.text == '{"name": "Ada"}'
    assert completion.prompt_tokens == 42
    assert completion.completion_tokens == 7
    assert completion.total_tokens == 49
    assert completion.finish_reason == "stop"

    body = fake.bodies("/api/chat")[0]
    assert body["messages"] == [{"role": "user", "content": "Name: Ada"}]
    assert body["format"] == schema
    assert body["options"] == {"num_predict": 256, "temperature": 0.0}


async def test_engine_generate_wraps_faults(client: OllamaClient, fake: FakeOllama) -> None:
    """Test server faults surface as GenerationError."""
    fake.chat_status = 500
    engine = OllamaEngine(client, "llama3.2:3b")
    request = GenerationRequest(messages=[ChatMessage(role="user", content="x")])

    with pytest.raises(GenerationError) as exc_info:
        await engine.generate(request)
    assert exc_info.value.details["cause"] == "LLMError"


async def test_factory_reports_progress_and_loads(client: OllamaClient, fake: FakeOllama) -> None:
    """Test the factory pulls, loads and reports progress."""
    factory = OllamaEngineFactory(settings=Settings(keep_alive="5m"), client=client)
    events: list[ProgressEvent] = []

    engine = await factory("llama3.2:3b", events.append)

    assert isinstance(engine, OllamaEngine)
    assert engine.model == "llama3.2:3b"
    texts = [e.text for e in events]
    assert texts[0].startswith("Connecting to")
    assert "pulling manifest" in texts
    assert texts[-1] == "Loading llama3.2:3b into memory"
    assert any(e.fraction == 0.25 for e in events)
    assert fake.bodies("/api/generate")[0] == {
        "model": "llama3.2:3b",
        "keep_alive": "5m",
        "stream": False,
    }


async def test_factory_skips_pull_when_disabled(client: OllamaClient, fake: FakeOllama) -> None:
    """Test pull_model=False goes straight to loading."""
    factory = OllamaEngineFactory(settings=Settings(pull_model=False), client=client)
    await factory("llama3.2:3b", lambda event: None)
    assert fake.bodies("/api/pull") == []


@pytest.mark.parametrize("local_name", ["llama3.2:3b", "phi3:latest"])
async def test_factory_skips_pull_for_local_model(
    client: OllamaClient, fake: FakeOllama, local_name: str
) -> None:
    """Test models already on disk are loaded without pulling."""
    fake.local_models = [local_name]
    model_id = local_name.removesuffix(":latest")
    factory = OllamaEngineFactory(settings=Settings(), client=client)
    events: list[ProgressEvent] = []

    await factory(model_id, events.append)

    assert fake.bodies("/api/pull") == []
    assert [e.text for e in events][-1] == f"Loading {model_id} into memory"
    assert fake.bodies("/api/generate")[0]["model"] == model_id


def test_progress_from_pull() -> None:
    """Test pull records become readable progress text."""
    event = progress_from_pull(PULL_RECORDS[1])
    assert event.fraction == 0.25
    assert event.text == "pulling dde5aa3fc5ff: 25% (500/2000 MB)"

    plain = progress_from_pull({"status": "verifying sha256 digest"})
    assert plain.text == "verifying sha256 digest"
    assert plain.fraction is None
