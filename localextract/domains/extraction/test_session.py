"""
Tests for the extraction session.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from unittest.mock import AsyncMock

from localextract.config import ErrorCode, ExtractionError, Settings
from localextract.domains.capability import CapabilityStatus
from localextract.domains.engine import Completion, EngineState
from localextract.domains.schema import PredefinedSchema

from .session import ExtractionSession
from .test_pipeline import ACCOUNT_JSON, make_engine

GPU = CapabilityStatus(supported=True, backend="cuda")
NO_GPU = CapabilityStatus(supported=False)


class FakeReader:
    """Page reader returning fixed pages or raising."""

    def __init__(self, pages: list[str] | None = None, error: Exception | None = None) -> None:
        self.pages = pages if pages is not None else ["Acme Bank\nBalance:   500 USD", ""]
        self.error = error
        self.sources: list[Path | bytes] = []

    def read_pages(self, source: Path | bytes) -> list[str]:
        self.sources.append(source)
        if self.error is not None:
            raise self.error
        return self.pages


class CountingProbe:
    def __init__(self, status: CapabilityStatus) -> None:
        self.status = status
        self.calls = 0

    def __call__(self) -> CapabilityStatus:
        self.calls += 1
        return self.status


def make_session(
    engine: AsyncMock | None = None,
    capability: CapabilityStatus = GPU,
    reader: FakeReader | None = None,
    **settings,
) -> tuple[ExtractionSession, AsyncMock]:
    engine = engine or make_engine()
    factory = AsyncMock(return_value=engine)
    session = ExtractionSession(
        settings=Settings(_env_file=None, **settings),
        factory=factory,
        reader=reader or FakeReader(),
        capability_probe=lambda: capability,
    )
    return session, factory


# --- Start Tests ---


async def test_start_builds_engine() -> None:
    """Test start() brings the engine to ready."""
    session, factory = make_session()

    assert await session.start() is True
    assert session.lifecycle.state is EngineState.READY
    assert session.last_error is None
    factory.assert_awaited_once()


async def test_unsupported_host_never_constructs() -> None:
    """Test the capability gate blocks engine construction."""
    session, factory = make_session(capability=NO_GPU)

    assert session.can_run is False
    assert await session.start() is False
    assert session.last_error.code is ErrorCode.CAPABILITY_UNSUPPORTED
    assert session.lifecycle.state is EngineState.ABSENT
    factory.assert_not_awaited()


async def test_acceleration_requirement_can_be_disabled() -> None:
    """Test CPU-only hosts proceed when the requirement is off."""
    session, factory = make_session(capability=NO_GPU, require_acceleration=False)

    assert session.capability.supported is False
    assert await session.start() is True
    factory.assert_awaited_once()


async def test_construction_failure_is_reported_then_retried() -> None:
    """Test a failed build is reported and a later start() retries."""
    engine = make_engine()
    session, factory = make_session(engine=engine)
    factory.side_effect = [ConnectionError("server down"), engine]

    assert await session.start() is False
    assert session.last_error.code is ErrorCode.ENGINE_CONSTRUCTION_FAILED
    assert "server down" in session.last_error.message

    assert await session.start() is True
    assert session.last_error is None
    assert factory.await_count == 2


def test_probe_runs_once() -> None:
    """Test the host is probed exactly once per session."""
    probe = CountingProbe(GPU)
    session = ExtractionSession(
        settings=Settings(_env_file=None),
        factory=AsyncMock(),
        reader=FakeReader(),
        capability_probe=probe,
    )

    assert session.can_run
    assert session.can_run
    assert probe.calls == 1


def test_default_reader_honours_page_limit() -> None:
    """Test the default PDF reader takes its page cap from settings."""
    from localextract.adapters.pdf import PdfTextReader

    session = ExtractionSession(
        settings=Settings(_env_file=None, max_pages=3),
        factory=AsyncMock(),
        capability_probe=lambda: GPU,
    )

    assert isinstance(session.reader, PdfTextReader)
    assert session.reader.max_pages == 3


# --- Extraction Tests ---


async def test_extract_file_joins_pages() -> None:
    """Test page text is labelled, normalized and sent to the engine."""
    engine = make_engine()
    reader = FakeReader()
    session, _ = make_session(engine=engine, reader=reader)
    await session.start()

    result = await session.extract_file(Path("statement.pdf"), PredefinedSchema())

    assert result.ok
    assert reader.sources == [Path("statement.pdf")]
    content = engine.generate.await_args.args[0].messages[0].content
    assert "Page 1:\nAcme Bank Balance: 500 USD\n\nPage 2:\n\n\n" in content


async def test_extract_file_unreadable_document() -> None:
    """Test reader errors become EXTRACTION_ERROR results."""
    session, _ = make_session(reader=FakeReader(error=ExtractionError("Not a valid PDF document")))
    await session.start()

    result = await session.extract_file(b"not a pdf", PredefinedSchema())

    assert result.reason is ErrorCode.EXTRACTION_ERROR
    assert result.detail == "Not a valid PDF document"


async def test_extract_file_without_text() -> None:
    """Test scanned or blank documents are not submitted."""
    engine = make_engine()
    session, _ = make_session(engine=engine, reader=FakeReader(pages=["", "  \n"]))
    await session.start()
    engine.generate.reset_mock()

    result = await session.extract_file(Path("scan.pdf"), PredefinedSchema())

    assert result.reason is ErrorCode.EXTRACTION_ERROR
    engine.generate.assert_not_awaited()


async def test_extract_before_start_is_not_ready() -> None:
    """Test extraction without start() reports ENGINE_NOT_READY."""
    session, factory = make_session()

    result = await session.extract_text("Balance: 500 USD", PredefinedSchema())

    assert result.reason is ErrorCode.ENGINE_NOT_READY
    factory.assert_not_awaited()


async def test_extractions_are_serialized() -> None:
    """Test concurrent calls never overlap on the engine."""
    active = 0
    peak = 0

    async def generate(request):
        nonlocal active, peak
        active += 1
        peak = max(peak, active)
        await asyncio.sleep(0.01)
        active -= 1
        return Completion(text=ACCOUNT_JSON, model="test-model")

    engine = make_engine()
    engine.generate.side_effect = generate
    session, _ = make_session(engine=engine)
    await session.start()

    results = await asyncio.gather(
        *(session.extract_text(f"Balance: {n} USD", PredefinedSchema()) for n in range(4))
    )

    assert all(r.ok for r in results)
    assert peak == 1


async def test_context_manager_closes_engine() -> None:
    """Test leaving the session closes the engine transport."""
    engine = make_engine()
    session, _ = make_session(engine=engine)

    async with session:
        await session.start()

    engine.close.assert_awaited_once()
