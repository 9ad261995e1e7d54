"""Pytest configuration and fixtures."""

from collections.abc import AsyncGenerator, AsyncIterator
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from nutshell.api.dependencies import get_summarizer_service, get_user_preferences
from nutshell.domain.results import Success
from nutshell.domain.structured import StreamMetadata, StructuredPatch
from nutshell.domain.summary import (
    DEFAULT_PROMPT,
    StreamChunk,
    SummarizeResponse,
)
from nutshell.domain.web_content import WebContent
from nutshell.infrastructure.database import (
    create_engine,
    create_session_factory,
    init_models,
)
from nutshell.infrastructure.preferences import UserPreferences
from nutshell.main import create_app
from nutshell.repositories.summary_repo import SummaryStore
from nutshell.services.summarizer import SummarizerService

ARTICLE_TEXT = (
    "Researchers announced a new battery chemistry that charges in minutes. "
    "The cells use a sodium-based electrolyte and avoid scarce metals, "
    "which could make grid storage far cheaper over the next decade."
)


class FakeSummarizerClient:
    """Stands in for SummarizerClient, recording every call."""

    def __init__(self) -> None:
        self.summarize_text = AsyncMock(
            return_value=Success(
                SummarizeResponse(summary="A concise summary.", model="test-model")
            )
        )
        self.chunks: list[StreamChunk] = []
        self.stream_error: Exception | None = None
        self.stream_calls: list[dict] = []
        self.stream_closed = False
        self.structured_events: list = []
        self.structured_error: Exception | None = None
        self.structured_calls: list[dict] = []
        self.structured_closed = False

    async def stream_summary(
        self,
        text: str,
        max_tokens: int | None = None,
        prompt: str = DEFAULT_PROMPT,
    ) -> AsyncIterator[StreamChunk]:
        self.stream_calls.append({"text": text, "max_tokens": max_tokens, "prompt": prompt})
        try:
            for chunk in self.chunks:
                yield chunk
            if self.stream_error is not None:
                raise self.stream_error
        finally:
            self.stream_closed = True

    async def stream_structured_summary(
        self,
        text: str | None = None,
        url: str | None = None,
        style: str = "executive",
        max_tokens: int | None = None,
        include_metadata: bool = True,
    ) -> AsyncIterator[StreamMetadata | StructuredPatch]:
        self.structured_calls.append({"text": text, "url": url, "style": style})
        try:
            for event in self.structured_events:
                yield event
            if self.structured_error is not None:
                raise self.structured_error
        finally:
            self.structured_closed = True


@pytest.fixture
async def test_engine(tmp_path) -> AsyncGenerator[AsyncEngine, None]:
    """Create a file-backed SQLite engine with tables."""
    engine = create_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", echo=False)
    await init_models(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
async def store(test_engine) -> SummaryStore:
    """Create a summary store over the test database."""
    return SummaryStore(create_session_factory(test_engine))


@pytest.fixture
def preferences(tmp_path) -> UserPreferences:
    """Create preferences backed by a temporary file."""
    return UserPreferences(tmp_path / "prefs.json")


@pytest.fixture
def fake_client() -> FakeSummarizerClient:
    """Create a fake summarization client."""
    return FakeSummarizerClient()


@pytest.fixture
def fake_extractor() -> MagicMock:
    """Create a fake extractor that succeeds with a short article."""
    extractor = MagicMock()
    extractor.extract_web_content = AsyncMock(
        return_value=Success(
            WebContent(
                title="Cheaper batteries",
                content=ARTICLE_TEXT,
                url="https://example.com/article",
            )
        )
    )
    return extractor


@pytest.fixture
def service(fake_client, fake_extractor, store, preferences) -> SummarizerService:
    """Create a summarizer service with fake remote collaborators."""
    return SummarizerService(
        client=fake_client,
        extractor=fake_extractor,
        store=store,
        preferences=preferences,
        max_tokens=256,
        web_max_tokens=1024,
    )


@pytest.fixture
def app(service, preferences, test_engine) -> FastAPI:
    """Create the app wired to the test service."""
    app = create_app()
    app.dependency_overrides[get_summarizer_service] = lambda: service
    app.dependency_overrides[get_user_preferences] = lambda: preferences
    app.state.container = SimpleNamespace(engine=test_engine)
    return app


@pytest.fixture
async def api_client(app) -> AsyncGenerator[AsyncClient, None]:
    """Create an HTTP client against the app."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        yield client
