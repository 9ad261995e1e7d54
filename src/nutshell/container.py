"""Composition root: builds the object graph at process start."""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncEngine

from nutshell.config import Settings, get_settings
from nutshell.infrastructure.database import (
    create_engine,
    create_session_factory,
    init_models,
)
from nutshell.infrastructure.preferences import UserPreferences
from nutshell.infrastructure.summarizer_client import SummarizerClient
from nutshell.infrastructure.web_extractor import WebContentExtractor
from nutshell.repositories.summary_repo import SummaryStore
from nutshell.services.summarizer import SummarizerService


@dataclass
class Container:
    """Long-lived collaborators shared by all requests."""

    engine: AsyncEngine
    client: SummarizerClient
    extractor: WebContentExtractor
    store: SummaryStore
    preferences: UserPreferences
    service: SummarizerService

    async def aclose(self) -> None:
        """Release HTTP sessions and database connections."""
        await self.client.close()
        await self.extractor.close()
        await self.engine.dispose()


async def build_container(settings: Settings | None = None) -> Container:
    """Wire the summarization service from settings."""
    settings = settings or get_settings()

    engine = create_engine(settings.database_url, echo=not settings.is_production)
    await init_models(engine)
    store = SummaryStore(create_session_factory(engine))

    client = SummarizerClient(
        base_url=settings.summarizer_api_base_url,
        timeout_seconds=settings.summarizer_timeout_seconds,
        chunk_delay_ms=settings.stream_chunk_delay_ms,
    )
    extractor = WebContentExtractor(
        reader_base_url=settings.reader_base_url,
        timeout_seconds=settings.extractor_timeout_seconds,
        reader_timeout_seconds=settings.reader_timeout_seconds,
        user_agent=settings.extractor_user_agent,
        min_content_length=settings.min_content_length,
    )
    preferences = UserPreferences(settings.preferences_path)

    service = SummarizerService(
        client=client,
        extractor=extractor,
        store=store,
        preferences=preferences,
        max_tokens=settings.summarize_max_tokens,
        web_max_tokens=settings.web_summarize_max_tokens,
    )
    return Container(
        engine=engine,
        client=client,
        extractor=extractor,
        store=store,
        preferences=preferences,
        service=service,
    )
