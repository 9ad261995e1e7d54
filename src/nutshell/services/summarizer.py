"""Summarization service: the entry point callers depend on.

Combines the summarization API client, the web content extractor and the
summary store behind one contract. Summaries are returned, never persisted
implicitly; callers save them explicitly. Failures come back as ``Error``
results or terminal ``StreamError`` events.
"""

from collections.abc import AsyncIterator
from contextlib import aclosing

from nutshell.config import get_settings
from nutshell.domain.results import (
    ApiResult,
    Error,
    Failure,
    StreamComplete,
    StreamError,
    StreamingResult,
    StreamProgress,
    StructuredComplete,
    StructuredProgress,
    StructuredStreamingResult,
    Success,
)
from nutshell.domain.structured import (
    DEFAULT_STYLE,
    StreamMetadata,
    StructuredSummary,
    StructuredSummaryData,
    SummaryStyle,
)
from nutshell.domain.summary import (
    DEFAULT_PROMPT,
    WEB_PROMPT,
    SummarizeRequest,
    SummaryData,
)
from nutshell.infrastructure.preferences import UserPreferences
from nutshell.infrastructure.summarizer_client import SummarizerClient
from nutshell.infrastructure.web_extractor import WebContentExtractor
from nutshell.repositories.summary_repo import Snapshot, SummaryStore

settings = get_settings()

UNKNOWN_ERROR = "Unknown error occurred"
EMPTY_SUMMARY = "Summarization service returned an empty summary"


def _error(message: str | None) -> Error:
    return Error(message or UNKNOWN_ERROR)


def to_terminal_event(result: ApiResult[SummaryData]) -> StreamingResult:
    """Express a single-shot result as the terminal event of a stream."""
    if isinstance(result, Success):
        return StreamComplete(result.data)
    return StreamError(result.message)


class SummarizerService:
    """Service for summarizing text or web pages and managing saved summaries."""

    def __init__(
        self,
        client: SummarizerClient,
        extractor: WebContentExtractor,
        store: SummaryStore,
        preferences: UserPreferences,
        max_tokens: int | None = None,
        web_max_tokens: int | None = None,
    ) -> None:
        """Initialize the service with its collaborators."""
        self.client = client
        self.extractor = extractor
        self.store = store
        self.preferences = preferences
        self.max_tokens = max_tokens or settings.summarize_max_tokens
        self.web_max_tokens = web_max_tokens or settings.web_summarize_max_tokens

    # --- Single-shot summarization ---

    async def summarize_from_text(self, text: str) -> ApiResult[SummaryData]:
        """Summarize raw text."""
        request = SummarizeRequest(text=text, max_tokens=self.max_tokens)
        return await self._summarize(text, request)

    async def summarize_from_url(self, url: str) -> ApiResult[SummaryData]:
        """Extract a web page and summarize its content.

        The summarization API is not called when extraction fails.
        """
        extraction = await self.extractor.extract_web_content(url)
        if isinstance(extraction, Failure):
            return _error(extraction.message)

        request = SummarizeRequest.for_web_content(
            extraction.data.content, max_tokens=self.web_max_tokens
        )
        return await self._summarize(url, request)

    async def _summarize(self, source: str, request: SummarizeRequest) -> ApiResult[SummaryData]:
        result = await self.client.summarize_text(request)
        if isinstance(result, Error):
            return _error(result.message)

        summary = result.data.summary.strip()
        if not summary:
            return Error(EMPTY_SUMMARY)
        return Success(SummaryData(original_text=source, summary=summary))

    # --- Streaming summarization ---

    async def summarize_text_streaming(self, text: str) -> AsyncIterator[StreamingResult]:
        """Stream a summary of raw text."""
        async with aclosing(
            self._stream(text, text, self.max_tokens, DEFAULT_PROMPT)
        ) as events:
            async for event in events:
                yield event

    async def summarize_url_streaming(self, url: str) -> AsyncIterator[StreamingResult]:
        """Extract a web page and stream a summary of its content."""
        extraction = await self.extractor.extract_web_content(url)
        if isinstance(extraction, Failure):
            yield StreamError(extraction.message or UNKNOWN_ERROR)
            return

        async with aclosing(
            self._stream(url, extraction.data.content, self.web_max_tokens, WEB_PROMPT)
        ) as events:
            async for event in events:
                yield event

    async def _stream(
        self,
        source: str,
        text: str,
        max_tokens: int,
        prompt: str,
    ) -> AsyncIterator[StreamingResult]:
        parts: list[str] = []
        try:
            async with aclosing(
                self.client.stream_summary(text, max_tokens=max_tokens, prompt=prompt)
            ) as chunks:
                async for chunk in chunks:
                    if chunk.content:
                        parts.append(chunk.content)
                        yield StreamProgress(chunk.content)
                    if chunk.done:
                        break
        except Exception as e:
            yield StreamError(str(e) or UNKNOWN_ERROR)
            return

        summary = "".join(parts).strip()
        if not summary:
            yield StreamError(EMPTY_SUMMARY)
            return
        yield StreamComplete(SummaryData(original_text=source, summary=summary))

    # --- Preference-gated entry points ---

    async def summarize(self, text: str) -> AsyncIterator[StreamingResult]:
        """Summarize text, streaming when the user preference allows it.

        With streaming disabled the sequence holds a single terminal event.
        """
        if await self.preferences.is_streaming_enabled():
            async with aclosing(self.summarize_text_streaming(text)) as events:
                async for event in events:
                    yield event
        else:
            yield to_terminal_event(await self.summarize_from_text(text))

    async def summarize_url(self, url: str) -> AsyncIterator[StreamingResult]:
        """Summarize a web page, streaming when the user preference allows it."""
        if await self.preferences.is_streaming_enabled():
            async with aclosing(self.summarize_url_streaming(url)) as events:
                async for event in events:
                    yield event
        else:
            yield to_terminal_event(await self.summarize_from_url(url))

    # --- Structured summarization ---

    async def summarize_structured(
        self,
        text: str | None = None,
        url: str | None = None,
        style: SummaryStyle = DEFAULT_STYLE,
    ) -> AsyncIterator[StructuredStreamingResult]:
        """Stream a structured summary of text or of a page the service fetches.

        Yields the metadata event when the service sends one, a progress
        event per partial state, then exactly one ``StructuredComplete`` or
        ``StreamError``. Pages are fetched by the service, not the extractor.
        """
        state: StructuredSummary | None = None
        tokens_used = 0
        latency_ms = None
        try:
            async with aclosing(
                self.client.stream_structured_summary(text=text, url=url, style=style)
            ) as events:
                async for event in events:
                    if isinstance(event, StreamMetadata):
                        yield event
                        continue

                    state = event.state
                    tokens_used = event.tokens_used
                    latency_ms = event.latency_ms
                    if event.done:
                        break
                    yield StructuredProgress(event.state, event.tokens_used)
        except Exception as e:
            yield StreamError(str(e) or UNKNOWN_ERROR)
            return

        if state is None or state.is_empty():
            yield StreamError(EMPTY_SUMMARY)
            return
        data = StructuredSummaryData(original_text=text or url or "", summary=state)
        yield StructuredComplete(data, tokens_used, latency_ms)

    # --- Saved summaries ---

    async def save_summary(self, data: SummaryData) -> None:
        """Persist a summary, replacing any record with the same ID."""
        await self.store.save_summary(data)

    async def delete_summary(self, summary_id: str) -> None:
        """Delete a summary; unknown IDs are ignored."""
        await self.store.delete_summary(summary_id)

    async def toggle_save_status(self, summary_id: str) -> bool | None:
        """Flip the saved flag; returns None for unknown IDs."""
        return await self.store.toggle_save_status(summary_id)

    async def get_summary(self, summary_id: str) -> SummaryData | None:
        """Get a stored summary by ID."""
        return await self.store.get_summary(summary_id)

    def get_all_summaries(self) -> AsyncIterator[Snapshot]:
        """Live list of all summaries, newest first."""
        return self.store.get_all_summaries()

    def get_saved_summaries(self) -> AsyncIterator[Snapshot]:
        """Live list of saved summaries."""
        return self.store.get_saved_summaries()

    def search_summaries(self, query: str) -> AsyncIterator[Snapshot]:
        """Live search over source and summary text."""
        return self.store.search_summaries(query)
