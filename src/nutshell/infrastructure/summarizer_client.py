"""Summarization API client."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from contextlib import aclosing

import aiohttp
from aiohttp import ClientTimeout
from pydantic import ValidationError

from nutshell.config import get_settings
from nutshell.domain.errors import NetworkUnavailable, RemoteError
from nutshell.domain.results import ApiResult, Error, Success
from nutshell.domain.structured import (
    DEFAULT_STYLE,
    StreamMetadata,
    StructuredPatch,
    StructuredSummarizeRequest,
    SummaryStyle,
)
from nutshell.domain.summary import (
    DEFAULT_PROMPT,
    StreamChunk,
    SummarizeRequest,
    SummarizeResponse,
)

logger = logging.getLogger(__name__)
settings = get_settings()

SUMMARIZE_PATH = "/api/v1/summarize/"
STREAM_PATH = "/api/v2/summarize/stream"
STRUCTURED_STREAM_PATH = "/api/v4/scrape-and-summarize/stream-ndjson"

TIMEOUT_MESSAGE = (
    "Request timed out. The summarization service is taking longer than expected. "
    "Please try again."
)
UNREACHABLE_MESSAGE = (
    "Cannot reach the summarization service. Please check your network connection."
)


class SummarizerClient:
    """Async client for the remote summarization API.

    Every call makes exactly one attempt. ``summarize_text`` converts all
    transport and protocol failures into ``Error`` results. The streaming
    methods raise ``NetworkUnavailable`` or ``RemoteError`` instead, since a
    half-consumed stream has no single result to return.
    """

    def __init__(
        self,
        base_url: str | None = None,
        timeout_seconds: int | None = None,
        chunk_delay_ms: int | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: Summarization service base URL (defaults to config)
            timeout_seconds: Total request timeout in seconds
            chunk_delay_ms: Pause after each streamed chunk in milliseconds
        """
        self.base_url = (base_url or settings.summarizer_api_base_url).rstrip("/")
        self.timeout = ClientTimeout(
            total=timeout_seconds or settings.summarizer_timeout_seconds
        )
        delay_ms = (
            settings.stream_chunk_delay_ms if chunk_delay_ms is None else chunk_delay_ms
        )
        self.chunk_delay = delay_ms / 1000
        self._session: aiohttp.ClientSession | None = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create aiohttp session."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """Close the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def summarize_text(self, request: SummarizeRequest) -> ApiResult[SummarizeResponse]:
        """Summarize text in a single request.

        Args:
            request: Text and summarization parameters

        Returns:
            Success with the parsed response, or Error with a diagnostic message
        """
        url = f"{self.base_url}{SUMMARIZE_PATH}"
        logger.debug(f"Summarizing {len(request.text)} characters via {url}")

        try:
            session = await self._get_session()
            async with session.post(url, json=request.model_dump()) as response:
                if not 200 <= response.status < 300:
                    detail = (await response.text()).strip()[:200]
                    logger.error(f"HTTP {response.status} from {url}")
                    message = f"Summarization service returned HTTP {response.status}"
                    return Error(f"{message}: {detail}" if detail else message)
                data = await response.json()

            return Success(SummarizeResponse.model_validate(data))

        except TimeoutError:
            logger.warning(f"Timeout calling {url}")
            return Error(TIMEOUT_MESSAGE)
        except aiohttp.ClientConnectionError as e:
            logger.warning(f"Connection error calling {url}: {e}")
            return Error(str(NetworkUnavailable(UNREACHABLE_MESSAGE)))
        except aiohttp.ClientError as e:
            logger.warning(f"Client error calling {url}: {e}")
            return Error(f"Network error occurred: {e}")
        except (ValidationError, ValueError) as e:
            logger.error(f"Malformed response from {url}: {e}")
            return Error(f"Malformed response from summarization service: {e}")

    async def stream_summary(
        self,
        text: str,
        max_tokens: int | None = None,
        prompt: str = DEFAULT_PROMPT,
    ) -> AsyncIterator[StreamChunk]:
        """Stream a summary as server-sent events.

        Args:
            text: Text to summarize
            max_tokens: Token limit for the summary (defaults to config)
            prompt: Instruction sent with the text

        Yields:
            StreamChunk objects until one arrives with ``done`` set

        Raises:
            NetworkUnavailable: The service could not be reached
            RemoteError: The service failed or reported an error event
        """
        request = SummarizeRequest(
            text=text,
            max_tokens=max_tokens or settings.summarize_max_tokens,
            prompt=prompt,
        )
        chunk_count = 0

        async with aclosing(self._stream_events(STREAM_PATH, request.model_dump())) as events:
            async for event in events:
                if event.get("error"):
                    raise RemoteError(str(event["error"]))
                try:
                    chunk = StreamChunk.model_validate(event)
                except ValidationError:
                    logger.warning(f"Skipping invalid stream event: {str(event)[:50]}")
                    continue

                chunk_count += 1
                yield chunk

                if chunk.done:
                    logger.debug(f"Stream completed after {chunk_count} chunks")
                    return
                if self.chunk_delay:
                    await asyncio.sleep(self.chunk_delay)

        logger.debug(f"Stream closed without done marker after {chunk_count} chunks")

    async def stream_structured_summary(
        self,
        text: str | None = None,
        url: str | None = None,
        style: SummaryStyle = DEFAULT_STYLE,
        max_tokens: int | None = None,
        include_metadata: bool = True,
    ) -> AsyncIterator[StreamMetadata | StructuredPatch]:
        """Stream a structured summary of text, or of a page the service fetches.

        Exactly one of ``text`` or ``url`` must be given.

        Yields:
            An optional StreamMetadata, then StructuredPatch events until one
            arrives with ``done`` set

        Raises:
            ValidationError: Neither or both sources given, or an unknown style
            NetworkUnavailable: The service could not be reached
            RemoteError: The service failed or reported an error event
        """
        request = StructuredSummarizeRequest(
            text=text,
            url=url,
            style=style,
            max_tokens=max_tokens or settings.summarize_max_tokens,
            include_metadata=include_metadata,
        )
        body = request.model_dump(exclude_none=True)
        patch_count = 0

        async with aclosing(self._stream_events(STRUCTURED_STREAM_PATH, body)) as events:
            async for event in events:
                if event.get("error"):
                    raise RemoteError(str(event["error"]))
                try:
                    if event.get("type") == "metadata":
                        yield StreamMetadata.model_validate(event.get("data"))
                        continue
                    if "state" not in event:
                        continue
                    patch = StructuredPatch.model_validate(event)
                except ValidationError:
                    logger.warning(f"Skipping invalid structured event: {str(event)[:50]}")
                    continue

                patch_count += 1
                yield patch

                if patch.done:
                    logger.debug(f"Structured stream completed after {patch_count} patches")
                    return
                if self.chunk_delay:
                    await asyncio.sleep(self.chunk_delay)

        logger.debug(f"Structured stream closed without done after {patch_count} patches")

    async def _stream_events(self, path: str, body: dict) -> AsyncIterator[dict]:
        """POST ``body`` and yield each JSON object sent as an SSE ``data:`` line.

        Lines that cannot be decoded or parsed are skipped with a warning.
        """
        url = f"{self.base_url}{path}"
        try:
            session = await self._get_session()
            async with session.post(
                url,
                json=body,
                headers={"Accept": "text/event-stream"},
            ) as response:
                if not 200 <= response.status < 300:
                    logger.error(f"HTTP {response.status} from {url}")
                    raise RemoteError(
                        f"Summarization service returned HTTP {response.status}",
                        status=response.status,
                    )

                async for raw_line in response.content:
                    event = self._parse_line(raw_line)
                    if event is not None:
                        yield event

        except TimeoutError as e:
            logger.warning(f"Timeout streaming from {url}")
            raise RemoteError(TIMEOUT_MESSAGE) from e
        except aiohttp.ClientConnectionError as e:
            logger.warning(f"Connection error streaming from {url}: {e}")
            raise NetworkUnavailable(UNREACHABLE_MESSAGE) from e
        except aiohttp.ClientError as e:
            logger.warning(f"Client error streaming from {url}: {e}")
            raise RemoteError(f"Network error occurred: {e}") from e

    @staticmethod
    def _parse_line(raw_line: bytes) -> dict | None:
        """Parse one SSE line; None for comments, blanks and malformed events."""
        try:
            line = raw_line.decode("utf-8").strip()
        except UnicodeDecodeError:
            logger.warning(f"Skipping undecodable stream line: {raw_line[:50]!r}")
            return None
        if not line.startswith("data:"):
            return None

        payload = line[len("data:"):].strip()
        try:
            data = json.loads(payload)
        except ValueError:
            logger.warning(f"Skipping malformed stream event: {payload[:50]}")
            return None

        if not isinstance(data, dict):
            logger.warning(f"Skipping non-object stream event: {payload[:50]}")
            return None
        return data
