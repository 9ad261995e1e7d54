"""Summary API endpoints."""

from collections.abc import AsyncIterator, Callable
from contextlib import aclosing
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Response, status
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from nutshell.api.dependencies import SummarizerDep
from nutshell.api.v1.schemas import (
    SaveStatusResponse,
    SaveSummaryRequest,
    StreamEvent,
    StructuredStreamEvent,
    StructuredStreamRequest,
    SummarizeStreamRequest,
    SummarizeTextRequest,
    SummarizeUrlRequest,
    SummaryListResponse,
    SummaryResponse,
)
from nutshell.domain.results import (
    ApiResult,
    Error,
    StreamingResult,
    StructuredStreamingResult,
    is_terminal,
)
from nutshell.domain.summary import SummaryData
from nutshell.repositories.summary_repo import Snapshot

router = APIRouter(prefix="/summaries", tags=["summaries"])


def _unwrap(result: ApiResult[SummaryData]) -> SummaryResponse:
    if isinstance(result, Error):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=result.message)
    return SummaryResponse.model_validate(result.data)


async def _first_snapshot(snapshots: AsyncIterator[Snapshot]) -> Snapshot:
    async with aclosing(snapshots) as live:
        return await anext(live)


async def _sse(
    events: AsyncIterator[StreamingResult | StructuredStreamingResult],
    to_schema: Callable[[Any], BaseModel] = StreamEvent.from_result,
) -> AsyncIterator[str]:
    async with aclosing(events) as stream:
        async for event in stream:
            yield f"data: {to_schema(event).model_dump_json()}\n\n"
            if is_terminal(event):
                break


@router.post("/text", response_model=SummaryResponse)
async def summarize_text(
    body: SummarizeTextRequest,
    service: SummarizerDep,
) -> SummaryResponse:
    """Summarize raw text without saving it."""
    return _unwrap(await service.summarize_from_text(body.text))


@router.post("/url", response_model=SummaryResponse)
async def summarize_url(
    body: SummarizeUrlRequest,
    service: SummarizerDep,
) -> SummaryResponse:
    """Extract a web page and summarize it without saving."""
    return _unwrap(await service.summarize_from_url(body.url))


@router.post("/stream")
async def summarize_stream(
    body: SummarizeStreamRequest,
    service: SummarizerDep,
) -> StreamingResponse:
    """Stream a summary as server-sent events, honoring the streaming preference."""
    events = service.summarize_url(body.url) if body.url else service.summarize(body.text or "")
    return StreamingResponse(_sse(events), media_type="text/event-stream")


@router.post("/structured/stream")
async def summarize_structured_stream(
    body: StructuredStreamRequest,
    service: SummarizerDep,
) -> StreamingResponse:
    """Stream a structured summary (title, key points, category) as server-sent events."""
    events = service.summarize_structured(text=body.text, url=body.url, style=body.style)
    return StreamingResponse(
        _sse(events, StructuredStreamEvent.from_result),
        media_type="text/event-stream",
    )


@router.get("", response_model=SummaryListResponse)
async def list_summaries(
    service: SummarizerDep,
    q: str | None = Query(None, description="Text search, ignoring case for ASCII letters"),
    saved_only: bool = Query(False),
) -> SummaryListResponse:
    """List stored summaries, newest first."""
    if q:
        snapshot = await _first_snapshot(service.search_summaries(q))
        if saved_only:
            snapshot = [s for s in snapshot if s.is_saved]
    elif saved_only:
        snapshot = await _first_snapshot(service.get_saved_summaries())
    else:
        snapshot = await _first_snapshot(service.get_all_summaries())

    return SummaryListResponse(
        summaries=[SummaryResponse.model_validate(s) for s in snapshot],
        total=len(snapshot),
    )


@router.post("", response_model=SummaryResponse, status_code=status.HTTP_201_CREATED)
async def save_summary(
    body: SaveSummaryRequest,
    service: SummarizerDep,
) -> SummaryResponse:
    """Store a summary, replacing any summary with the same ID."""
    data = body.to_summary_data()
    await service.save_summary(data)
    return SummaryResponse.model_validate(data)


@router.get("/{summary_id}", response_model=SummaryResponse)
async def get_summary(
    summary_id: str,
    service: SummarizerDep,
) -> SummaryResponse:
    """Get a single stored summary."""
    summary = await service.get_summary(summary_id)
    if not summary:
        raise HTTPException(status_code=404, detail="Summary not found")
    return SummaryResponse.model_validate(summary)


@router.delete("/{summary_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_summary(
    summary_id: str,
    service: SummarizerDep,
) -> Response:
    """Delete a stored summary; unknown IDs are ignored."""
    await service.delete_summary(summary_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{summary_id}/toggle-save", response_model=SaveStatusResponse)
async def toggle_save_status(
    summary_id: str,
    service: SummarizerDep,
) -> SaveStatusResponse:
    """Flip the saved flag of a stored summary."""
    is_saved = await service.toggle_save_status(summary_id)
    if is_saved is None:
        raise HTTPException(status_code=404, detail="Summary not found")
    return SaveStatusResponse(id=summary_id, is_saved=is_saved)
