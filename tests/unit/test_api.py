"""Tests for the HTTP API."""

import json
from unittest.mock import MagicMock

import pytest

from nutshell.domain.errors import ExtractionFailed
from nutshell.domain.results import Error, Failure
from nutshell.domain.structured import StreamMetadata, StructuredPatch, StructuredSummary
from nutshell.domain.summary import StreamChunk, SummaryData
from nutshell.infrastructure.models import Base

FOX = "The quick brown fox jumps over the lazy dog."


def _parse_sse(body: str) -> list[dict]:
    return [
        json.loads(block.removeprefix("data: "))
        for block in body.split("\n\n")
        if block.startswith("data: ")
    ]


class TestSummarizeEndpoints:
    """Tests for the single-shot summarize endpoints."""

    @pytest.mark.asyncio
    async def test_summarize_text(self, api_client):
        resp = await api_client.post("/api/v1/summaries/text", json={"text": FOX})

        assert resp.status_code == 200
        body = resp.json()
        assert body["original_text"] == FOX
        assert body["summary"] == "A concise summary."
        assert body["is_saved"] is False
        assert body["short_summary"]

    @pytest.mark.asyncio
    async def test_summarize_text_is_not_stored(self, api_client):
        await api_client.post("/api/v1/summaries/text", json={"text": FOX})

        resp = await api_client.get("/api/v1/summaries")

        assert resp.json()["total"] == 0

    @pytest.mark.asyncio
    async def test_empty_text_rejected(self, api_client):
        resp = await api_client.post("/api/v1/summaries/text", json={"text": ""})
        assert resp.status_code == 422

    @pytest.mark.asyncio
    async def test_remote_error_maps_to_502(self, api_client, fake_client):
        fake_client.summarize_text.return_value = Error("Request timed out.")

        resp = await api_client.post("/api/v1/summaries/text", json={"text": FOX})

        assert resp.status_code == 502
        assert resp.json()["detail"] == "Request timed out."

    @pytest.mark.asyncio
    async def test_summarize_url(self, api_client):
        resp = await api_client.post(
            "/api/v1/summaries/url", json={"url": "https://example.com/article"}
        )

        assert resp.status_code == 200
        assert resp.json()["original_text"] == "https://example.com/article"

    @pytest.mark.asyncio
    async def test_extraction_failure_maps_to_502(self, api_client, fake_extractor, fake_client):
        fake_extractor.extract_web_content.return_value = Failure(
            ExtractionFailed("Page fetch timeout after 30s")
        )

        resp = await api_client.post(
            "/api/v1/summaries/url", json={"url": "https://example.com/slow"}
        )

        assert resp.status_code == 502
        assert "timeout" in resp.json()["detail"]
        fake_client.summarize_text.assert_not_awaited()


class TestStreamEndpoint:
    """Tests for server-sent event streaming."""

    @pytest.mark.asyncio
    async def test_streams_progress_then_complete(self, api_client, fake_client):
        fake_client.chunks = [
            StreamChunk(content="A fox", done=False),
            StreamChunk(content=" jumps.", done=True),
        ]

        resp = await api_client.post("/api/v1/summaries/stream", json={"text": FOX})

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        events = _parse_sse(resp.text)
        assert [e["type"] for e in events] == ["progress", "progress", "complete"]
        assert events[0]["text"] == "A fox"
        assert events[-1]["summary"]["summary"] == "A fox jumps."

    @pytest.mark.asyncio
    async def test_stream_error_event(self, api_client, fake_client):
        fake_client.stream_error = RuntimeError("connection reset")

        resp = await api_client.post("/api/v1/summaries/stream", json={"text": FOX})

        events = _parse_sse(resp.text)
        assert events == [
            {"type": "error", "text": None, "summary": None, "message": "connection reset"}
        ]

    @pytest.mark.asyncio
    async def test_single_event_when_streaming_disabled(self, api_client, preferences):
        await preferences.set_streaming_enabled(False)

        resp = await api_client.post("/api/v1/summaries/stream", json={"text": FOX})

        events = _parse_sse(resp.text)
        assert len(events) == 1
        assert events[0]["type"] == "complete"

    @pytest.mark.asyncio
    async def test_url_stream(self, api_client, fake_client):
        fake_client.chunks = [StreamChunk(content="Batteries.", done=True)]

        resp = await api_client.post(
            "/api/v1/summaries/stream", json={"url": "https://example.com/article"}
        )

        events = _parse_sse(resp.text)
        assert events[-1]["summary"]["original_text"] == "https://example.com/article"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("payload", [{}, {"text": FOX, "url": "https://example.com"}])
    async def test_requires_exactly_one_source(self, api_client, payload):
        resp = await api_client.post("/api/v1/summaries/stream", json=payload)
        assert resp.status_code == 422


class TestStructuredStreamEndpoint:
    """Tests for structured summary streaming."""

    @pytest.mark.asyncio
    async def test_streams_metadata_progress_then_complete(self, api_client, fake_client):
        fake_client.structured_events = [
            StreamMetadata(input_type="url", style="skimmer", url="https://example.com/a"),
            StructuredPatch(state=StructuredSummary(title="Batteries"), tokens_used=2),
            StructuredPatch(
                state=StructuredSummary(
                    title="Batteries",
                    main_summary="Sodium cells charge in minutes.",
                    key_points=["Cheap", "Fast"],
                ),
                done=True,
                tokens_used=20,
                latency_ms=450.0,
            ),
        ]

        resp = await api_client.post(
            "/api/v1/summaries/structured/stream",
            json={"url": "https://example.com/a", "style": "skimmer"},
        )

        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("text/event-stream")
        events = _parse_sse(resp.text)
        assert [e["type"] for e in events] == ["metadata", "progress", "complete"]
        assert events[0]["metadata"]["input_type"] == "url"
        assert events[1]["structured"]["title"] == "Batteries"
        complete = events[-1]
        assert complete["structured"]["key_points"] == ["Cheap", "Fast"]
        assert complete["summary"]["original_text"] == "https://example.com/a"
        assert "• Cheap" in complete["summary"]["summary"]
        assert complete["tokens_used"] == 20
        assert fake_client.structured_calls[0]["style"] == "skimmer"

    @pytest.mark.asyncio
    async def test_error_event(self, api_client, fake_client):
        fake_client.structured_error = RuntimeError("scrape failed")

        resp = await api_client.post(
            "/api/v1/summaries/structured/stream", json={"text": FOX}
        )

        events = _parse_sse(resp.text)
        assert len(events) == 1
        assert events[0]["type"] == "error"
        assert events[0]["message"] == "scrape failed"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"text": FOX, "url": "https://example.com"},
            {"text": FOX, "style": "haiku"},
        ],
    )
    async def test_rejects_invalid_request(self, api_client, payload):
        resp = await api_client.post("/api/v1/summaries/structured/stream", json=payload)
        assert resp.status_code == 422


class TestStoredSummaries:
    """Tests for storing, listing and managing summaries."""

    @pytest.mark.asyncio
    async def test_save_and_get(self, api_client):
        resp = await api_client.post(
            "/api/v1/summaries",
            json={"original_text": FOX, "summary": "A fox jumps."},
        )

        assert resp.status_code == 201
        summary_id = resp.json()["id"]

        resp = await api_client.get(f"/api/v1/summaries/{summary_id}")
        assert resp.status_code == 200
        assert resp.json()["summary"] == "A fox jumps."

    @pytest.mark.asyncio
    async def test_save_with_same_id_replaces(self, api_client):
        payload = {"id": "fixed-id", "original_text": FOX, "summary": "First."}
        await api_client.post("/api/v1/summaries", json=payload)
        await api_client.post("/api/v1/summaries", json={**payload, "summary": "Second."})

        resp = await api_client.get("/api/v1/summaries")

        assert resp.json()["total"] == 1
        assert resp.json()["summaries"][0]["summary"] == "Second."

    @pytest.mark.asyncio
    async def test_get_missing_returns_404(self, api_client):
        resp = await api_client.get("/api/v1/summaries/missing")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_delete(self, api_client, store):
        data = SummaryData(original_text=FOX, summary="A fox jumps.")
        await store.save_summary(data)

        resp = await api_client.delete(f"/api/v1/summaries/{data.id}")

        assert resp.status_code == 204
        assert await store.get_summary(data.id) is None

    @pytest.mark.asyncio
    async def test_delete_missing_is_204(self, api_client):
        resp = await api_client.delete("/api/v1/summaries/missing")
        assert resp.status_code == 204

    @pytest.mark.asyncio
    async def test_toggle_save(self, api_client, store):
        data = SummaryData(original_text=FOX, summary="A fox jumps.")
        await store.save_summary(data)

        resp = await api_client.post(f"/api/v1/summaries/{data.id}/toggle-save")

        assert resp.status_code == 200
        assert resp.json() == {"id": data.id, "is_saved": True}

    @pytest.mark.asyncio
    async def test_toggle_missing_returns_404(self, api_client):
        resp = await api_client.post("/api/v1/summaries/missing/toggle-save")
        assert resp.status_code == 404

    @pytest.mark.asyncio
    async def test_list_filters(self, api_client, store):
        saved = SummaryData(original_text="Fox news", summary="Foxes.", is_saved=True)
        unsaved = SummaryData(original_text="Fox tales", summary="More foxes.")
        other = SummaryData(original_text="Gardening", summary="Plants.", is_saved=True)
        for data in (saved, unsaved, other):
            await store.save_summary(data)

        all_ids = {s["id"] for s in (await api_client.get("/api/v1/summaries")).json()["summaries"]}
        assert all_ids == {saved.id, unsaved.id, other.id}

        resp = await api_client.get("/api/v1/summaries", params={"saved_only": "true"})
        assert {s["id"] for s in resp.json()["summaries"]} == {saved.id, other.id}

        resp = await api_client.get("/api/v1/summaries", params={"q": "FOX"})
        assert {s["id"] for s in resp.json()["summaries"]} == {saved.id, unsaved.id}

        resp = await api_client.get(
            "/api/v1/summaries", params={"q": "fox", "saved_only": "true"}
        )
        assert [s["id"] for s in resp.json()["summaries"]] == [saved.id]

    @pytest.mark.asyncio
    async def test_storage_failure_maps_to_503(self, api_client, test_engine):
        async with test_engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

        resp = await api_client.get("/api/v1/summaries/anything")

        assert resp.status_code == 503


class TestPreferencesEndpoints:
    """Tests for the streaming preference endpoints."""

    @pytest.mark.asyncio
    async def test_default_enabled(self, api_client):
        resp = await api_client.get("/api/v1/preferences/streaming")
        assert resp.json() == {"enabled": True}

    @pytest.mark.asyncio
    async def test_update(self, api_client, preferences):
        resp = await api_client.put("/api/v1/preferences/streaming", json={"enabled": False})

        assert resp.json() == {"enabled": False}
        assert await preferences.is_streaming_enabled() is False


class TestHealth:
    """Tests for the health endpoint."""

    @pytest.mark.asyncio
    async def test_healthy(self, api_client):
        resp = await api_client.get("/health")

        assert resp.status_code == 200
        assert resp.json()["database"] == "connected"

    @pytest.mark.asyncio
    async def test_unhealthy_when_database_unreachable(self, app, api_client):
        engine = MagicMock()
        engine.connect.side_effect = OSError("database is gone")
        app.state.container.engine = engine

        resp = await api_client.get("/health")

        assert resp.status_code == 503
