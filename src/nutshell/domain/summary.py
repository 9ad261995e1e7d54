"""Summary domain entity and summarization wire models."""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime

from pydantic import BaseModel

DEFAULT_PROMPT = "Summarize the following text concisely:"
WEB_PROMPT = "Summarize the following web content concisely:"

SHORT_SUMMARY_CHARS = 100


def _new_id() -> str:
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class SummaryData:
    """Represents a generated summary and its source."""

    original_text: str
    summary: str
    id: str = field(default_factory=_new_id)
    created_at: datetime = field(default_factory=_now)
    is_saved: bool = False

    @property
    def short_summary(self) -> str:
        """First two sentences, or a truncated preview for single-sentence summaries."""
        sentences = self.summary.split(". ")
        if len(sentences) >= 2:
            return ". ".join(sentences[:2]).rstrip(".") + "."
        if len(self.summary) > SHORT_SUMMARY_CHARS:
            return self.summary[:SHORT_SUMMARY_CHARS] + "..."
        return self.summary


class SummarizeRequest(BaseModel):
    """Request body for the summarization endpoint."""

    text: str
    max_tokens: int = 256
    prompt: str = DEFAULT_PROMPT

    @classmethod
    def for_web_content(cls, text: str, max_tokens: int = 1024) -> "SummarizeRequest":
        """Build a request tuned for extracted web page text."""
        return cls(text=text, max_tokens=max_tokens, prompt=WEB_PROMPT)


class SummarizeResponse(BaseModel):
    """Response body from the summarization endpoint."""

    summary: str
    model: str = "unknown"
    tokens_used: int | None = None
    latency_ms: float | None = None


class StreamChunk(BaseModel):
    """One server-sent event of a streamed summary."""

    content: str = ""
    done: bool = False
