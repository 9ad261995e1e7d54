"""Pydantic schemas for API request/response models."""

from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from nutshell.domain.results import (
    StreamComplete,
    StreamError,
    StreamingResult,
    StructuredComplete,
    StructuredProgress,
    StructuredStreamingResult,
)
from nutshell.domain.structured import (
    DEFAULT_STYLE,
    StreamMetadata,
    StructuredSummary,
    SummaryStyle,
)
from nutshell.domain.summary import SummaryData


class SummarizeTextRequest(BaseModel):
    """Request schema for summarizing raw text."""

    text: str = Field(min_length=1)


class SummarizeUrlRequest(BaseModel):
    """Request schema for summarizing a web page."""

    url: str = Field(min_length=1)


class SummarizeStreamRequest(BaseModel):
    """Request schema for the streaming endpoint: exactly one of text or url."""

    text: str | None = None
    url: str | None = None

    @model_validator(mode="after")
    def check_single_source(self) -> "SummarizeStreamRequest":
        if bool(self.text) == bool(self.url):
            raise ValueError("Provide exactly one of 'text' or 'url'")
        return self


class SummaryResponse(BaseModel):
    """Response schema for a summary."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    original_text: str
    summary: str
    short_summary: str
    created_at: datetime
    is_saved: bool


class SummaryListResponse(BaseModel):
    """Response schema for a list of summaries."""

    summaries: list[SummaryResponse]
    total: int


class SaveSummaryRequest(BaseModel):
    """Request schema for storing a summary."""

    id: str | None = None
    original_text: str
    summary: str
    created_at: datetime | None = None
    is_saved: bool = False

    def to_summary_data(self) -> SummaryData:
        fields = {
            "original_text": self.original_text,
            "summary": self.summary,
            "is_saved": self.is_saved,
        }
        if self.id:
            fields["id"] = self.id
        if self.created_at:
            created_at = self.created_at
            if created_at.tzinfo is None:
                created_at = created_at.replace(tzinfo=UTC)
            fields["created_at"] = created_at
        return SummaryData(**fields)


class SaveStatusResponse(BaseModel):
    """Response schema for a toggled saved flag."""

    id: str
    is_saved: bool


class StreamingPreference(BaseModel):
    """Streaming on/off preference."""

    enabled: bool


class StreamEvent(BaseModel):
    """One server-sent event of a streamed summary."""

    type: Literal["progress", "complete", "error"]
    text: str | None = None
    summary: SummaryResponse | None = None
    message: str | None = None

    @classmethod
    def from_result(cls, event: StreamingResult) -> "StreamEvent":
        if isinstance(event, StreamComplete):
            return cls(
                type="complete",
                summary=SummaryResponse.model_validate(event.summary_data),
            )
        if isinstance(event, StreamError):
            return cls(type="error", message=event.message)
        return cls(type="progress", text=event.text)


class StructuredStreamRequest(BaseModel):
    """Request schema for a structured summary: exactly one of text or url."""

    text: str | None = None
    url: str | None = None
    style: SummaryStyle = DEFAULT_STYLE

    @model_validator(mode="after")
    def check_single_source(self) -> "StructuredStreamRequest":
        if bool(self.text) == bool(self.url):
            raise ValueError("Provide exactly one of 'text' or 'url'")
        return self


class StructuredStreamEvent(BaseModel):
    """One server-sent event of a streamed structured summary."""

    type: Literal["metadata", "progress", "complete", "error"]
    metadata: StreamMetadata | None = None
    structured: StructuredSummary | None = None
    summary: SummaryResponse | None = None
    tokens_used: int | None = None
    latency_ms: float | None = None
    message: str | None = None

    @classmethod
    def from_result(cls, event: StructuredStreamingResult) -> "StructuredStreamEvent":
        if isinstance(event, StreamMetadata):
            return cls(type="metadata", metadata=event)
        if isinstance(event, StructuredProgress):
            return cls(type="progress", structured=event.summary, tokens_used=event.tokens_used)
        if isinstance(event, StructuredComplete):
            return cls(
                type="complete",
                structured=event.summary_data.summary,
                summary=SummaryResponse.model_validate(event.summary_data.to_summary_data()),
                tokens_used=event.tokens_used,
                latency_ms=event.latency_ms,
            )
        return cls(type="error", message=event.message)
