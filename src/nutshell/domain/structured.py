"""Structured summaries: the title/key-points/category variant of the API.

The structured endpoint streams one ``data:`` event per update. An optional
metadata event comes first, then patch events that each carry the complete
summary state built so far, ending with a patch whose ``done`` flag is set.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

from nutshell.domain.summary import SHORT_SUMMARY_CHARS, SummaryData

SummaryStyle = Literal["skimmer", "executive", "eli5"]
DEFAULT_STYLE: SummaryStyle = "executive"


class StructuredSummary(BaseModel):
    """Summary state as built up by the structured stream."""

    title: str | None = None
    main_summary: str | None = None
    key_points: list[str] = Field(default_factory=list)
    category: str | None = None
    sentiment: str | None = None
    read_time_min: int | None = None

    @model_validator(mode="before")
    @classmethod
    def _null_key_points(cls, data: Any) -> Any:
        if isinstance(data, dict) and data.get("key_points") is None:
            data = {**data, "key_points": []}
        return data

    def is_empty(self) -> bool:
        return not (self.title or self.main_summary or self.key_points)

    def formatted_text(self) -> str:
        """Render the summary as plain text for display or storage."""
        blocks = []
        if self.title:
            blocks.append(self.title)
        if self.main_summary:
            blocks.append(self.main_summary)
        if self.key_points:
            blocks.append("\n".join(["Key Points:", *(f"• {p}" for p in self.key_points)]))

        details = []
        if self.category:
            details.append(f"Category: {self.category}")
        if self.sentiment:
            details.append(f"Sentiment: {self.sentiment}")
        if self.read_time_min is not None:
            details.append(f"Read Time: {self.read_time_min} min")
        if details:
            blocks.append(" | ".join(details))

        return "\n\n".join(blocks).strip()

    def short_summary(self) -> str:
        """First key point, else the start of the main summary, else the title."""
        if self.key_points:
            return self.key_points[0]
        if self.main_summary:
            return self.main_summary[:SHORT_SUMMARY_CHARS]
        return self.title or ""


class PatchOperation(BaseModel):
    """The change a patch event applied to the summary state."""

    op: Literal["set", "append", "done"]
    field: str | None = None
    value: Any = None


class StreamMetadata(BaseModel):
    """First event of a structured stream describing the input."""

    input_type: str
    style: str
    url: str | None = None
    title: str | None = None
    author: str | None = None
    date: str | None = None
    site_name: str | None = None
    scrape_method: str | None = None
    scrape_latency_ms: float | None = None
    extracted_text_length: int | None = None
    text_length: int | None = None


class StructuredPatch(BaseModel):
    """A patch event: the applied change plus the full resulting state."""

    delta: PatchOperation | None = None
    state: StructuredSummary
    done: bool = False
    tokens_used: int = 0
    latency_ms: float | None = None


class StructuredSummarizeRequest(BaseModel):
    """Request body for the structured streaming endpoint."""

    text: str | None = None
    url: str | None = None
    style: SummaryStyle = DEFAULT_STYLE
    max_tokens: int = Field(default=256, ge=128, le=2048)
    include_metadata: bool = True
    use_cache: bool = True

    @model_validator(mode="after")
    def check_single_source(self) -> "StructuredSummarizeRequest":
        if bool(self.text) == bool(self.url):
            raise ValueError("Provide exactly one of text or url")
        return self


@dataclass(frozen=True)
class StructuredSummaryData:
    """A finished structured summary and its source."""

    original_text: str
    summary: StructuredSummary
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    is_saved: bool = False

    @property
    def short_summary(self) -> str:
        return self.summary.short_summary()

    @property
    def formatted_text(self) -> str:
        return self.summary.formatted_text()

    def to_summary_data(self) -> SummaryData:
        """Flatten to a plain summary record that the store can keep."""
        return SummaryData(
            id=self.id,
            original_text=self.original_text,
            summary=self.formatted_text,
            created_at=self.created_at,
            is_saved=self.is_saved,
        )
