"""Result types returned across adapter boundaries.

Adapters never raise into the facade. Remote calls return an ``ApiResult``
(``Success`` or ``Error``), web extraction returns a ``Result`` (``Success``
or ``Failure`` carrying the underlying exception), and streaming produces
``StreamingResult`` events.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar

from nutshell.domain.structured import (
    StreamMetadata,
    StructuredSummary,
    StructuredSummaryData,
)
from nutshell.domain.summary import SummaryData

T = TypeVar("T")


@dataclass(frozen=True)
class Success(Generic[T]):
    """A successful outcome carrying its value."""

    data: T


@dataclass(frozen=True)
class Error:
    """A failed remote call with a human-readable diagnostic."""

    message: str


@dataclass(frozen=True)
class Failure:
    """A failed local or extraction step wrapping the original exception."""

    error: Exception

    @property
    def message(self) -> str:
        return str(self.error) or type(self.error).__name__


ApiResult = Success[T] | Error
Result = Success[T] | Failure


@dataclass(frozen=True)
class StreamProgress:
    """A partial chunk of summary text."""

    text: str


@dataclass(frozen=True)
class StreamComplete:
    """Terminal event: the finished summary."""

    summary_data: SummaryData


@dataclass(frozen=True)
class StreamError:
    """Terminal event: the stream failed."""

    message: str


StreamingResult = StreamProgress | StreamComplete | StreamError


@dataclass(frozen=True)
class StructuredProgress:
    """The structured summary state so far."""

    summary: StructuredSummary
    tokens_used: int = 0


@dataclass(frozen=True)
class StructuredComplete:
    """Terminal event: the finished structured summary."""

    summary_data: StructuredSummaryData
    tokens_used: int = 0
    latency_ms: float | None = None


StructuredStreamingResult = (
    StreamMetadata | StructuredProgress | StructuredComplete | StreamError
)


def is_terminal(event: StreamingResult | StructuredStreamingResult) -> bool:
    """Check whether a streaming event ends the stream."""
    return isinstance(event, StreamComplete | StructuredComplete | StreamError)
