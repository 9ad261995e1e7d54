"""Domain entities and result types."""

from nutshell.domain.errors import (
    ExtractionFailed,
    NetworkUnavailable,
    NutshellError,
    RemoteError,
    StorageUnavailable,
)
from nutshell.domain.results import (
    ApiResult,
    Error,
    Failure,
    Result,
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
    StreamMetadata,
    StructuredPatch,
    StructuredSummary,
    StructuredSummaryData,
)
from nutshell.domain.summary import (
    StreamChunk,
    SummarizeRequest,
    SummarizeResponse,
    SummaryData,
)
from nutshell.domain.web_content import WebContent

__all__ = [
    "ApiResult",
    "Error",
    "ExtractionFailed",
    "Failure",
    "NetworkUnavailable",
    "NutshellError",
    "RemoteError",
    "Result",
    "StorageUnavailable",
    "StreamChunk",
    "StreamComplete",
    "StreamError",
    "StreamProgress",
    "StreamMetadata",
    "StreamingResult",
    "StructuredComplete",
    "StructuredPatch",
    "StructuredProgress",
    "StructuredStreamingResult",
    "StructuredSummary",
    "StructuredSummaryData",
    "Success",
    "SummarizeRequest",
    "SummarizeResponse",
    "SummaryData",
    "WebContent",
]
