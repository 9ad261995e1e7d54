"""Error taxonomy for the summarization client."""


class NutshellError(Exception):
    """Base class for all Nutshell errors."""


class NetworkUnavailable(NutshellError):
    """The remote host could not be reached."""

    def __init__(self, message: str = "No network connection available") -> None:
        super().__init__(message)


class RemoteError(NutshellError):
    """The summarization service answered with an error."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ExtractionFailed(NutshellError):
    """Readable text could not be extracted from a web page.

    Accepts either a message or the exception that caused the failure. When
    both a message and ``cause`` are given, the message is what callers show
    and ``cause`` keeps the original exception.
    """

    def __init__(
        self,
        message: str | BaseException,
        cause: BaseException | None = None,
    ) -> None:
        if isinstance(message, BaseException):
            cause = cause or message
            message = str(message) or type(message).__name__
        super().__init__(message)
        self.cause = cause
        self.__cause__ = cause


class StorageUnavailable(NutshellError):
    """The local summary database failed."""
