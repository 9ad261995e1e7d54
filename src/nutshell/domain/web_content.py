"""Web content domain entity."""

from dataclasses import dataclass
from urllib.parse import urlparse


@dataclass(frozen=True)
class WebContent:
    """Readable text extracted from a web page."""

    title: str
    content: str
    url: str

    @staticmethod
    def is_fetchable_url(url: str | None) -> bool:
        """Accept only absolute HTTP(S) URLs."""
        if not url:
            return False
        parsed = urlparse(url.strip())
        return parsed.scheme.lower() in ("http", "https") and bool(parsed.netloc)
