"""User preference storage, kept apart from the summary database."""

import asyncio
import logging
from pathlib import Path

from pydantic import BaseModel

from nutshell.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

DEFAULT_STREAMING_ENABLED = True


class PreferencesFile(BaseModel):
    """On-disk shape of the preference file."""

    streaming_enabled: bool = DEFAULT_STREAMING_ENABLED


class UserPreferences:
    """JSON-file backed user preferences.

    Reads never fail: a missing, unreadable or corrupt file yields the
    defaults. Writes propagate OSError to the caller.
    """

    def __init__(self, path: str | Path | None = None) -> None:
        """Initialize preferences.

        Args:
            path: Preference file location (defaults to config)
        """
        self.path = Path(path or settings.preferences_path)
        self._write_lock = asyncio.Lock()

    def _load(self) -> PreferencesFile:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return PreferencesFile()
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cannot read preferences at {self.path}: {e}")
            return PreferencesFile()

        try:
            return PreferencesFile.model_validate_json(raw)
        except ValueError as e:
            logger.warning(f"Corrupt preferences at {self.path}, using defaults: {e}")
            return PreferencesFile()

    def _store(self, prefs: PreferencesFile) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(prefs.model_dump_json(), encoding="utf-8")
        tmp_path.replace(self.path)

    async def is_streaming_enabled(self) -> bool:
        """Whether streaming summaries are enabled (default True)."""
        prefs = await asyncio.to_thread(self._load)
        return prefs.streaming_enabled

    async def set_streaming_enabled(self, enabled: bool) -> None:
        """Persist the streaming preference."""
        async with self._write_lock:
            prefs = await asyncio.to_thread(self._load)
            updated = prefs.model_copy(update={"streaming_enabled": enabled})
            await asyncio.to_thread(self._store, updated)
        logger.info(f"Streaming preference set to {enabled}")
