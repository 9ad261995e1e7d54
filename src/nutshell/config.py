"""Nutshell configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Environment
    environment: str = "development"

    # Summarization API
    summarizer_api_base_url: str = "https://colin730-summarizerapp.hf.space"
    summarizer_timeout_seconds: int = 60
    summarize_max_tokens: int = 256
    web_summarize_max_tokens: int = 1024
    stream_chunk_delay_ms: int = 0  # Pause between streamed chunks

    # Web extraction
    reader_base_url: str = "https://r.jina.ai/"
    reader_timeout_seconds: int = 20
    extractor_timeout_seconds: int = 30
    extractor_user_agent: str = (
        "Mozilla/5.0 (Linux; Android 10; Mobile) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/91.0.4472.120 Mobile Safari/537.36"
    )
    min_content_length: int = 100

    # Local storage
    database_url: str = "sqlite+aiosqlite:///nutshell.db"
    preferences_path: str = "nutshell_prefs.json"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
