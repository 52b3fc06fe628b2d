from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings validated via Pydantic.

    Values are loaded from environment variables and/or a .env file.
    """

    # API Keys
    anthropic_api_key: str = ""

    # Oracle
    llm_model: str = "claude-sonnet-4-20250514"
    oracle_max_retries: int = 3
    oracle_initial_backoff: float = 1.0
    oracle_timeout_seconds: float = 60.0

    # Transcript + metadata
    transcript_path: str = "transcript.txt"
    watch_transcript: bool = False
    poll_interval_seconds: float = 1.0

    # Segmentation
    backfill_window_words: int = 50
    context_overlap_words: int = 20
    min_split_words: int = 10
    backlog_pause_seconds: float = 1.0

    # Header tree
    lock_threshold: int = 3
    header_summary_max_chars: int = 200
    subheader_summary_max_chars: int = 300
    summary_fallback_chars: int = 500
    evolve_prefer_subheader_when_nested: bool = True
    evolve_subheader_min_segments: int = 2
    evolve_consult_oracle: bool = True

    # App config
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached Settings instance.

    Gracefully handles missing .env files (e.g. in CI/testing) by falling
    back to environment variables and defaults.
    """
    try:
        return Settings()
    except Exception:
        # If .env is missing or unreadable, build settings from env vars only.
        return Settings(_env_file=None)  # type: ignore[call-arg]


settings = get_settings()
