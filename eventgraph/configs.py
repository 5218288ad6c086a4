"""
Event Graph - Configuration Settings
Compiled format versions, entry policy and runtime execution limits.
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EventGraphSettings(BaseSettings):
    """Event graph settings, read from ``EVENTGRAPH_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="EVENTGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ── Formats ───────────────────────────────────────────────────────
    compiled_version: str = "1.0"
    supported_compiled_versions: str = ">=1.0,<2.0"
    document_version: str = "1.0"
    supported_document_versions: str = ">=1.0,<2.0"

    # ── Compiler ──────────────────────────────────────────────────────
    single_entry: bool = Field(
        default=False,
        description="Compile only the first trigger as entrypoint and warn on extra triggers",
    )

    # ── Runtime ───────────────────────────────────────────────────────
    max_steps: int = Field(default=256, ge=1, le=100000)
    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()


@lru_cache(maxsize=1)
def get_settings() -> EventGraphSettings:
    return EventGraphSettings()
