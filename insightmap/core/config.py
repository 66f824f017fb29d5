"""Centralized application configuration."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="APP_", env_file=".env", extra="ignore"
    )

    # Data storage path
    data_path: Path = Path("data")

    # Store snapshot (JSON tables) loaded by the in-memory store at startup
    graph_snapshot_file: str = "graph_snapshot.json"

    # Entity resolution tuning
    # 0.80 captures "google slide" vs "generation automatique google slide" (0.811)
    similarity_threshold: float = Field(default=0.80, ge=0.0, le=1.0)
    max_semantic_entities: int = Field(default=500, ge=0)

    # Visualization request limits
    default_limit: int = 500
    max_limit: int = 1000
    edge_fetch_multiplier: int = 2  # edges fetched per direction = limit * multiplier

    # Node label truncation
    label_max_length: int = 120

    # Logging
    log_level: str = "INFO"

    @property
    def graph_snapshot_path(self) -> Path:
        """Full path of the store snapshot file."""
        return self.data_path / self.graph_snapshot_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings singleton."""
    return Settings()
