"""
MovieSearch — Application Settings

Design patterns:
  - Singleton: single Settings instance shared everywhere
  - Configuration Object: centralizes all env-based config
"""

from __future__ import annotations

from typing import Dict, Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Central configuration sourced from environment / .env."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Catalog ───────────────────────────────────────────
    catalog_provider: Literal["tmdb", "omdb"] = "tmdb"
    catalog_timeout_seconds: float = 15.0
    catalog_max_retries: int = 1             # 1 = single attempt, no retry
    catalog_cache_ttl_seconds: float = 900

    # ── TMDB ──────────────────────────────────────────────
    tmdb_api_read_token: str = ""
    tmdb_api_key: str = ""
    tmdb_base_url: str = "https://api.themoviedb.org/3"
    tmdb_image_base: str = "https://image.tmdb.org/t/p/w500"
    tmdb_language: str = "en-US"

    # ── OMDb ──────────────────────────────────────────────
    omdb_api_key: str = ""
    omdb_base_url: str = "https://www.omdbapi.com"

    # ── Storage / accounts ────────────────────────────────
    storage_path: str = ""                   # empty → in-memory store
    favorites_scope: Literal["identity", "shared"] = "identity"

    # ── Search session ────────────────────────────────────
    discard_stale_responses: bool = True

    # ── App ───────────────────────────────────────────────
    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "info"

    # ── Derived helpers ───────────────────────────────────
    @property
    def tmdb_headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.tmdb_api_read_token:
            headers["Authorization"] = f"Bearer {self.tmdb_api_read_token}"
        return headers


# Singleton – import this everywhere
settings = Settings()
