"""
Runtime configuration for the movie sync layer.

Every default can be overridden through the environment, which is how the
CLI and containerised deployments configure the service.
"""

import json
import logging
import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Dict, Optional

TMDB_API_BASE = os.environ.get("TMDB_API_BASE", "https://api.themoviedb.org/3")
TMDB_API_KEY = os.environ.get("TMDB_API_KEY", "")
TMDB_LANGUAGE = os.environ.get("TMDB_LANGUAGE", "en-US")
TMDB_REGION = os.environ.get("TMDB_REGION", "")

DB_URL = os.environ.get("MOVIESYNC_DB_URL", "sqlite:///moviesync.sqlite3")

# TMDB itself refuses pages above 500.
MAX_PAGES = int(os.environ.get("MOVIESYNC_MAX_PAGES", "500"))
HTTP_TIMEOUT = float(os.environ.get("MOVIESYNC_HTTP_TIMEOUT", "10"))
HTTP_RETRIES = int(os.environ.get("MOVIESYNC_HTTP_RETRIES", "2"))
NOW_PLAYING_DAYS = int(os.environ.get("MOVIESYNC_NOW_PLAYING_DAYS", "30"))
WORKERS = int(os.environ.get("MOVIESYNC_WORKERS", "4"))


@dataclass(frozen=True)
class SyncSettings:
    """Strongly typed wrapper for sync configuration."""

    api_base: str = TMDB_API_BASE
    api_key: str = TMDB_API_KEY
    language: str = TMDB_LANGUAGE
    region: str = TMDB_REGION
    db_url: str = DB_URL
    max_pages: int = MAX_PAGES
    http_timeout: float = HTTP_TIMEOUT
    http_retries: int = HTTP_RETRIES
    now_playing_days: int = NOW_PLAYING_DAYS
    workers: int = WORKERS

    def __post_init__(self):
        if self.max_pages < 1:
            raise ValueError("max_pages must be at least 1.")
        if self.http_retries < 0:
            raise ValueError("http_retries must be non-negative.")
        if self.http_timeout <= 0:
            raise ValueError("http_timeout must be positive.")
        if self.now_playing_days < 0:
            raise ValueError("now_playing_days must be non-negative.")
        if self.workers < 1:
            raise ValueError("workers must be at least 1.")

    @classmethod
    def from_env(cls) -> "SyncSettings":
        """Reads the environment at call time rather than import time."""
        env = os.environ
        return cls(
            api_base=env.get("TMDB_API_BASE", TMDB_API_BASE),
            api_key=env.get("TMDB_API_KEY", TMDB_API_KEY),
            language=env.get("TMDB_LANGUAGE", TMDB_LANGUAGE),
            region=env.get("TMDB_REGION", TMDB_REGION),
            db_url=env.get("MOVIESYNC_DB_URL", DB_URL),
            max_pages=int(env.get("MOVIESYNC_MAX_PAGES", MAX_PAGES)),
            http_timeout=float(env.get("MOVIESYNC_HTTP_TIMEOUT", HTTP_TIMEOUT)),
            http_retries=int(env.get("MOVIESYNC_HTTP_RETRIES", HTTP_RETRIES)),
            now_playing_days=int(env.get("MOVIESYNC_NOW_PLAYING_DAYS", NOW_PLAYING_DAYS)),
            workers=int(env.get("MOVIESYNC_WORKERS", WORKERS)),
        )

    @classmethod
    def from_dict(cls, payload: Dict[str, Any]) -> "SyncSettings":
        """Convenience loader for JSON configs. Unknown keys are rejected."""
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(payload) - known)
        if unknown:
            raise ValueError(f"Unknown settings: {unknown}")
        return cls(**payload)

    @classmethod
    def from_json_file(cls, path: Path | str) -> "SyncSettings":
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
        return cls.from_dict(payload)

    def replace(self, **changes: Any) -> "SyncSettings":
        values = {f.name: getattr(self, f.name) for f in fields(self)}
        values.update(changes)
        return type(self)(**values)


def configure_logging(level: Optional[str] = None) -> None:
    """Installs a root handler once; libraries embedding us keep their own."""
    root = logging.getLogger()
    if root.handlers:
        return
    logging.basicConfig(
        level=(level or os.getenv("LOG_LEVEL", "INFO")).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
