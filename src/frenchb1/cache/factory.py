"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Factory helpers for selecting cache backends from settings.
"""

from __future__ import annotations

from ..settings import Settings
from .base import ResponseCache
from .inmemory import InMemoryResponseCache
from .sqlite import SQLiteResponseCache


def create_response_cache(
    settings: Settings | None = None,
    *,
    backend: str | None = None,
) -> ResponseCache:
    """
    Create the response cache selected by `backend` or `settings.cache_backend`.

    Backends:
    - `sqlite` (default): durable file at `settings.cache_path`
    - `inmemory`: process-local, lost on exit
    """
    resolved = settings or Settings.from_env()
    key = (backend or resolved.cache_backend).strip().lower()

    if key in ("mem", "memory", "inmemory", "in_memory"):
        return InMemoryResponseCache()
    if key in ("sqlite", "sqlite3"):
        return SQLiteResponseCache(resolved.cache_path)
    raise ValueError(f"Unknown FRENCHB1_CACHE_BACKEND: {key}")
