"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

SQLite-backed response cache: durable, single-file, on-device storage.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sqlite3
import threading
import time
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

from ..errors import StorageError
from ..types import JSONValue
from .base import NAMESPACES, ResponseCache, Snapshot
from .snapshot import validate_snapshot

logger = logging.getLogger("frenchb1.cache")

T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS cache_entries (
    namespace TEXT NOT NULL,
    id TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at INTEGER NOT NULL,
    PRIMARY KEY (namespace, id)
)
"""

_UPSERT = (
    "INSERT OR REPLACE INTO cache_entries (namespace, id, value, updated_at) "
    "VALUES (?, ?, ?, ?)"
)


def _now_ms() -> int:
    return int(time.time() * 1000)


class SQLiteResponseCache(ResponseCache):
    """
    Namespaced artifact cache persisted in one SQLite file.

    All statements run on a worker thread under a process-local lock, so
    concurrent coroutines never interleave inside one transaction. Writes
    commit before returning.
    """

    backend_id = "sqlite"

    def __init__(self, path: str | Path) -> None:
        raw = str(path)
        self.path = raw if raw == ":memory:" else str(Path(raw).expanduser())
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

    def _connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(self.path, check_same_thread=False)
        with conn:
            conn.execute(_SCHEMA)
        self._conn = conn
        return conn

    def _locked(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        with self._lock:
            try:
                return fn(self._connect())
            except sqlite3.Error as exc:
                raise StorageError(f"SQLite cache error ({self.path}): {exc}") from exc
            except OSError as exc:
                raise StorageError(f"Cannot open SQLite cache at {self.path}: {exc}") from exc

    async def _run(self, fn: Callable[[sqlite3.Connection], T]) -> T:
        return await asyncio.to_thread(self._locked, fn)

    async def get(self, namespace: str, key: str) -> JSONValue | None:
        if namespace not in NAMESPACES:
            logger.warning("get on unknown cache namespace %r", namespace)
            return None

        def _select(conn: sqlite3.Connection) -> Any:
            return conn.execute(
                "SELECT value FROM cache_entries WHERE namespace = ? AND id = ?",
                (namespace, key),
            ).fetchone()

        try:
            row = await self._run(_select)
        except StorageError:
            logger.exception("Cache read failed for %s/%s", namespace, key)
            return None
        if row is None:
            return None
        try:
            return json.loads(row[0])
        except ValueError:
            logger.warning("Discarding undecodable cache row %s/%s", namespace, key)
            return None

    async def put(self, namespace: str, key: str, value: JSONValue) -> None:
        if namespace not in NAMESPACES:
            raise ValueError(f"Unknown cache namespace '{namespace}'")
        blob = json.dumps(value, ensure_ascii=False)

        def _upsert(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute(_UPSERT, (namespace, key, blob, _now_ms()))

        await self._run(_upsert)

    async def export_all(self) -> Snapshot:
        def _select_all(conn: sqlite3.Connection) -> list[Any]:
            return conn.execute(
                "SELECT namespace, id, value FROM cache_entries ORDER BY namespace, id"
            ).fetchall()

        rows = await self._run(_select_all)
        out: Snapshot = {ns: [] for ns in NAMESPACES}
        for namespace, key, blob in rows:
            if namespace not in out:
                continue
            try:
                value = json.loads(blob)
            except ValueError:
                logger.warning("Skipping undecodable cache row %s/%s in export", namespace, key)
                continue
            out[namespace].append({"id": key, "value": value})
        return out

    async def import_all(self, snapshot: object) -> None:
        entries = validate_snapshot(snapshot)
        stamp = _now_ms()
        params = [
            (namespace, entry.key, json.dumps(entry.value, ensure_ascii=False), stamp)
            for namespace, rows in entries.items()
            for entry in rows
        ]

        def _import(conn: sqlite3.Connection) -> None:
            with conn:
                conn.executemany(_UPSERT, params)

        await self._run(_import)

    async def clear_all(self) -> None:
        def _clear(conn: sqlite3.Connection) -> None:
            with conn:
                conn.execute("DELETE FROM cache_entries")

        await self._run(_clear)
        logger.info("Cleared every cache namespace in %s", self.path)

    async def close(self) -> None:
        def _close() -> None:
            with self._lock:
                if self._conn is not None:
                    self._conn.close()
                    self._conn = None

        await asyncio.to_thread(_close)
