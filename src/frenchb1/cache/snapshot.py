"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Snapshot validation and backup-file helpers for response caches.
"""

from __future__ import annotations

import asyncio
import json
import logging
from datetime import date
from pathlib import Path

from ..errors import SnapshotFormatError, StorageError
from .base import NAMESPACES, CacheEntry, ResponseCache, Snapshot

logger = logging.getLogger("frenchb1.cache")

EXPORT_FILENAME_TEMPLATE = "french-b1-master-data-{day}.json"


def validate_snapshot(snapshot: object) -> dict[str, list[CacheEntry]]:
    """
    Check snapshot shape and normalize it into entries per known namespace.

    The whole document is validated before any caller writes, so a bad row
    anywhere rejects the import as a unit. Unknown namespaces are skipped.

    Raises:
        SnapshotFormatError: When the document is not `{namespace: [{id, value}]}`.
    """
    if not isinstance(snapshot, dict):
        raise SnapshotFormatError(
            f"Snapshot must be a JSON object, got {type(snapshot).__name__}"
        )

    out: dict[str, list[CacheEntry]] = {}
    for namespace, rows in snapshot.items():
        if not isinstance(rows, list):
            raise SnapshotFormatError(f"Namespace '{namespace}' must hold a list of entries")
        entries: list[CacheEntry] = []
        for index, row in enumerate(rows):
            if not isinstance(row, dict):
                raise SnapshotFormatError(f"{namespace}[{index}] is not an object")
            if "id" not in row or "value" not in row:
                raise SnapshotFormatError(f"{namespace}[{index}] is missing 'id' or 'value'")
            key = row["id"]
            if not isinstance(key, str) or not key:
                raise SnapshotFormatError(f"{namespace}[{index}].id must be a non-empty string")
            entries.append(CacheEntry(key=key, value=row["value"]))
        if namespace not in NAMESPACES:
            logger.warning("Skipping unknown snapshot namespace %r (%d entries)", namespace, len(entries))
            continue
        out[namespace] = entries
    return out


def loads_snapshot(text: str | bytes) -> object:
    """Parse snapshot text; unparseable input is a format error."""
    try:
        return json.loads(text)
    except (ValueError, UnicodeDecodeError) as exc:
        raise SnapshotFormatError(f"Snapshot is not valid JSON: {exc}") from exc


def dumps_snapshot(snapshot: Snapshot) -> str:
    return json.dumps(snapshot, ensure_ascii=False, indent=2)


def default_export_filename(day: date | None = None) -> str:
    return EXPORT_FILENAME_TEMPLATE.format(day=(day or date.today()).isoformat())


async def export_to_file(cache: ResponseCache, path: str | Path) -> Path:
    """Write every namespace of `cache` into one JSON document at `path`."""
    target = Path(path)
    payload = dumps_snapshot(await cache.export_all())

    def _write() -> None:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(payload, encoding="utf-8")

    try:
        await asyncio.to_thread(_write)
    except OSError as exc:
        raise StorageError(f"Could not write snapshot to {target}: {exc}") from exc
    logger.info("Exported cache snapshot to %s", target)
    return target


async def import_from_file(cache: ResponseCache, path: str | Path) -> int:
    """Additively import a snapshot file; returns the number of entries upserted."""
    source = Path(path)
    try:
        text = await asyncio.to_thread(source.read_text, encoding="utf-8")
    except OSError as exc:
        raise StorageError(f"Could not read snapshot from {source}: {exc}") from exc

    snapshot = loads_snapshot(text)
    count = sum(len(rows) for rows in validate_snapshot(snapshot).values())
    await cache.import_all(snapshot)
    logger.info("Imported %d cache entries from %s", count, source)
    return count
