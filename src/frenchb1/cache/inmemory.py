"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/inmemory.py.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field

from ..types import JSONValue
from .base import NAMESPACES, ResponseCache, Snapshot
from .snapshot import validate_snapshot

logger = logging.getLogger("frenchb1.cache")


@dataclass(slots=True)
class InMemoryResponseCache(ResponseCache):
    """Process-local cache backend suitable for development/test workloads."""

    backend_id: str = "inmemory"
    _rows: dict[str, dict[str, JSONValue]] = field(
        default_factory=lambda: {ns: {} for ns in NAMESPACES}, init=False, repr=False
    )

    async def get(self, namespace: str, key: str) -> JSONValue | None:
        store = self._rows.get(namespace)
        if store is None:
            logger.warning("get on unknown cache namespace %r", namespace)
            return None
        if key not in store:
            return None
        return copy.deepcopy(store[key])

    async def put(self, namespace: str, key: str, value: JSONValue) -> None:
        if namespace not in self._rows:
            raise ValueError(f"Unknown cache namespace '{namespace}'")
        self._rows[namespace][key] = copy.deepcopy(value)

    async def export_all(self) -> Snapshot:
        return {
            ns: [{"id": key, "value": copy.deepcopy(value)} for key, value in rows.items()]
            for ns, rows in self._rows.items()
        }

    async def import_all(self, snapshot: object) -> None:
        for namespace, entries in validate_snapshot(snapshot).items():
            store = self._rows[namespace]
            for entry in entries:
                store[entry.key] = copy.deepcopy(entry.value)

    async def clear_all(self) -> None:
        for rows in self._rows.values():
            rows.clear()

    async def close(self) -> None:
        return None
