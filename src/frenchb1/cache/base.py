"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/base.py.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..types import JSONValue

KEY_DELIMITER = ":"

# feature id -> store namespace, as named in exported snapshot files
STORES: dict[str, str] = {
    "grammar": "grammarExplanations",
    "verbs": "verbConjugations",
    "quizzes": "quizzes",
    "flashcards": "flashcards",
    "phrases": "phrases",
    "speech": "speechAudio",
}
NAMESPACES: tuple[str, ...] = tuple(STORES.values())

Snapshot = dict[str, list[dict[str, JSONValue]]]


def make_cache_key(feature: str, *params: str) -> str:
    """
    Join feature id and semantic parameters in their declared order.

    Parameter order is part of each operation's contract: the same values in
    a different order address a different entry.
    """
    return KEY_DELIMITER.join((feature, *params))


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """One stored artifact row."""

    key: str
    value: JSONValue

    def to_row(self) -> dict[str, JSONValue]:
        return {"id": self.key, "value": self.value}


class ResponseCache(Protocol):
    """Durable namespaced key-value store for generated artifacts."""

    backend_id: str

    async def get(self, namespace: str, key: str) -> JSONValue | None: ...

    async def put(self, namespace: str, key: str, value: JSONValue) -> None: ...

    async def export_all(self) -> Snapshot: ...

    async def import_all(self, snapshot: object) -> None: ...

    async def clear_all(self) -> None: ...

    async def close(self) -> None: ...
