"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: cache/__init__.py.
"""

from .base import (
    KEY_DELIMITER,
    NAMESPACES,
    STORES,
    CacheEntry,
    ResponseCache,
    Snapshot,
    make_cache_key,
)
from .factory import create_response_cache
from .inmemory import InMemoryResponseCache
from .snapshot import (
    default_export_filename,
    dumps_snapshot,
    export_to_file,
    import_from_file,
    loads_snapshot,
    validate_snapshot,
)
from .sqlite import SQLiteResponseCache

__all__ = [
    "KEY_DELIMITER",
    "NAMESPACES",
    "STORES",
    "CacheEntry",
    "ResponseCache",
    "Snapshot",
    "make_cache_key",
    "create_response_cache",
    "InMemoryResponseCache",
    "SQLiteResponseCache",
    "default_export_filename",
    "dumps_snapshot",
    "export_to_file",
    "import_from_file",
    "loads_snapshot",
    "validate_snapshot",
]
