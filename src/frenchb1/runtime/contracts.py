"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Typed runtime policies for orchestrated generation.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """
    Retry semantics for the primary provider.

    `max_attempts` counts every call, the first one included. The wait before
    attempt `n + 1` is `n * backoff_base_s` (linear backoff).
    """

    max_attempts: int = 2
    backoff_base_s: float = 0.5


@dataclass(frozen=True, slots=True)
class TimeoutPolicy:
    """Upper bound for one provider call."""

    request_timeout_s: float | None = 30.0


@dataclass(frozen=True, slots=True)
class CoalescingPolicy:
    """In-flight request deduplication controls."""

    enabled: bool = False
