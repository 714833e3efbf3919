"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/retry.py.
"""

from __future__ import annotations

import asyncio
import logging
import socket
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TypeVar

from ..errors import ProviderFailure, TransportError
from .contracts import RetryPolicy

T = TypeVar("T")

logger = logging.getLogger("frenchb1.runtime")


@dataclass(slots=True)
class RequestRetryState:
    """Ephemeral bookkeeping for one retried call; never persisted."""

    attempt: int = 0
    delay_s: float = 0.0
    last_error: ProviderFailure | None = None


def linear_backoff(attempt: int, base_s: float) -> float:
    """Delay after failed attempt number `attempt` (1-based)."""
    return max(0.0, attempt * base_s)


def classify_error(error: BaseException, *, provider: str | None = None) -> ProviderFailure:
    """Classify exceptions into the provider failure taxonomy."""
    if isinstance(error, ProviderFailure):
        if error.provider is None:
            error.provider = provider
        return error
    if isinstance(error, (asyncio.TimeoutError, TimeoutError, socket.timeout)):
        return TransportError(f"Timed out: {error or type(error).__name__}", provider=provider)
    if isinstance(error, (ConnectionError, OSError)):
        return TransportError(str(error) or type(error).__name__, provider=provider)
    return ProviderFailure(f"{type(error).__name__}: {error}", provider=provider)


async def call_with_retry(
    fn: Callable[[], Awaitable[T]],
    *,
    policy: RetryPolicy,
    provider: str | None = None,
    state: RequestRetryState | None = None,
    sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
) -> T:
    """
    Execute callable under a bounded attempt budget.

    Only retryable failures (transport, non-2xx status) are retried; every
    other failure is raised immediately. The last classified failure is
    raised once the budget is spent.
    """
    state = state or RequestRetryState()
    attempts = max(1, policy.max_attempts)
    for attempt in range(1, attempts + 1):
        state.attempt = attempt
        try:
            return await fn()
        except Exception as error:
            classified = classify_error(error, provider=provider)
            state.last_error = classified
            if classified.retryable and attempt < attempts:
                state.delay_s = linear_backoff(attempt, policy.backoff_base_s)
                logger.info(
                    "Attempt %d/%d on %s failed (%s); retrying in %.2fs",
                    attempt,
                    attempts,
                    provider or "provider",
                    classified,
                    state.delay_s,
                )
                await sleep(state.delay_s)
                continue
            if classified is error:
                raise
            raise classified from error
    raise ProviderFailure("Retry loop exhausted", provider=provider)
