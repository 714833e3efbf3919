"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Module: runtime/__init__.py.
"""

from .coalescing import RequestCoalescer
from .contracts import CoalescingPolicy, RetryPolicy, TimeoutPolicy
from .retry import RequestRetryState, call_with_retry, classify_error, linear_backoff
from .timeouts import await_with_timeout

__all__ = [
    "RequestCoalescer",
    "CoalescingPolicy",
    "RetryPolicy",
    "TimeoutPolicy",
    "RequestRetryState",
    "call_with_retry",
    "classify_error",
    "linear_backoff",
    "await_with_timeout",
]
