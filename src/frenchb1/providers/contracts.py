"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Provider contracts shared by the primary and secondary text vendors.
"""

from __future__ import annotations

from typing import Protocol

from ..types import ProviderRequest


class TextProvider(Protocol):
    """
    Uniform text completion interface.

    Implementations raise only `ProviderFailure` subclasses, so callers never
    branch on vendor identity or vendor-specific exception types.
    """

    provider_id: str

    async def complete(self, request: ProviderRequest) -> str: ...

    async def aclose(self) -> None: ...


class SpeechProvider(Protocol):
    """Text-to-speech interface returning base64-encoded raw PCM."""

    provider_id: str

    async def synthesize(self, text: str) -> str: ...
