"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Gemini text-to-speech client with a write-through audio cache.
"""

from __future__ import annotations

import asyncio
import base64
import logging
from collections.abc import Callable
from typing import Any

import httpx
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from ..cache.base import STORES, ResponseCache
from ..errors import SpeechSynthesisError, StorageError
from ..runtime.timeouts import await_with_timeout
from ..settings import Settings
from .gemini import GeminiClientMixin, map_api_error

logger = logging.getLogger("frenchb1.providers")

SPEECH_NAMESPACE = STORES["speech"]


def _mime_rate(mime_type: str | None) -> int | None:
    """Read `rate=` from e.g. `audio/L16;codec=pcm;rate=24000`."""
    if not mime_type:
        return None
    for part in mime_type.split(";")[1:]:
        name, _, value = part.strip().partition("=")
        if name.lower() == "rate" and value.isdigit():
            return int(value)
    return None


def _inline_audio(response: Any) -> tuple[bytes | str, str | None]:
    for candidate in getattr(response, "candidates", None) or []:
        content = getattr(candidate, "content", None)
        for part in getattr(content, "parts", None) or []:
            inline = getattr(part, "inline_data", None)
            data = getattr(inline, "data", None)
            if data:
                return data, getattr(inline, "mime_type", None)
    raise SpeechSynthesisError("No audio data in speech response")


class GeminiSpeechClient(GeminiClientMixin):
    """
    Synthesizes French speech as base64-encoded raw PCM (16-bit mono).

    Results are memoized in the `speechAudio` namespace keyed by the exact
    input text, so a repeated sentence never reaches the network. Storing
    is best effort: a failed cache write is logged and the audio returned.
    """

    provider_id = "gemini-tts"

    def __init__(
        self,
        settings: Settings,
        cache: ResponseCache | None = None,
        *,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        self._settings = settings
        self._cache = cache
        self._client_factory = client_factory
        self._client = None

    def build_config(self) -> genai_types.GenerateContentConfig:
        return genai_types.GenerateContentConfig(
            response_modalities=["AUDIO"],
            speech_config=genai_types.SpeechConfig(
                voice_config=genai_types.VoiceConfig(
                    prebuilt_voice_config=genai_types.PrebuiltVoiceConfig(
                        voice_name=self._settings.speech_voice,
                    )
                )
            ),
        )

    async def synthesize(self, text: str) -> str:
        if not text or not text.strip():
            raise SpeechSynthesisError("Nothing to synthesize", provider=self.provider_id)

        if self._cache is not None:
            cached = await self._cache.get(SPEECH_NAMESPACE, text)
            if isinstance(cached, str) and cached:
                logger.debug("Speech cache hit (%d chars)", len(text))
                return cached

        client = self._get_client()
        try:
            response = await await_with_timeout(
                client.aio.models.generate_content(
                    model=self._settings.gemini_speech_model,
                    contents=text,
                    config=self.build_config(),
                ),
                self._settings.request_timeout_s,
            )
        except genai_errors.APIError as exc:
            raise map_api_error(
                exc, provider=self.provider_id, generic=SpeechSynthesisError
            ) from exc
        except (httpx.TransportError, asyncio.TimeoutError, OSError) as exc:
            raise SpeechSynthesisError(
                f"Speech request failed: {exc or type(exc).__name__}",
                provider=self.provider_id,
            ) from exc

        try:
            data, mime_type = _inline_audio(response)
        except SpeechSynthesisError as exc:
            exc.provider = self.provider_id
            raise
        rate = _mime_rate(mime_type)
        if rate is not None and rate != self._settings.sample_rate:
            raise SpeechSynthesisError(
                f"Unexpected sample rate {rate} (expected {self._settings.sample_rate})",
                provider=self.provider_id,
            )

        # The SDK hands back raw bytes; older transports deliver base64 text.
        audio = data if isinstance(data, str) else base64.b64encode(data).decode("ascii")

        if self._cache is not None:
            try:
                await self._cache.put(SPEECH_NAMESPACE, text, audio)
            except (StorageError, ValueError) as exc:
                logger.warning("Could not cache synthesized speech: %s", exc)
        return audio
