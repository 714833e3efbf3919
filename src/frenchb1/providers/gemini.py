"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Secondary text provider backed by the Gemini API (google-genai SDK).
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from ..errors import (
    ConfigurationMissing,
    ProviderError,
    ProviderFailure,
    RateLimited,
    TransportError,
)
from ..settings import Settings, gemini_key_from_env
from ..types import ProviderRequest

logger = logging.getLogger("frenchb1.providers")


def map_api_error(
    exc: genai_errors.APIError,
    *,
    provider: str,
    generic: type[ProviderFailure] = ProviderError,
) -> ProviderFailure:
    """Map a Gemini API error onto the failure taxonomy; 429 stays distinct."""
    code = getattr(exc, "code", None)
    message = getattr(exc, "message", None) or str(exc)
    if code == 429:
        return RateLimited(f"Gemini rate limited: {message}", provider=provider, body=message)
    if generic is ProviderError:
        return ProviderError(
            f"Gemini API error: {code} {message}",
            provider=provider,
            status=code,
            body=message,
        )
    return generic(f"Gemini API error: {code} {message}", provider=provider)


class GeminiClientMixin:
    """Lazy, credential-checked `genai.Client` construction."""

    provider_id: str
    _settings: Settings
    _client_factory: Callable[..., Any] | None
    _client: Any

    def _get_client(self) -> Any:
        key = self._settings.gemini_api_key or gemini_key_from_env()
        if not key:
            raise ConfigurationMissing(
                "GEMINI_API_KEY not set", provider=self.provider_id
            )
        if self._client is None:
            if self._client_factory is not None:
                self._client = self._client_factory(api_key=key)
            else:
                self._client = genai.Client(
                    api_key=key,
                    http_options=genai_types.HttpOptions(
                        timeout=int(self._settings.request_timeout_s * 1000)
                    ),
                )
        return self._client

    async def aclose(self) -> None:
        client, self._client = self._client, None
        aio = getattr(client, "aio", None)
        close = getattr(aio, "aclose", None)
        if close is not None:
            await close()


class GeminiTextProvider(GeminiClientMixin):
    """Fallback-of-last-resort text provider."""

    provider_id = "gemini"

    def __init__(
        self,
        settings: Settings,
        *,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._client = None

    def build_config(self, request: ProviderRequest) -> genai_types.GenerateContentConfig:
        return genai_types.GenerateContentConfig(
            system_instruction=request.system_prompt or None,
            response_mime_type="application/json" if request.wants_json else None,
            temperature=self._settings.temperature,
            max_output_tokens=self._settings.max_tokens,
        )

    async def complete(self, request: ProviderRequest) -> str:
        client = self._get_client()
        logger.debug("Gemini request to %s (json=%s)", self._settings.gemini_text_model, request.wants_json)
        try:
            response = await client.aio.models.generate_content(
                model=self._settings.gemini_text_model,
                contents=request.user_prompt,
                config=self.build_config(request),
            )
        except genai_errors.APIError as exc:
            raise map_api_error(exc, provider=self.provider_id) from exc
        except httpx.TransportError as exc:
            raise TransportError(
                f"Gemini connection failed: {exc}", provider=self.provider_id
            ) from exc
        return getattr(response, "text", None) or ""
