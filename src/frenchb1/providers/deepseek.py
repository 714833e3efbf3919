"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Primary text provider: DeepSeek chat completions through the OpenAI SDK.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from openai import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    AsyncOpenAI,
    RateLimitError,
)

from ..errors import (
    ConfigurationMissing,
    MalformedResponseError,
    ProviderError,
    RateLimited,
    TransportError,
)
from ..settings import Settings, deepseek_key_from_env
from ..types import ProviderRequest

logger = logging.getLogger("frenchb1.providers")

# The relay injects the real credential server-side; the SDK still insists on a value.
RELAY_CLIENT_KEY = "relay"


def _error_body(exc: APIStatusError) -> str:
    try:
        return exc.response.text
    except Exception:  # noqa: BLE001
        return "" if exc.body is None else str(exc.body)


class DeepSeekTextProvider:
    """
    OpenAI-compatible chat completions client for DeepSeek.

    Endpoint resolution happens on every call: a configured relay URL wins
    (deployed mode, no credential on this side); otherwise the direct API is
    called with the credential from settings or the environment. Neither
    available raises `ConfigurationMissing`, which callers treat as a signal
    to skip this provider.
    """

    provider_id = "deepseek"

    def __init__(
        self,
        settings: Settings,
        *,
        client_factory: Callable[..., Any] | None = None,
    ) -> None:
        self._settings = settings
        self._client_factory = client_factory
        self._clients: dict[tuple[str, str], Any] = {}

    def resolve_endpoint(self) -> tuple[str, str]:
        """Return `(base_url, api_key)` for the current environment."""
        relay = (self._settings.relay_url or "").strip()
        if relay:
            return relay.rstrip("/"), RELAY_CLIENT_KEY
        key = self._settings.deepseek_api_key or deepseek_key_from_env()
        if not key:
            raise ConfigurationMissing(
                "DEEPSEEK_API_KEY not set and no relay configured",
                provider=self.provider_id,
            )
        return self._settings.deepseek_base_url.rstrip("/"), key

    def _build_client(self, base_url: str, api_key: str) -> Any:
        cache_key = (base_url, api_key)
        existing = self._clients.get(cache_key)
        if existing is not None:
            return existing
        if self._client_factory is not None:
            client = self._client_factory(base_url=base_url, api_key=api_key)
        else:
            client = AsyncOpenAI(
                base_url=base_url,
                api_key=api_key,
                timeout=self._settings.request_timeout_s,
                max_retries=0,
            )
        self._clients[cache_key] = client
        return client

    def build_payload(self, request: ProviderRequest) -> dict[str, Any]:
        """Build the chat completions body for one request."""
        payload: dict[str, Any] = {
            "model": self._settings.deepseek_model,
            "messages": [
                {"role": m.role, "content": m.content} for m in request.messages()
            ],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }
        if request.wants_json:
            payload["response_format"] = {"type": "json_object"}
        return payload

    async def complete(self, request: ProviderRequest) -> str:
        base_url, api_key = self.resolve_endpoint()
        client = self._build_client(base_url, api_key)
        payload = self.build_payload(request)
        logger.debug("DeepSeek request to %s (json=%s)", base_url, request.wants_json)

        try:
            completion = await client.chat.completions.create(**payload)
        except RateLimitError as exc:
            raise RateLimited(
                "DeepSeek API rate limited (429)",
                provider=self.provider_id,
                body=_error_body(exc),
            ) from exc
        except APIStatusError as exc:
            raise ProviderError(
                f"DeepSeek API error: {exc.status_code}",
                provider=self.provider_id,
                status=exc.status_code,
                body=_error_body(exc),
            ) from exc
        except APITimeoutError as exc:
            raise TransportError(
                f"DeepSeek request timed out after {self._settings.request_timeout_s}s",
                provider=self.provider_id,
            ) from exc
        except APIConnectionError as exc:
            raise TransportError(
                f"DeepSeek connection failed: {exc}", provider=self.provider_id
            ) from exc

        choices = getattr(completion, "choices", None) or []
        if not choices:
            raise MalformedResponseError(
                "DeepSeek response has no choices", provider=self.provider_id
            )
        content = getattr(choices[0].message, "content", None)
        return content or ""

    async def aclose(self) -> None:
        clients = list(self._clients.values())
        self._clients.clear()
        for client in clients:
            close = getattr(client, "close", None)
            if close is not None:
                await close()
