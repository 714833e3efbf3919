"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Runtime settings and explicit environment loading.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

DEFAULT_CACHE_PATH = str(Path("~") / ".frenchb1" / "cache.sqlite3")


def _env_first(*names: str, default: str | None = None) -> str | None:
    """
    Return the first non-empty environment variable in `names`.

    Args:
        *names: Environment variable names to check in order.
        default: Value returned if no non-empty variable is found.
    """
    for name in names:
        raw = os.getenv(name)
        if raw is None:
            continue
        value = raw.strip()
        if value:
            return value
    return default


def deepseek_key_from_env() -> str | None:
    """Resolve the DeepSeek credential from the environment at call time."""
    return _env_first("DEEPSEEK_API_KEY", "VITE_DEEPSEEK_API_KEY")


def gemini_key_from_env() -> str | None:
    """Resolve the Gemini credential from the environment at call time."""
    return _env_first("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


@dataclass(frozen=True, slots=True)
class Settings:
    """Explicit settings used by providers, cache and orchestrator."""

    deepseek_api_key: str | None = None
    deepseek_base_url: str = "https://api.deepseek.com/v1"
    deepseek_model: str = "deepseek-chat"
    relay_url: str | None = None

    gemini_api_key: str | None = None
    gemini_text_model: str = "gemini-2.5-flash"
    gemini_speech_model: str = "gemini-2.5-flash-preview-tts"
    speech_voice: str = "Kore"
    sample_rate: int = 24000

    temperature: float = 0.7
    max_tokens: int = 4000
    request_timeout_s: float = 30.0
    primary_max_attempts: int = 2
    backoff_base_s: float = 0.5

    cache_backend: str = "sqlite"
    cache_path: str = DEFAULT_CACHE_PATH
    profile_path: str | None = None

    relay_upstream_timeout_s: float = 28.0

    @staticmethod
    def from_env() -> "Settings":
        """Load settings from environment variables."""
        return Settings(
            deepseek_api_key=deepseek_key_from_env(),
            deepseek_base_url=_env_first(
                "FRENCHB1_DEEPSEEK_BASE_URL", default="https://api.deepseek.com/v1"
            )
            or "https://api.deepseek.com/v1",
            deepseek_model=_env_first("FRENCHB1_DEEPSEEK_MODEL", default="deepseek-chat")
            or "deepseek-chat",
            relay_url=_env_first("FRENCHB1_RELAY_URL"),
            gemini_api_key=gemini_key_from_env(),
            gemini_text_model=_env_first(
                "FRENCHB1_GEMINI_TEXT_MODEL", default="gemini-2.5-flash"
            )
            or "gemini-2.5-flash",
            gemini_speech_model=_env_first(
                "FRENCHB1_GEMINI_SPEECH_MODEL", default="gemini-2.5-flash-preview-tts"
            )
            or "gemini-2.5-flash-preview-tts",
            speech_voice=_env_first("FRENCHB1_SPEECH_VOICE", default="Kore") or "Kore",
            sample_rate=int(_env_first("FRENCHB1_SAMPLE_RATE", default="24000") or "24000"),
            temperature=float(_env_first("FRENCHB1_TEMPERATURE", default="0.7") or "0.7"),
            max_tokens=int(_env_first("FRENCHB1_MAX_TOKENS", default="4000") or "4000"),
            request_timeout_s=float(
                _env_first("FRENCHB1_REQUEST_TIMEOUT_S", default="30") or "30"
            ),
            primary_max_attempts=int(
                _env_first("FRENCHB1_PRIMARY_MAX_ATTEMPTS", default="2") or "2"
            ),
            backoff_base_s=float(
                _env_first("FRENCHB1_BACKOFF_BASE_S", default="0.5") or "0.5"
            ),
            cache_backend=(
                _env_first("FRENCHB1_CACHE_BACKEND", default="sqlite") or "sqlite"
            ).lower(),
            cache_path=_env_first("FRENCHB1_CACHE_PATH", default=DEFAULT_CACHE_PATH)
            or DEFAULT_CACHE_PATH,
            profile_path=_env_first("FRENCHB1_PROFILE_PATH"),
            relay_upstream_timeout_s=float(
                _env_first("FRENCHB1_RELAY_TIMEOUT_S", default="28") or "28"
            ),
        )
