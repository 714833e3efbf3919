"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Error taxonomy for generation, providers and persistence.
"""

from __future__ import annotations


class FrenchB1Error(Exception):
    """Base error for the frenchb1 core."""


class ProviderFailure(FrenchB1Error):
    """One classified failure of one provider attempt."""

    retryable: bool = False

    def __init__(self, message: str, *, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider

    def __str__(self) -> str:
        base = super().__str__()
        if self.provider:
            return f"[{self.provider}] {base}"
        return base


class ConfigurationMissing(ProviderFailure):
    """No credential (and no relay) is available for a provider."""


class TransportError(ProviderFailure):
    """Network-level failure or transport timeout."""

    retryable = True


class ProviderError(ProviderFailure):
    """Reachable provider answered with a non-2xx status."""

    retryable = True

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        status: int | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.status = status
        self.body = body


class RateLimited(ProviderError):
    """HTTP 429 from a provider; surfaced distinctly for user messaging."""

    def __init__(
        self,
        message: str,
        *,
        provider: str | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message, provider=provider, status=429, body=body)


class MalformedResponseError(ProviderFailure):
    """Provider text could not be parsed into a structured document."""

    def __init__(
        self,
        message: str,
        *,
        raw_text: str | None = None,
        provider: str | None = None,
    ) -> None:
        super().__init__(message, provider=provider)
        self.raw_text = raw_text


class SchemaViolationError(ProviderFailure):
    """Provider output parsed, but violates the artifact's invariants."""


class SpeechSynthesisError(ProviderFailure):
    """Generic speech synthesis failure (anything that is not rate limiting)."""


class GenerationFailedError(FrenchB1Error):
    """Every provider failed for one orchestrated request."""

    def __init__(self, failures: list[ProviderFailure], *, operation: str | None = None) -> None:
        self.failures = list(failures)
        self.operation = operation
        detail = "; ".join(str(f) for f in self.failures) or "no provider attempted"
        prefix = f"{operation}: " if operation else ""
        super().__init__(f"{prefix}all providers failed ({detail})")

    @property
    def providers(self) -> list[str]:
        return [f.provider or "unknown" for f in self.failures]

    @property
    def rate_limited(self) -> bool:
        return any(isinstance(f, RateLimited) for f in self.failures)


class StorageError(FrenchB1Error):
    """Persistent store read/write failure."""


class SnapshotFormatError(FrenchB1Error, ValueError):
    """Import snapshot is not parseable or has the wrong shape."""
