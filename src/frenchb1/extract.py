"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Strict JSON extraction from unstructured model output.
"""

from __future__ import annotations

import json
import re
from typing import Any, TypeVar, cast

from pydantic import TypeAdapter, ValidationError

from .errors import MalformedResponseError, SchemaViolationError
from .types import JSONValue

T = TypeVar("T")

# A language tag is only a tag when whitespace follows it; "```true```" is a value.
_FENCE_RE = re.compile(
    r"```[ \t]*(?:([A-Za-z][A-Za-z0-9_+-]*)(?=\s))?[ \t]*\r?\n?(.*?)```", re.DOTALL
)


def _fenced_interior(text: str) -> str | None:
    match = _FENCE_RE.search(text)
    if match is None:
        return None
    return match.group(2).strip()


def _outer_span(text: str) -> str | None:
    """Return the outermost `{...}` or `[...]` span, whichever opens first."""
    starts = [i for i in (text.find("{"), text.find("[")) if i != -1]
    if not starts:
        return None
    start = min(starts)
    closer = "}" if text[start] == "{" else "]"
    end = text.rfind(closer)
    if end <= start:
        return None
    return text[start : end + 1]


def extract_json(raw_text: str | None, *, provider: str | None = None) -> JSONValue:
    """
    Parse model text into a JSON value.

    A fenced code block (optionally language tagged) wins: only its interior
    is parsed and any commentary around it is discarded. Without a fence the
    trimmed text is parsed, falling back to its outermost object/array span.

    Raises:
        MalformedResponseError: When no JSON document can be recovered.
    """
    text = (raw_text or "").strip()
    if not text:
        raise MalformedResponseError(
            "Empty response text", raw_text=raw_text, provider=provider
        )

    interior = _fenced_interior(text)
    candidates = [interior] if interior is not None else [text]
    if interior is None:
        span = _outer_span(text)
        if span is not None and span != text:
            candidates.append(span)

    last_error: Exception | None = None
    for candidate in candidates:
        try:
            return cast(JSONValue, json.loads(candidate))
        except (json.JSONDecodeError, ValueError) as exc:
            last_error = exc
    raise MalformedResponseError(
        f"Response is not valid JSON: {last_error}",
        raw_text=raw_text,
        provider=provider,
    ) from last_error


def validate_payload(
    payload: Any,
    type_: type[T] | Any,
    *,
    provider: str | None = None,
) -> T:
    """Validate an already-parsed payload against `type_`."""
    try:
        return TypeAdapter(type_).validate_python(payload)
    except ValidationError as exc:
        raise SchemaViolationError(
            f"Response violates {getattr(type_, '__name__', type_)} schema: "
            f"{exc.error_count()} error(s): {exc.errors()[0].get('msg', '')}",
            provider=provider,
        ) from exc


def extract_model(
    raw_text: str | None,
    type_: type[T] | Any,
    *,
    provider: str | None = None,
) -> T:
    """Extract JSON from `raw_text` and validate it into `type_`."""
    return validate_payload(extract_json(raw_text, provider=provider), type_, provider=provider)
