"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Same-origin relay that forwards chat completion bodies to DeepSeek and
injects the server-side credential, so deployed clients never hold it.
"""

from __future__ import annotations

import asyncio
import json
import logging
import socket
import urllib.error
import urllib.request
from collections.abc import Callable

from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from .settings import Settings, deepseek_key_from_env

logger = logging.getLogger("frenchb1.relay")

RELAY_PATHS = ("/api/deepseek", "/api/deepseek/chat/completions")
ALLOWED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]

# (url, body, headers, timeout_s) -> (status, body)
PostFn = Callable[[str, bytes, dict[str, str], float], tuple[int, bytes]]


class RelaySetupError(RuntimeError):
    """Raised when the relay app cannot be built."""


def urllib_post(url: str, body: bytes, headers: dict[str, str], timeout_s: float) -> tuple[int, bytes]:
    """Blocking POST returning upstream status and body, non-2xx included."""
    req = urllib.request.Request(url, data=body, method="POST", headers=headers)
    try:
        with urllib.request.urlopen(req, timeout=timeout_s) as resp:
            return resp.status, resp.read()
    except urllib.error.HTTPError as exc:
        return exc.code, exc.read()
    except urllib.error.URLError as exc:
        if isinstance(exc.reason, (TimeoutError, socket.timeout)):
            raise TimeoutError(str(exc.reason)) from exc
        raise


def create_relay_app(settings: Settings | None = None, *, post: PostFn | None = None):
    """Create the FastAPI relay application."""
    try:
        from fastapi import FastAPI
        from fastapi.middleware.cors import CORSMiddleware
    except Exception as exc:  # pragma: no cover - optional runtime path
        raise RelaySetupError("FastAPI is required to serve the relay") from exc

    settings = settings or Settings.from_env()
    post_fn = post or urllib_post
    upstream = f"{settings.deepseek_base_url.rstrip('/')}/chat/completions"

    app = FastAPI(title="frenchb1-relay")
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["POST", "OPTIONS"],
        allow_headers=["*"],
    )

    async def relay(request: Request) -> Response:
        if request.method == "OPTIONS":
            return Response(status_code=200)
        if request.method != "POST":
            return JSONResponse({"error": "Method Not Allowed"}, status_code=405)

        api_key = settings.deepseek_api_key or deepseek_key_from_env()
        if not api_key:
            logger.error("Relay called without a configured DeepSeek API key")
            return JSONResponse({"error": "DeepSeek API key not configured"}, status_code=500)

        raw = await request.body()
        try:
            payload = json.loads(raw or b"null")
        except ValueError as exc:
            return JSONResponse(
                {"error": "Invalid JSON body", "details": str(exc)}, status_code=400
            )
        if not isinstance(payload, dict):
            return JSONResponse(
                {"error": "Invalid JSON body", "details": "expected an object"},
                status_code=400,
            )

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "Authorization": f"Bearer {api_key}",
        }
        logger.info("Forwarding %d-byte request to %s", len(raw), upstream)
        try:
            status, body = await asyncio.to_thread(
                post_fn, upstream, raw, headers, settings.relay_upstream_timeout_s
            )
        except TimeoutError as exc:
            logger.warning("DeepSeek upstream timed out: %s", exc)
            return JSONResponse(
                {"error": "DeepSeek Timeout", "details": str(exc) or "upstream timeout"},
                status_code=504,
            )
        except OSError as exc:
            logger.warning("DeepSeek upstream unreachable: %s", exc)
            return JSONResponse(
                {"error": "Failed to communicate with DeepSeek", "details": str(exc)},
                status_code=500,
            )

        logger.info("DeepSeek upstream answered %d", status)
        return Response(content=body, status_code=status, media_type="application/json")

    for path in RELAY_PATHS:
        app.add_api_route(path, relay, methods=ALLOWED_METHODS)

    @app.get("/healthz")
    async def healthz() -> dict[str, str]:
        return {"status": "ok"}

    return app
