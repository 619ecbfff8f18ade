"""CORS relay that forwards browser requests to a provider API."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response

from avatarcast.config import RelaySettings

if TYPE_CHECKING:
    from avatarcast.config import AppConfig

logger = logging.getLogger(__name__)

# Request headers that describe the hop to the relay, not the upstream call.
_HOP_HEADERS = frozenset({
    "host",
    "origin",
    "referer",
    "connection",
    "keep-alive",
    "content-length",
    "transfer-encoding",
    "accept-encoding",
})

FORWARDED_METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


def cors_headers(policy: RelaySettings, origin: str | None, api_key_header: str) -> dict[str, str]:
    """Build ``Access-Control-Allow-*`` headers for a response.

    A ``*`` entry allows any origin. Otherwise a listed origin is echoed back
    and anything else receives the first allowed origin.
    """
    allowed = policy.allowed_origins or ["*"]
    if "*" in allowed:
        allow_origin = "*"
    else:
        allow_origin = origin if origin in allowed else allowed[0]
    headers = {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": ", ".join(policy.allowed_methods),
        "Access-Control-Allow-Headers": f"Content-Type, Authorization, {api_key_header}",
        "Access-Control-Max-Age": str(policy.max_age),
    }
    if allow_origin != "*":
        headers["Vary"] = "Origin"
    return headers


def create_relay_app(
    upstream_url: str,
    *,
    api_key_header: str,
    api_key: str = "",
    policy: RelaySettings | None = None,
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Create an ASGI app relaying every path to ``upstream_url``.

    The API key is read from the incoming ``api_key_header``, falling back to
    ``api_key``. Upstream statuses and bodies pass through unchanged.
    """
    policy = policy or RelaySettings()
    base = upstream_url.rstrip("/")
    app = FastAPI(title=f"avatarcast relay -> {base}")

    def _cors(request: Request) -> dict[str, str]:
        return cors_headers(policy, request.headers.get("origin"), api_key_header)

    @app.exception_handler(Exception)
    async def relay_error(request: Request, exc: Exception) -> JSONResponse:
        logger.error("Relay error for %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse({"error": str(exc) or type(exc).__name__}, status_code=500,
                            headers=_cors(request))

    @app.options("/{path:path}")
    async def preflight(request: Request, path: str) -> Response:
        return Response(status_code=204, headers=_cors(request))

    @app.api_route("/{path:path}", methods=FORWARDED_METHODS)
    async def forward(request: Request, path: str) -> Response:
        key = request.headers.get(api_key_header) or api_key
        missing = [name for name, value in (("API key", key), ("endpoint", path)) if not value]
        if missing:
            return JSONResponse(
                {"error": f"Missing required parameters: {', '.join(missing)}"},
                status_code=400,
                headers=_cors(request),
            )

        url = f"{base}/{path}"
        if request.url.query:
            url = f"{url}?{request.url.query}"
        skip = _HOP_HEADERS | {api_key_header.lower()}
        headers = {k: v for k, v in request.headers.items() if k.lower() not in skip}
        headers[api_key_header] = key
        body = await request.body()

        logger.info("Forwarding %s /%s", request.method, path)
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
                upstream = await client.request(request.method, url, content=body, headers=headers)
        except httpx.HTTPError as exc:
            logger.error("Upstream request to %s failed: %s", url, exc)
            return JSONResponse(
                {"error": str(exc) or type(exc).__name__},
                status_code=500,
                headers=_cors(request),
            )

        if upstream.is_error:
            logger.warning("Upstream %s /%s -> %d", request.method, path, upstream.status_code)
        return Response(
            content=upstream.content,
            status_code=upstream.status_code,
            media_type=upstream.headers.get("content-type"),
            headers=_cors(request),
        )

    return app


def create_provider_relay(target: str, config: AppConfig) -> FastAPI:
    """Relay for one of the configured providers (``heygen`` or ``elevenlabs``)."""
    if target == "heygen":
        provider = config.heygen
    elif target == "elevenlabs":
        provider = config.elevenlabs
    else:
        msg = f"unknown relay target '{target}' (expected heygen or elevenlabs)"
        raise ValueError(msg)
    return create_relay_app(
        provider.base_url,
        api_key_header=provider.api_key_header,
        api_key=provider.api_key,
        policy=config.relay,
        timeout=config.polling.request_timeout_seconds,
    )
