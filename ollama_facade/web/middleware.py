"""
Starlette middleware used by the facade app.
"""

from __future__ import annotations

import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import RedirectResponse

logger = logging.getLogger("ollama_facade.web.middleware")

# (method or None for any method, lowercase path)
OLLAMA_API_ROUTES = (
    ("POST", "/api/chat"),
    ("POST", "/v1/chat/completions"),
    (None, "/api/tags"),
    (None, "/api/version"),
)


class JsonRequestLoggerMiddleware(BaseHTTPMiddleware):
    """Log JSON request bodies, e.g. to see exactly what Open WebUI sends."""

    async def dispatch(self, request: Request, call_next):
        content_type = request.headers.get("content-type", "")
        try:
            content_length = int(request.headers.get("content-length") or 0)
        except ValueError:
            content_length = 0

        if content_length > 0 and "application/json" in content_type:
            body = await request.body()
            logger.info(
                "Request JSON:\n%s",
                body.decode("utf-8", errors="replace"),
                extra={"method": request.method, "path": request.url.path, "bytes": len(body)},
            )

        return await call_next(request)


def is_ollama_api_request(method: str, path: str) -> bool:
    method = method.upper()
    path = path.lower()
    for route_method, route_path in OLLAMA_API_ROUTES:
        if path == route_path and (route_method is None or route_method == method):
            return True
    return False


class HttpsRedirectExceptOllamaMiddleware(BaseHTTPMiddleware):
    """Redirect plain HTTP to HTTPS for everything but the Ollama API routes."""

    async def dispatch(self, request: Request, call_next):
        if request.url.scheme == "http" and not is_ollama_api_request(request.method, request.url.path):
            netloc = request.url.hostname or ""
            if request.url.port and request.url.port not in (80, 443):
                netloc = f"{netloc}:{request.url.port}"
            target = request.url.replace(scheme="https", netloc=netloc)
            return RedirectResponse(str(target), status_code=307)
        return await call_next(request)


__all__ = [
    "HttpsRedirectExceptOllamaMiddleware",
    "JsonRequestLoggerMiddleware",
    "is_ollama_api_request",
]
