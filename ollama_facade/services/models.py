"""
Backend invocation utilities for the facade.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Optional
from urllib.parse import urlparse, urlunparse

import requests

from .types import BackendError, BackendMessage, ChatHistory, TokenUsage

logger = logging.getLogger("ollama_facade.services.models")

CHAT_COMPLETIONS_PATH = "/chat/completions"
EMBEDDINGS_PATH = "/embeddings"


def ensure_openai_base_url(base_url: str) -> str:
    """
    Normalise a user-supplied OpenAI-compatible base URL.

    Accepts bare hosts (e.g. http://localhost:1234), `/v1` roots with or
    without a trailing slash, and full `/chat/completions` or `/embeddings`
    URLs, and returns the API root without a trailing slash. Custom roots
    (e.g. Azure deployment paths) are preserved as-is.
    """
    if not base_url:
        return base_url

    parsed = urlparse(base_url.strip())
    path = (parsed.path or "").rstrip("/")

    for suffix in (CHAT_COMPLETIONS_PATH, EMBEDDINGS_PATH):
        if path.endswith(suffix):
            path = path[: -len(suffix)]
            break

    if not path:
        path = "/v1"

    normalised = parsed._replace(path=path)
    return urlunparse(normalised).rstrip("/")


def _preview(response: requests.Response, limit: int) -> str:
    body = (response.text or "").strip()
    preview = body[:limit]
    if len(body) > len(preview):
        preview += "…"
    return preview


def backend_request(
    *,
    session: requests.Session,
    endpoint: str,
    payload: Dict[str, Any],
    headers: Dict[str, str],
    timeout: float,
    model: str,
    stream: bool = False,
) -> requests.Response:
    """POST to the backend and raise `BackendError` on transport or HTTP failures."""
    try:
        response = session.post(endpoint, json=payload, headers=headers, timeout=timeout, stream=stream)
    except requests.RequestException as exc:
        raise BackendError(f"Backend request failed for model '{model}' at {endpoint}: {exc}") from exc

    try:
        response.raise_for_status()
    except requests.HTTPError as exc:
        preview = _preview(response, 1000)
        response.close()
        raise BackendError(
            f"Backend HTTP {response.status_code} for model '{model}' at {endpoint}: {preview}"
        ) from exc

    return response


def decode_json(response: requests.Response, *, endpoint: str, model: str) -> Dict[str, Any]:
    try:
        return response.json()
    except ValueError as exc:
        preview = _preview(response, 500)
        raise BackendError(
            f"Backend returned non-JSON payload for model '{model}' at {endpoint}: {preview}"
        ) from exc


def parse_usage(data: Any) -> Optional[TokenUsage]:
    if not isinstance(data, dict):
        return None
    return TokenUsage(
        prompt_tokens=int(data.get("prompt_tokens") or 0),
        completion_tokens=int(data.get("completion_tokens") or data.get("output_tokens") or 0),
        total_tokens=int(data.get("total_tokens") or 0),
    )


def _parse_created(value: Any) -> Optional[datetime]:
    if isinstance(value, (int, float)) and value > 0:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    return None


def _message_from_payload(payload: Dict[str, Any], *, key: str) -> BackendMessage:
    choices = payload.get("choices") or []
    choice = choices[0] if choices else {}
    body = choice.get(key) or {}
    content = body.get("content")
    if key == "message" and not content:
        content = choice.get("text", content)

    return BackendMessage(
        content=content,
        role=body.get("role"),
        model_id=payload.get("model"),
        created_at=_parse_created(payload.get("created")),
        finish_reason=choice.get("finish_reason"),
        usage=parse_usage(payload.get("usage")),
        system_fingerprint=payload.get("system_fingerprint"),
        response_id=payload.get("id"),
    )


class ChatCompletionClient:
    """Thin wrapper around an OpenAI-compatible `/chat/completions` endpoint."""

    def __init__(
        self,
        base_url: str,
        model: str,
        api_key: Optional[str] = "none",
        session: Optional[requests.Session] = None,
        timeout: float = 600,
    ):
        self.base_url = ensure_openai_base_url(base_url)
        self.endpoint = self.base_url + CHAT_COMPLETIONS_PATH
        self.model = model
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        headers: Dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"
        return headers

    def _build_payload(
        self,
        history: ChatHistory,
        settings: Optional[Dict[str, Any]],
        *,
        stream: bool,
    ) -> Dict[str, Any]:
        payload: Dict[str, Any] = dict(settings or {})
        payload["model"] = self.model
        payload["messages"] = history.to_payload()
        payload["stream"] = stream
        return payload

    def complete(self, history: ChatHistory, settings: Optional[Dict[str, Any]] = None) -> BackendMessage:
        """Request a single, complete reply."""
        payload = self._build_payload(history, settings, stream=False)
        response = backend_request(
            session=self.session,
            endpoint=self.endpoint,
            payload=payload,
            headers=self._headers(),
            timeout=self.timeout,
            model=self.model,
        )
        data = decode_json(response, endpoint=self.endpoint, model=self.model)
        message = _message_from_payload(data, key="message")
        logger.info(
            "Backend completion received",
            extra={
                "model": self.model,
                "messages": len(history),
                "completion_chars": len(message.content or ""),
            },
        )
        return message

    def stream(
        self, history: ChatHistory, settings: Optional[Dict[str, Any]] = None
    ) -> Iterator[BackendMessage]:
        """
        Open a streaming completion and return an iterator over its deltas.

        The HTTP request is issued before this method returns, so connection
        and status errors surface here rather than halfway through a response.
        """
        payload = self._build_payload(history, settings, stream=True)
        response = backend_request(
            session=self.session,
            endpoint=self.endpoint,
            payload=payload,
            headers=self._headers(),
            timeout=self.timeout,
            model=self.model,
            stream=True,
        )
        logger.info("Backend stream opened", extra={"model": self.model, "messages": len(history)})
        return self._iter_stream(response)

    def _iter_stream(self, response: requests.Response) -> Iterator[BackendMessage]:
        try:
            for raw_line in response.iter_lines():
                if isinstance(raw_line, bytes):
                    raw_line = raw_line.decode("utf-8", errors="replace")
                line = raw_line.strip()
                if not line or line.startswith(":"):
                    continue
                if line.startswith("data:"):
                    line = line[len("data:") :].strip()
                if line == "[DONE]":
                    break
                try:
                    chunk = json.loads(line)
                except json.JSONDecodeError:
                    logger.warning("Skipping undecodable stream line", extra={"line": line[:200]})
                    continue
                if not isinstance(chunk, dict):
                    continue
                if chunk.get("error"):
                    raise BackendError(f"Backend stream error for model '{self.model}': {chunk['error']}")
                yield _message_from_payload(chunk, key="delta")
        except requests.RequestException as exc:
            raise BackendError(f"Backend stream interrupted for model '{self.model}': {exc}") from exc
        finally:
            response.close()


__all__ = [
    "ChatCompletionClient",
    "backend_request",
    "decode_json",
    "ensure_openai_base_url",
    "parse_usage",
]
