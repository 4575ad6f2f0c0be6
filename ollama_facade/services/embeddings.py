"""
Embedding generation against an OpenAI-compatible `/embeddings` endpoint.

LM Studio ignores `encoding_format` and always answers with raw float
arrays, so the request asks for floats explicitly and the response is mapped
by hand instead of relying on base64 decoding.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional

import requests

from .models import EMBEDDINGS_PATH, backend_request, decode_json, ensure_openai_base_url, parse_usage
from .types import BackendError, EmbeddingResult

logger = logging.getLogger("ollama_facade.services.embeddings")


class EmbeddingClient:
    """Generate embeddings for one or more texts in a single request."""

    def __init__(
        self,
        base_url: str,
        model: str = "lm-studio",
        api_key: Optional[str] = "none",
        session: Optional[requests.Session] = None,
        timeout: float = 120,
    ):
        if model is None:
            raise ValueError("model must not be None")
        self.base_url = ensure_openai_base_url(base_url)
        self.endpoint = self.base_url + EMBEDDINGS_PATH
        self.model = model
        self.api_key = api_key
        self.session = session or requests.Session()
        self.timeout = timeout

    def embed(self, values: Iterable[str]) -> EmbeddingResult:
        if values is None:
            raise ValueError("values must not be None")
        inputs: List[str] = [values] if isinstance(values, str) else list(values)

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        response = backend_request(
            session=self.session,
            endpoint=self.endpoint,
            payload={"input": inputs, "model": self.model, "encoding_format": "float"},
            headers=headers,
            timeout=self.timeout,
            model=self.model,
        )
        data = decode_json(response, endpoint=self.endpoint, model=self.model)

        items = data.get("data") or []
        vectors = [list(item.get("embedding") or []) for item in items if isinstance(item, dict)]
        if not vectors:
            raise BackendError("No embeddings found in the response.")

        logger.info(
            "Embeddings generated",
            extra={"model": self.model, "inputs": len(inputs), "dimensions": len(vectors[0])},
        )
        return EmbeddingResult(
            vectors=vectors,
            model=data.get("model") or self.model,
            usage=parse_usage(data.get("usage")),
        )


__all__ = ["EmbeddingClient"]
