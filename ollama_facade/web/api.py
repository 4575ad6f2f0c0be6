"""
FastAPI application that presents an OpenAI-compatible backend as Ollama.

The app is stateless: every request maps to one backend call and one
response, so several instances can run side by side.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import PlainTextResponse

from ollama_facade import get_version
from ollama_facade.config.settings import FacadeSettings
from ollama_facade.services import ChatCompletionClient, EmbeddingClient
from ollama_facade.utils.proxy import add_proxy_for_debug

from .middleware import HttpsRedirectExceptOllamaMiddleware, JsonRequestLoggerMiddleware
from .routes import ChatHandler, default_chat_handler, map_post_api_chat

logger = logging.getLogger("ollama_facade.web.api")
if not logging.getLogger().handlers:
    logging.basicConfig(level=logging.INFO)


def build_clients(settings: FacadeSettings) -> tuple[ChatCompletionClient, Optional[EmbeddingClient]]:
    """Create the backend clients described by `settings`, sharing one HTTP session."""

    chat_client = ChatCompletionClient(
        base_url=settings.base_url,
        model=settings.model,
        api_key=settings.api_key,
        timeout=settings.timeout,
    )
    if settings.debug_proxy:
        add_proxy_for_debug(chat_client.session, settings.debug_proxy)

    embedding_client = None
    if settings.embedding_model:
        embedding_client = EmbeddingClient(
            base_url=settings.base_url,
            model=settings.embedding_model,
            api_key=settings.api_key,
            session=chat_client.session,
        )
    return chat_client, embedding_client


def create_app(
    client: Optional[ChatCompletionClient] = None,
    settings: Optional[FacadeSettings] = None,
    embedding_client: Optional[EmbeddingClient] = None,
    chat_handler: Optional[ChatHandler] = None,
) -> FastAPI:
    """
    Build the facade app.

    Args:
        client: Pre-configured backend client (useful for tests); built from
            `settings` when omitted.
        settings: Runtime configuration; read from the environment when omitted.
        embedding_client: Optional embeddings backend for `/api/embed`.
        chat_handler: Custom `/api/chat` handler; the default forwards the
            conversation and streams the reply.

    Returns:
        FastAPI instance with the Ollama routes registered.
    """

    settings = settings or FacadeSettings.from_env()
    if client is None:
        client, built_embedding_client = build_clients(settings)
        embedding_client = embedding_client or built_embedding_client

    app = FastAPI(title="Ollama API Facade", version=get_version())

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    if settings.log_requests:
        app.add_middleware(JsonRequestLoggerMiddleware)
    if settings.https_redirect:
        app.add_middleware(HttpsRedirectExceptOllamaMiddleware)

    @app.get("/", response_class=PlainTextResponse)
    def root() -> str:
        """Plain-text liveness probe, matching Ollama's root response."""

        return "Ollama is running"

    map_post_api_chat(
        app,
        client,
        chat_handler or default_chat_handler(settings.system_prompt),
        model_name=settings.model_name,
        ollama_api_version=settings.ollama_version,
        embedding_client=embedding_client,
    )

    logger.info(
        "Ollama facade configured",
        extra={
            "backend": settings.backend,
            "base_url": client.base_url,
            "model": client.model,
            "advertised_model": settings.model_name,
            "embeddings": embedding_client is not None,
        },
    )
    return app


__all__ = ["build_clients", "create_app"]
