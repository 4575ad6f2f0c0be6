"""
Route registration for the Ollama facade.

`map_ollama_backend_facade` installs the static Ollama endpoints clients probe
on start-up (`/api/tags`, `/api/version`) plus the `/v1/chat/completions`
shim; `map_post_api_chat` adds `POST /api/chat` with a pluggable handler.
Routes that the host app already defines are left alone, so an application
can override any of them by registering its own first.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional, Union

from fastapi import FastAPI, HTTPException, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import PlainTextResponse, Response

from ollama_facade.config.settings import DEFAULT_MODEL_NAME, DEFAULT_OLLAMA_VERSION
from ollama_facade.services import BackendError, BackendMessage, ChatCompletionClient, EmbeddingClient

from .context import set_chat_request
from .mapper import to_chat_history, to_completion_response, to_execution_settings
from .schema import (
    ChatRequest,
    CompletionRequest,
    EmbedRequest,
    EmbedResponse,
    LegacyEmbeddingRequest,
    LegacyEmbeddingResponse,
)
from .streaming import stream_to_response

logger = logging.getLogger("ollama_facade.web.routes")

TAGS_DIGEST = "a6990ed6be412c6a217614b0ec8e9cd6800a743d5dd7e1d7fbe9df09e61d5615"

HandlerResult = Union[Response, Iterable[BackendMessage]]
ChatHandler = Callable[[ChatRequest, ChatCompletionClient, Request], HandlerResult]


def is_route_registered(app: FastAPI, path: str, method: str) -> bool:
    method = method.upper()
    path = path.lower()
    for route in app.router.routes:
        route_path = getattr(route, "path", None)
        methods = getattr(route, "methods", None) or set()
        if route_path and route_path.lower() == path and method in {m.upper() for m in methods}:
            return True
    return False


def _backend_failure(exc: BackendError) -> HTTPException:
    logger.error("Backend call failed", extra={"error": str(exc)})
    return HTTPException(status_code=502, detail=str(exc))


def map_ollama_backend_facade(
    app: FastAPI,
    client: ChatCompletionClient,
    *,
    model_name: str = DEFAULT_MODEL_NAME,
    ollama_api_version: str = DEFAULT_OLLAMA_VERSION,
    embedding_client: Optional[EmbeddingClient] = None,
) -> FastAPI:
    """
    Register the Ollama discovery routes and the OpenAI completions shim.

    Args:
        app: Application to extend.
        client: Backend used by `/v1/chat/completions`.
        model_name: Single model advertised by `/api/tags`.
        ollama_api_version: Version reported by `/api/version`.
        embedding_client: When given, `/api/embed` and `/api/embeddings` are added too.

    Returns:
        FastAPI: The same app, for chaining.
    """

    if not is_route_registered(app, "/api/tags", "GET"):

        @app.get("/api/tags")
        def list_tags() -> dict:
            return {
                "models": [
                    {
                        "name": model_name,
                        "model": f"{model_name}:latest",
                        "digest": TAGS_DIGEST,
                    }
                ]
            }

    if not is_route_registered(app, "/api/version", "GET"):

        @app.get("/api/version")
        def version() -> dict:
            return {"version": ollama_api_version}

    if not is_route_registered(app, "/v1/chat/completions", "POST"):

        @app.post("/v1/chat/completions")
        def chat_completions(request: CompletionRequest) -> dict:
            if not request.messages or request.messages[0].content is None:
                raise HTTPException(status_code=400, detail="Request must contain at least one message with content.")

            settings = {}
            if request.max_tokens is not None and request.max_tokens > 0:
                settings["max_tokens"] = request.max_tokens
            history = to_chat_history(ChatRequest(messages=request.messages, model=request.model))

            try:
                message = client.complete(history, settings)
            except BackendError as exc:
                raise _backend_failure(exc) from exc
            return to_completion_response(message).model_dump()

    if embedding_client is not None:
        _map_embedding_routes(app, embedding_client)

    return app


def _map_embedding_routes(app: FastAPI, embedding_client: EmbeddingClient) -> None:
    if not is_route_registered(app, "/api/embed", "POST"):

        @app.post("/api/embed")
        def embed(request: EmbedRequest) -> dict:
            try:
                result = embedding_client.embed(request.inputs())
            except BackendError as exc:
                raise _backend_failure(exc) from exc
            response = EmbedResponse(
                model=request.model or result.model or embedding_client.model,
                embeddings=result.vectors,
                prompt_eval_count=result.usage.prompt_tokens if result.usage else None,
            )
            return response.model_dump(exclude_none=True)

    if not is_route_registered(app, "/api/embeddings", "POST"):

        @app.post("/api/embeddings")
        def legacy_embeddings(request: LegacyEmbeddingRequest) -> dict:
            try:
                result = embedding_client.embed([request.prompt])
            except BackendError as exc:
                raise _backend_failure(exc) from exc
            return LegacyEmbeddingResponse(embedding=result.vectors[0]).model_dump()


def default_chat_handler(system_prompt: str = "") -> ChatHandler:
    """Build the standard `/api/chat` handler: forward the conversation and stream the reply."""

    def handle(chat_request: ChatRequest, client: ChatCompletionClient, request: Request) -> Response:
        history = to_chat_history(chat_request, system_message=system_prompt)
        settings = to_execution_settings(chat_request.options)
        if chat_request.stream:
            return stream_to_response(client.stream(history, settings))
        return stream_to_response([client.complete(history, settings)])

    return handle


def map_post_api_chat(
    app: FastAPI,
    client: ChatCompletionClient,
    handler: Optional[ChatHandler] = None,
    **facade_options,
) -> FastAPI:
    """
    Register `POST /api/chat` (and the rest of the facade) on `app`.

    The handler receives the parsed request, the backend client and the raw
    Starlette request, and runs in the worker thread pool. It may return a
    response, or an iterable of backend messages which is then streamed as
    NDJSON.
    """

    map_ollama_backend_facade(app, client, **facade_options)
    chat_handler = handler or default_chat_handler()

    @app.post("/api/chat")
    async def api_chat(request: Request) -> Response:
        try:
            chat_request = ChatRequest.model_validate(await request.json())
        except ValueError:
            return PlainTextResponse("Invalid request body", status_code=400)

        set_chat_request(request, chat_request)
        logger.info(
            "Chat request received",
            extra={
                "model": chat_request.model,
                "messages": len(chat_request.messages),
                "stream": chat_request.stream,
            },
        )

        try:
            result = await run_in_threadpool(chat_handler, chat_request, client, request)
        except BackendError as exc:
            raise _backend_failure(exc) from exc

        if isinstance(result, Response):
            return result
        return stream_to_response(result)

    return app


__all__ = [
    "ChatHandler",
    "TAGS_DIGEST",
    "default_chat_handler",
    "is_route_registered",
    "map_ollama_backend_facade",
    "map_post_api_chat",
]
