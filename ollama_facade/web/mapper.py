"""
Translation between the Ollama wire schema and backend-neutral chat types.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ollama_facade.services.types import (
    ASSISTANT,
    KNOWN_ROLES,
    SYSTEM,
    BackendMessage,
    ChatHistory,
    ChatMessage,
)

from .schema import ChatRequest, ChatResponse, Choice, CompletionResponse, Message, Usage

logger = logging.getLogger("ollama_facade.web.mapper")

MIN_CREATED_AT = datetime.min.replace(tzinfo=timezone.utc).isoformat()

# Ollama option name -> OpenAI request parameter
OPTION_FIELD_MAP: Dict[str, str] = {
    "temperature": "temperature",
    "top_p": "top_p",
    "seed": "seed",
    "stop": "stop",
    "num_predict": "max_tokens",
    "max_tokens": "max_tokens",
    "presence_penalty": "presence_penalty",
    "frequency_penalty": "frequency_penalty",
}


def to_chat_history(request: ChatRequest, system_message: str = "") -> ChatHistory:
    """
    Convert an Ollama chat request into the history sent to the backend.

    Args:
        request: Parsed `/api/chat` body.
        system_message: Optional system prompt placed before the request messages.

    Returns:
        ChatHistory: Messages with a known role, in request order.
    """

    history = ChatHistory()
    if system_message:
        history.add_system_message(system_message)

    for message in request.messages:
        if message.role not in KNOWN_ROLES:
            logger.debug("Dropping message with unsupported role", extra={"role": message.role})
            continue
        history.add_message(message.role, message.content or "")

    return history


def change_system_prompt(history: ChatHistory, system_prompt: str) -> None:
    """Replace the first message of `history` with a system prompt, or add one if empty."""

    if len(history) == 0:
        history.add_system_message(system_prompt)
    else:
        history[0] = ChatMessage(role=SYSTEM, content=system_prompt)


def to_execution_settings(options: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    settings: Dict[str, Any] = {}
    for key, value in (options or {}).items():
        target = OPTION_FIELD_MAP.get(key)
        if target is None:
            logger.debug("Dropping option without an OpenAI counterpart", extra={"option": key})
            continue
        if value is None:
            continue
        if target == "max_tokens":
            try:
                value = int(value)
            except (TypeError, ValueError):
                logger.debug("Dropping non-numeric token limit", extra={"option": key, "value": value})
                continue
            if value <= 0:
                continue
        settings[target] = value
    return settings


def _created_at(message: BackendMessage) -> str:
    if message.created_at is None:
        return MIN_CREATED_AT
    created = message.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created.astimezone(timezone.utc).isoformat()


def to_chat_response(message: BackendMessage) -> ChatResponse:
    """
    Map a backend reply (or streamed delta) to an Ollama chat response line.

    A message with empty content is flagged as `done`, which is how the
    streaming adapter recognises and drops terminal/keep-alive deltas.
    """

    content = message.content or ""
    response = ChatResponse(
        model=message.model_id,
        created_at=_created_at(message),
        message=Message(role=message.role or ASSISTANT, content=content),
        done=not content,
    )
    if message.usage is not None:
        response.prompt_eval_count = message.usage.prompt_tokens
        response.eval_count = message.usage.completion_tokens
    return response


def to_completion_response(message: BackendMessage) -> CompletionResponse:
    usage = Usage()
    if message.usage is not None:
        usage = Usage(
            prompt_tokens=message.usage.prompt_tokens,
            completion_tokens=message.usage.completion_tokens,
            total_tokens=message.usage.total_tokens,
        )

    return CompletionResponse(
        id=message.response_id or f"chatcmpl-{uuid.uuid4().hex}",
        object="chat.completion",
        created=int(time.time()),
        model=message.model_id,
        system_fingerprint=message.system_fingerprint or "",
        choices=[
            Choice(
                index=0,
                message=Message(role=message.role or ASSISTANT, content=message.content),
                finish_reason=message.finish_reason or "stop",
            )
        ],
        usage=usage,
    )


__all__ = [
    "MIN_CREATED_AT",
    "OPTION_FIELD_MAP",
    "change_system_prompt",
    "to_chat_history",
    "to_chat_response",
    "to_completion_response",
    "to_execution_settings",
]
