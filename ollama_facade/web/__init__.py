"""
HTTP layer of the facade.

Exposes the wire schemas, mapping helpers and route registration functions
so applications can build their own `/api/chat` handlers on top of them.
"""

from .context import get_chat_request, set_chat_request
from .mapper import (
    change_system_prompt,
    to_chat_history,
    to_chat_response,
    to_completion_response,
    to_execution_settings,
)
from .routes import default_chat_handler, map_ollama_backend_facade, map_post_api_chat
from .schema import ChatRequest, ChatResponse, CompletionRequest, CompletionResponse, Message
from .streaming import is_valid_chat_response, stream_to_response

__all__ = [
    "ChatRequest",
    "ChatResponse",
    "CompletionRequest",
    "CompletionResponse",
    "Message",
    "change_system_prompt",
    "default_chat_handler",
    "get_chat_request",
    "is_valid_chat_response",
    "map_ollama_backend_facade",
    "map_post_api_chat",
    "set_chat_request",
    "stream_to_response",
    "to_chat_history",
    "to_chat_response",
    "to_completion_response",
    "to_execution_settings",
]
