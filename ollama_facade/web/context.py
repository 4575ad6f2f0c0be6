"""
Per-request storage for the parsed Ollama chat request.
"""

from __future__ import annotations

from typing import Optional

from starlette.requests import Request

from .schema import ChatRequest

CHAT_REQUEST_KEY = "chat_request"


def set_chat_request(request: Request, chat_request: ChatRequest) -> None:
    if request is None:
        raise ValueError("request must not be None")
    if chat_request is None:
        raise ValueError("chat_request must not be None")
    setattr(request.state, CHAT_REQUEST_KEY, chat_request)


def get_chat_request(request: Optional[Request]) -> Optional[ChatRequest]:
    """Return the chat request stored for this HTTP request, if any."""
    if request is None:
        raise ValueError("request must not be None")
    value = getattr(request.state, CHAT_REQUEST_KEY, None)
    return value if isinstance(value, ChatRequest) else None


__all__ = ["get_chat_request", "set_chat_request"]
