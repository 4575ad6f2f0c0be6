"""
Pydantic models for the two wire shapes served by the facade.

The Ollama side (`ChatRequest`/`ChatResponse`, embeddings) is what clients
such as Open WebUI send and expect; the OpenAI side (`CompletionRequest`/
`CompletionResponse`) covers the `/v1/chat/completions` shim. Unknown
incoming fields (images, tools, keep_alive, ...) are ignored.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field


class Message(BaseModel):
    role: Optional[str] = ""
    content: Optional[str] = ""


class ChatRequest(BaseModel):
    """Body of `POST /api/chat`."""

    chat_id: Optional[str] = None
    id: Optional[str] = None
    messages: List[Message] = Field(default_factory=list)
    model: str = ""
    options: Dict[str, Any] = Field(default_factory=dict)
    session_id: Optional[str] = None
    stream: bool = True


class ChatResponse(BaseModel):
    """A single NDJSON line of an Ollama chat reply."""

    model: Optional[str] = None
    created_at: str
    message: Message
    done: bool
    total_duration: Optional[int] = None
    load_duration: Optional[int] = None
    prompt_eval_count: Optional[int] = None
    prompt_eval_duration: Optional[int] = None
    eval_count: Optional[int] = None
    eval_duration: Optional[int] = None

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


class CompletionRequest(BaseModel):
    """Body of `POST /v1/chat/completions`."""

    model: str = ""
    messages: List[Message] = Field(default_factory=list)
    stream: bool = False
    max_tokens: Optional[int] = None


class Choice(BaseModel):
    index: int
    message: Message
    finish_reason: str


class Usage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class CompletionResponse(BaseModel):
    id: str
    object: str
    created: int
    model: Optional[str] = None
    system_fingerprint: str
    choices: List[Choice]
    usage: Usage


class EmbedRequest(BaseModel):
    """Body of `POST /api/embed`."""

    model: str = ""
    input: Union[str, List[str]]
    truncate: Optional[bool] = None
    options: Optional[Dict[str, Any]] = None

    def inputs(self) -> List[str]:
        return [self.input] if isinstance(self.input, str) else list(self.input)


class EmbedResponse(BaseModel):
    model: str
    embeddings: List[List[float]]
    prompt_eval_count: Optional[int] = None


class LegacyEmbeddingRequest(BaseModel):
    """Body of the older `POST /api/embeddings` route."""

    model: str = ""
    prompt: str


class LegacyEmbeddingResponse(BaseModel):
    embedding: List[float]


__all__ = [
    "ChatRequest",
    "ChatResponse",
    "Choice",
    "CompletionRequest",
    "CompletionResponse",
    "EmbedRequest",
    "EmbedResponse",
    "LegacyEmbeddingRequest",
    "LegacyEmbeddingResponse",
    "Message",
    "Usage",
]
