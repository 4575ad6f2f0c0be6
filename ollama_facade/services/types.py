"""
Dataclasses describing the backend-neutral chat payloads.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Iterator, List, Optional

USER = "user"
ASSISTANT = "assistant"
SYSTEM = "system"
DEVELOPER = "developer"

KNOWN_ROLES = (USER, ASSISTANT, SYSTEM, DEVELOPER)


class BackendError(RuntimeError):
    """Raised when the OpenAI-compatible backend cannot be reached or answers badly."""


@dataclass(slots=True)
class ChatMessage:
    """Single turn sent to the backend."""

    role: str
    content: str

    def to_payload(self) -> dict:
        return {"role": self.role, "content": self.content}


@dataclass(slots=True)
class ChatHistory:
    """Ordered conversation forwarded to the backend."""

    messages: List[ChatMessage] = field(default_factory=list)

    def add_message(self, role: str, content: str) -> None:
        self.messages.append(ChatMessage(role=role, content=content))

    def add_user_message(self, content: str) -> None:
        self.add_message(USER, content)

    def add_system_message(self, content: str) -> None:
        self.add_message(SYSTEM, content)

    def to_payload(self) -> List[dict]:
        return [message.to_payload() for message in self.messages]

    def __len__(self) -> int:
        return len(self.messages)

    def __getitem__(self, index: int) -> ChatMessage:
        return self.messages[index]

    def __setitem__(self, index: int, message: ChatMessage) -> None:
        self.messages[index] = message

    def __iter__(self) -> Iterator[ChatMessage]:
        return iter(self.messages)


@dataclass(slots=True)
class TokenUsage:
    """Token accounting reported by the backend."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(slots=True)
class BackendMessage:
    """
    A complete reply or a single streamed delta from the backend.

    Streamed deltas usually carry only `content`; the role is set on the first
    delta and `finish_reason`/`usage` on the last ones.
    """

    content: Optional[str]
    role: Optional[str] = None
    model_id: Optional[str] = None
    created_at: Optional[datetime] = None
    finish_reason: Optional[str] = None
    usage: Optional[TokenUsage] = None
    system_fingerprint: Optional[str] = None
    response_id: Optional[str] = None


@dataclass(slots=True)
class EmbeddingResult:
    """Vectors returned by the embeddings endpoint."""

    vectors: List[List[float]]
    model: Optional[str] = None
    usage: Optional[TokenUsage] = None


__all__ = [
    "ASSISTANT",
    "BackendError",
    "BackendMessage",
    "ChatHistory",
    "ChatMessage",
    "DEVELOPER",
    "EmbeddingResult",
    "KNOWN_ROLES",
    "SYSTEM",
    "TokenUsage",
    "USER",
]
