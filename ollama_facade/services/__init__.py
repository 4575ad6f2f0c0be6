"""
Backend-facing service layer: OpenAI-compatible chat and embedding clients.

This package exposes the primary classes via lazy imports so that importing
`ollama_facade.services.types` does not pull in the HTTP client stack.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict

__all__ = [
    "BackendError",
    "BackendMessage",
    "ChatCompletionClient",
    "ChatHistory",
    "ChatMessage",
    "EmbeddingClient",
    "EmbeddingResult",
    "TokenUsage",
]

_MODULE_ATTRS: Dict[str, str] = {
    "BackendError": "ollama_facade.services.types",
    "BackendMessage": "ollama_facade.services.types",
    "ChatCompletionClient": "ollama_facade.services.models",
    "ChatHistory": "ollama_facade.services.types",
    "ChatMessage": "ollama_facade.services.types",
    "EmbeddingClient": "ollama_facade.services.embeddings",
    "EmbeddingResult": "ollama_facade.services.types",
    "TokenUsage": "ollama_facade.services.types",
}


def __getattr__(name: str) -> Any:
    module_path = _MODULE_ATTRS.get(name)
    if not module_path:
        raise AttributeError(f"module 'ollama_facade.services' has no attribute '{name}'")  # pragma: no cover
    module = import_module(module_path)
    return getattr(module, name)


def __dir__() -> list[str]:  # pragma: no cover - convenience helper
    return sorted(__all__)
