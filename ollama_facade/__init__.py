"""
ollama_facade package bootstrap.

Serves an Ollama-compatible HTTP surface in front of any OpenAI-compatible
chat-completion backend (LM Studio, AI Toolkit for VS Code, OpenAI, ...).
"""

from importlib import metadata


def get_version() -> str:
    """Return the package version if installed, else '0.0.0'."""
    try:
        return metadata.version("ollama_facade")
    except metadata.PackageNotFoundError:  # pragma: no cover - best effort only
        return "0.0.0"


__all__ = ["get_version"]
