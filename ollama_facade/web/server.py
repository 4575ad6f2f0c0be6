"""
Command-line entry point for running the Ollama facade.

Usage:
    python -m ollama_facade.web.server [--host HOST] [--port PORT] [--reload]

By default the server binds to localhost:11434, the address Ollama clients
try first. Backend selection is read from the environment (see
`ollama_facade.config.settings`):
    FACADE_BACKEND     lmstudio | ai-toolkit | openai (default: lmstudio)
    FACADE_BASE_URL    Custom OpenAI-compatible base URL.
    FACADE_MODEL       Backend model name.
    FACADE_HOST        Host interface to bind (default: localhost).
    FACADE_PORT        Port for the service (default: 11434).
    FACADE_RELOAD      Set to "1" to enable autoreload (development only).
"""

from __future__ import annotations

import argparse
from typing import List, Optional

import uvicorn

from ollama_facade.config.settings import FacadeSettings


def parse_args(argv: Optional[List[str]] = None, settings: Optional[FacadeSettings] = None) -> argparse.Namespace:
    settings = settings or FacadeSettings.from_env()
    parser = argparse.ArgumentParser(description="Serve an OpenAI-compatible backend through the Ollama API.")
    parser.add_argument("--host", default=settings.host)
    parser.add_argument("--port", type=int, default=settings.port)
    parser.add_argument("--reload", action="store_true", default=settings.reload, help="Autoreload on code changes")
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> None:
    """Boot the FastAPI application with configurable host/port."""

    args = parse_args(argv)
    uvicorn.run(
        "ollama_facade.web.api:create_app",
        host=args.host,
        port=args.port,
        reload=args.reload,
        factory=True,
    )


if __name__ == "__main__":
    main()
