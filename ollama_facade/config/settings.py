"""
Backend presets and environment-driven settings for the facade.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_MODEL_NAME = "ollama-facade"
DEFAULT_OLLAMA_VERSION = "0.1.33"
DEFAULT_API_KEY_ENV = "OPENAI_API_KEY"
DEFAULT_DEBUG_PROXY = "http://127.0.0.1:8080"

# Clients look for Ollama at its default local address.
DEFAULT_HOST = "localhost"
DEFAULT_PORT = 11434


@dataclass(slots=True)
class BackendPreset:
    """Connection defaults for a known OpenAI-compatible backend."""

    base_url: str
    model: str
    embedding_model: Optional[str] = None


BACKEND_PRESETS = {
    "lmstudio": BackendPreset(
        base_url="http://localhost:1234/v1/",
        model="lm-studio",
        embedding_model="lm-studio",
    ),
    "ai-toolkit": BackendPreset(
        base_url="http://localhost:5272/v1/",
        model="Phi-3-mini-128k-cpu-int4-rtn-block-32-acc-level-4-onnx",
    ),
    "openai": BackendPreset(
        base_url="https://api.openai.com/v1/",
        model="gpt-4o",
        embedding_model="text-embedding-3-small",
    ),
}


def _env_bool(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.lower() in {"1", "true", "yes", "on"}


def _env_list(value: Optional[str], default: List[str]) -> List[str]:
    items = [item.strip() for item in (value or "").split(",") if item.strip()]
    return items or list(default)


def resolve_api_key(env_var: Optional[str], default: str = "none") -> str:
    """
    Fetch the backend credential from the named environment variable.

    Local servers (LM Studio, AI Toolkit) accept any key, so `default` is
    returned when the variable is unset or empty.
    """
    if not env_var:
        return default
    return os.getenv(env_var) or default


@dataclass(slots=True)
class FacadeSettings:
    """Runtime configuration for the facade app and server."""

    backend: str = "lmstudio"
    base_url: str = BACKEND_PRESETS["lmstudio"].base_url
    model: str = BACKEND_PRESETS["lmstudio"].model
    api_key: str = "none"
    model_name: str = DEFAULT_MODEL_NAME
    ollama_version: str = DEFAULT_OLLAMA_VERSION
    system_prompt: str = ""
    embedding_model: Optional[str] = None
    debug_proxy: Optional[str] = None
    log_requests: bool = False
    https_redirect: bool = False
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    timeout: float = 600.0
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    reload: bool = False

    @classmethod
    def from_env(cls) -> "FacadeSettings":
        backend = os.getenv("FACADE_BACKEND", "lmstudio").lower()
        preset = BACKEND_PRESETS.get(backend)
        base_url = os.getenv("FACADE_BASE_URL")
        if preset is None and not base_url:
            raise ValueError(
                f"Unsupported FACADE_BACKEND '{backend}'. Expected one of "
                f"{', '.join(sorted(BACKEND_PRESETS))}, or set FACADE_BASE_URL for a custom backend."
            )

        model = os.getenv("FACADE_MODEL") or (preset.model if preset else "")
        if not model:
            raise ValueError("FACADE_MODEL is required for a custom backend.")

        debug_proxy: Optional[str] = os.getenv("FACADE_DEBUG_PROXY", "").strip()
        if debug_proxy.lower() in {"", "0", "false", "no", "off"}:
            debug_proxy = None
        elif _env_bool(debug_proxy):
            debug_proxy = DEFAULT_DEBUG_PROXY

        return cls(
            backend=backend,
            base_url=base_url or preset.base_url,
            model=model,
            api_key=resolve_api_key(os.getenv("FACADE_API_KEY_ENV", DEFAULT_API_KEY_ENV)),
            model_name=os.getenv("FACADE_MODEL_NAME", DEFAULT_MODEL_NAME),
            ollama_version=os.getenv("FACADE_OLLAMA_VERSION", DEFAULT_OLLAMA_VERSION),
            system_prompt=os.getenv("FACADE_SYSTEM_PROMPT", ""),
            embedding_model=os.getenv("FACADE_EMBEDDING_MODEL") or (preset.embedding_model if preset else None),
            debug_proxy=debug_proxy,
            log_requests=_env_bool(os.getenv("FACADE_LOG_REQUESTS")),
            https_redirect=_env_bool(os.getenv("FACADE_HTTPS_REDIRECT")),
            cors_origins=_env_list(os.getenv("FACADE_CORS_ORIGINS"), default=["*"]),
            timeout=float(os.getenv("FACADE_TIMEOUT", "600")),
            host=os.getenv("FACADE_HOST", DEFAULT_HOST),
            port=int(os.getenv("FACADE_PORT", str(DEFAULT_PORT))),
            reload=_env_bool(os.getenv("FACADE_RELOAD")),
        )


__all__ = ["BACKEND_PRESETS", "BackendPreset", "FacadeSettings", "resolve_api_key"]
