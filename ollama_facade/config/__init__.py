"""Configuration for the facade: backend presets and environment settings."""

from .settings import BACKEND_PRESETS, BackendPreset, FacadeSettings, resolve_api_key

__all__ = ["BACKEND_PRESETS", "BackendPreset", "FacadeSettings", "resolve_api_key"]
