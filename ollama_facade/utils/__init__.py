"""Utility helpers shared across facade modules."""

from .proxy import add_proxy_for_debug

__all__ = ["add_proxy_for_debug"]
