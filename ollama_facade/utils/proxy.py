"""
Route backend HTTP traffic through an intercepting proxy for debugging.

Intended for tools such as Burp Suite or mitmproxy during development only:
certificate verification is disabled and environment proxy settings
(including NO_PROXY, so local backends are not bypassed) are ignored.
"""

from __future__ import annotations

import logging
from typing import Optional

import requests

logger = logging.getLogger("ollama_facade.utils.proxy")

DEFAULT_PROXY_URL = "http://127.0.0.1:8080"


def add_proxy_for_debug(
    session: Optional[requests.Session] = None,
    proxy_url: str = DEFAULT_PROXY_URL,
) -> requests.Session:
    """
    Configure `session` (or a new one) to send all requests via `proxy_url`.

    Args:
        session: Session shared by the backend clients; created when omitted.
        proxy_url: Address of the debugging proxy.

    Returns:
        requests.Session: The configured session.
    """

    session = session or requests.Session()
    session.proxies = {"http": proxy_url, "https": proxy_url}
    session.trust_env = False
    session.verify = False
    logger.warning(
        "Debug proxy enabled; TLS certificate verification is off",
        extra={"proxy_url": proxy_url},
    )
    return session
