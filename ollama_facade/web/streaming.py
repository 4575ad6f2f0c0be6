"""
Newline-delimited JSON writer for Ollama chat replies.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, Iterator

from fastapi.responses import StreamingResponse

from ollama_facade.services.types import BackendError, BackendMessage

from .mapper import to_chat_response
from .schema import ChatResponse

logger = logging.getLogger("ollama_facade.web.streaming")

MEDIA_TYPE = "application/json"


def is_valid_chat_response(response: ChatResponse) -> bool:
    return bool(response.message.content) and not response.done


def iter_ndjson(messages: Iterable[BackendMessage]) -> Iterator[str]:
    """
    Yield one JSON line per backend message that carries content.

    Empty deltas (role announcements, finish markers, usage-only chunks) are
    skipped. A backend failure after the response has started is reported as
    a trailing `{"error": ...}` line, since the status code is already sent.
    """

    emitted = 0
    try:
        for message in messages:
            chat_response = to_chat_response(message)
            if not is_valid_chat_response(chat_response):
                continue
            emitted += 1
            yield chat_response.to_json() + "\n"
    except BackendError as exc:
        logger.error("Backend stream failed", extra={"chunks_emitted": emitted, "error": str(exc)})
        yield json.dumps({"error": str(exc)}) + "\n"
        return

    logger.info("Chat stream completed", extra={"chunks_emitted": emitted})


def stream_to_response(messages: Iterable[BackendMessage]) -> StreamingResponse:
    """Wrap backend messages in a response that flushes each NDJSON line as it is produced."""

    return StreamingResponse(iter_ndjson(messages), media_type=MEDIA_TYPE)


__all__ = ["MEDIA_TYPE", "is_valid_chat_response", "iter_ndjson", "stream_to_response"]
