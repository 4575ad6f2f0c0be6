import pytest
from starlette.requests import Request

from ollama_facade.web.context import get_chat_request, set_chat_request
from ollama_facade.web.schema import ChatRequest


def make_http_request() -> Request:
    return Request({"type": "http", "method": "POST", "path": "/api/chat", "headers": []})


def test_stored_request_round_trips():
    request = make_http_request()
    chat_request = ChatRequest(model="facade", messages=[{"role": "user", "content": "Hi"}])
    assert get_chat_request(request) is None

    set_chat_request(request, chat_request)
    assert get_chat_request(request) is chat_request


def test_missing_arguments_are_rejected():
    with pytest.raises(ValueError, match="request must not be None"):
        set_chat_request(None, ChatRequest())
    with pytest.raises(ValueError, match="chat_request must not be None"):
        set_chat_request(make_http_request(), None)
    with pytest.raises(ValueError, match="request must not be None"):
        get_chat_request(None)
