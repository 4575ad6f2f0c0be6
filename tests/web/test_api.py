import json

import requests
from fastapi import FastAPI
from fastapi.testclient import TestClient

from fakes import FakeResponse, completion_payload, sse_lines
from ollama_facade.services.types import BackendMessage
from ollama_facade.web.api import create_app
from ollama_facade.web.context import get_chat_request
from ollama_facade.web.routes import TAGS_DIGEST, is_route_registered, map_post_api_chat


def chat_body(stream=True, **extra):
    body = {
        "model": "facade-test:latest",
        "messages": [
            {"role": "user", "content": "Hi"},
            {"role": "assistant", "content": "Hello!"},
            {"role": "user", "content": "What time is it?"},
        ],
        "stream": stream,
    }
    body.update(extra)
    return body


def ndjson(response):
    return [json.loads(line) for line in response.text.splitlines() if line]


def test_discovery_routes(make_client, settings):
    client = TestClient(create_app(client=make_client(), settings=settings))

    tags = client.get("/api/tags")
    assert tags.status_code == 200
    assert tags.json() == {
        "models": [{"name": "facade-test", "model": "facade-test:latest", "digest": TAGS_DIGEST}]
    }

    version = client.get("/api/version")
    assert version.json() == {"version": "0.1.33"}

    root = client.get("/")
    assert root.text == "Ollama is running"


def test_chat_streams_ndjson(make_client, settings):
    settings.system_prompt = "You are a clock."
    backend = make_client(FakeResponse(lines=sse_lines("It is ", "noon.")))
    client = TestClient(create_app(client=backend, settings=settings))

    response = client.post("/api/chat", json=chat_body(options={"temperature": 0.2, "num_ctx": 2048}))

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("application/json")
    chunks = ndjson(response)
    assert [chunk["message"]["content"] for chunk in chunks] == ["It is ", "noon."]
    assert all(chunk["done"] is False for chunk in chunks)
    assert chunks[0]["message"]["role"] == "assistant"
    assert chunks[0]["created_at"] == "2024-05-01T12:00:00+00:00"

    sent = backend.session.calls[0]["json"]
    assert sent["model"] == "test-model"
    assert sent["stream"] is True
    assert sent["temperature"] == 0.2
    assert "num_ctx" not in sent
    assert sent["messages"][0] == {"role": "system", "content": "You are a clock."}
    assert len(sent["messages"]) == 4


def test_chat_without_streaming_writes_single_line(make_client, settings):
    backend = make_client(FakeResponse(json_data=completion_payload("Noon.")))
    client = TestClient(create_app(client=backend, settings=settings))

    response = client.post("/api/chat", json=chat_body(stream=False))

    chunks = ndjson(response)
    assert len(chunks) == 1
    assert chunks[0]["message"] == {"role": "assistant", "content": "Noon."}
    assert backend.session.calls[0]["json"]["stream"] is False


def test_chat_rejects_invalid_body(make_client, settings):
    client = TestClient(create_app(client=make_client(), settings=settings))

    response = client.post("/api/chat", content=b"not json", headers={"content-type": "application/json"})
    assert response.status_code == 400
    assert response.text == "Invalid request body"

    response = client.post("/api/chat", json={"messages": "nope"})
    assert response.status_code == 400


def test_chat_reports_unreachable_backend(make_client, settings):
    backend = make_client(requests.ConnectionError("connection refused"))
    client = TestClient(create_app(client=backend, settings=settings))

    response = client.post("/api/chat", json=chat_body())
    assert response.status_code == 502
    assert "connection refused" in response.json()["detail"]


def test_openai_completions_shim(make_client, settings):
    usage = {"prompt_tokens": 9, "completion_tokens": 1, "total_tokens": 10}
    backend = make_client(FakeResponse(json_data=completion_payload("Title: Time", usage=usage)))
    client = TestClient(create_app(client=backend, settings=settings))

    response = client.post(
        "/v1/chat/completions",
        json={
            "model": "facade-test",
            "messages": [{"role": "user", "content": "Generate a title"}],
            "stream": True,
            "max_tokens": 50,
        },
    )

    assert response.status_code == 200
    body = response.json()
    assert body["object"] == "chat.completion"
    assert body["model"] == "test-model"
    assert body["choices"][0]["message"] == {"role": "assistant", "content": "Title: Time"}
    assert body["choices"][0]["finish_reason"] == "stop"
    assert body["usage"]["total_tokens"] == 10
    sent = backend.session.calls[0]["json"]
    assert sent["max_tokens"] == 50
    assert sent["stream"] is False
    assert sent["messages"] == [{"role": "user", "content": "Generate a title"}]


def test_openai_completions_requires_content(make_client, settings):
    client = TestClient(create_app(client=make_client(), settings=settings))
    assert client.post("/v1/chat/completions", json={"messages": []}).status_code == 400
    response = client.post("/v1/chat/completions", json={"messages": [{"role": "user", "content": None}]})
    assert response.status_code == 400


def test_embedding_routes(make_client, make_embedding_client, settings):
    payload = {"model": "embed-model", "data": [{"embedding": [0.5, 0.25]}], "usage": {"prompt_tokens": 2}}
    embeddings = make_embedding_client(FakeResponse(json_data=payload), FakeResponse(json_data=payload))
    client = TestClient(create_app(client=make_client(), settings=settings, embedding_client=embeddings))

    embed = client.post("/api/embed", json={"model": "nomic", "input": "hello"})
    assert embed.json() == {"model": "nomic", "embeddings": [[0.5, 0.25]], "prompt_eval_count": 2}

    legacy = client.post("/api/embeddings", json={"model": "nomic", "prompt": "hello"})
    assert legacy.json() == {"embedding": [0.5, 0.25]}


def test_embedding_routes_absent_without_client(make_client, settings):
    client = TestClient(create_app(client=make_client(), settings=settings))
    assert client.post("/api/embed", json={"input": "hello"}).status_code == 404


def test_custom_handler_sees_stored_request(make_client):
    seen = {}

    def handler(chat_request, backend, request):
        seen["stored"] = get_chat_request(request)
        return [BackendMessage(content=f"echo: {chat_request.messages[-1].content}", model_id="echo")]

    app = map_post_api_chat(FastAPI(), make_client(), handler, model_name="echo")
    client = TestClient(app)

    response = client.post("/api/chat", json=chat_body())

    assert ndjson(response)[0]["message"]["content"] == "echo: What time is it?"
    assert seen["stored"].messages[-1].content == "What time is it?"
    assert client.get("/api/tags").json()["models"][0]["name"] == "echo"


def test_existing_routes_are_not_replaced(make_client):
    app = FastAPI()

    @app.get("/API/TAGS")
    def own_tags():
        return {"models": []}

    map_post_api_chat(app, make_client())

    assert is_route_registered(app, "/api/tags", "get")
    assert not is_route_registered(app, "/api/tags", "POST")
    tag_routes = [route for route in app.router.routes if getattr(route, "path", "").lower() == "/api/tags"]
    assert len(tag_routes) == 1
    assert TestClient(app).get("/API/TAGS").json() == {"models": []}


def test_chat_ignores_non_numeric_token_limit(make_client, settings):
    backend = make_client(FakeResponse(lines=sse_lines("fine")))
    client = TestClient(create_app(client=backend, settings=settings))

    response = client.post("/api/chat", json=chat_body(options={"num_predict": "lots", "temperature": 0.3}))

    assert response.status_code == 200
    assert ndjson(response)[0]["message"]["content"] == "fine"
    sent = backend.session.calls[0]["json"]
    assert "max_tokens" not in sent
    assert sent["temperature"] == 0.3


def test_openai_completions_reports_backend_failure(make_client, settings):
    backend = make_client(FakeResponse(status_code=500, text="internal boom"))
    client = TestClient(create_app(client=backend, settings=settings))

    response = client.post("/v1/chat/completions", json={"messages": [{"role": "user", "content": "Hi"}]})

    assert response.status_code == 502
    assert "internal boom" in response.json()["detail"]


def test_embedding_routes_report_backend_failure(make_client, make_embedding_client, settings):
    embeddings = make_embedding_client(
        requests.ConnectionError("embedder offline"),
        FakeResponse(status_code=500, text="out of memory"),
    )
    client = TestClient(create_app(client=make_client(), settings=settings, embedding_client=embeddings))

    embed = client.post("/api/embed", json={"input": ["hello"]})
    assert embed.status_code == 502
    assert "embedder offline" in embed.json()["detail"]

    legacy = client.post("/api/embeddings", json={"prompt": "hello"})
    assert legacy.status_code == 502
    assert "out of memory" in legacy.json()["detail"]
