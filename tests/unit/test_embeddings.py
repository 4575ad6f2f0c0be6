import pytest

from fakes import FakeResponse
from ollama_facade.services.embeddings import EmbeddingClient
from ollama_facade.services.types import BackendError


def test_embed_requests_float_vectors(make_embedding_client):
    payload = {
        "object": "list",
        "model": "nomic-embed-text",
        "data": [{"index": 0, "embedding": [0.1, 0.2]}, {"index": 1, "embedding": [0.3, 0.4]}],
        "usage": {"prompt_tokens": 6, "output_tokens": 0, "total_tokens": 6},
    }
    client = make_embedding_client(FakeResponse(json_data=payload))

    result = client.embed(["first", "second"])

    call = client.session.calls[0]
    assert call["url"] == "http://backend.test/v1/embeddings"
    assert call["json"] == {"input": ["first", "second"], "model": "embed-model", "encoding_format": "float"}
    assert result.vectors == [[0.1, 0.2], [0.3, 0.4]]
    assert result.model == "nomic-embed-text"
    assert result.usage.prompt_tokens == 6


def test_embed_wraps_single_string(make_embedding_client):
    client = make_embedding_client(FakeResponse(json_data={"data": [{"embedding": [1.0]}]}))
    result = client.embed("only one")
    assert client.session.calls[0]["json"]["input"] == ["only one"]
    assert result.model == "embed-model"


def test_embed_without_vectors_fails(make_embedding_client):
    client = make_embedding_client(FakeResponse(json_data={"data": []}))
    with pytest.raises(BackendError, match="No embeddings found in the response."):
        client.embed(["text"])


def test_embed_rejects_missing_arguments(make_embedding_client):
    with pytest.raises(ValueError):
        make_embedding_client().embed(None)
    with pytest.raises(ValueError):
        EmbeddingClient(base_url="http://localhost:1234", model=None)
