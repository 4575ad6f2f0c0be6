import os

import pytest

from fakes import FakeSession
from ollama_facade.config.settings import FacadeSettings
from ollama_facade.services.embeddings import EmbeddingClient
from ollama_facade.services.models import ChatCompletionClient

BACKEND_URL = "http://backend.test/v1"


@pytest.fixture
def clean_env(monkeypatch):
    for key in list(os.environ):
        if key.startswith("FACADE_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.delenv("OPENAI_API_KEY", raising=False)
    return monkeypatch


@pytest.fixture
def settings():
    return FacadeSettings(base_url=BACKEND_URL, model="test-model", model_name="facade-test")


@pytest.fixture
def make_client():
    def _make(*responses):
        return ChatCompletionClient(base_url=BACKEND_URL, model="test-model", session=FakeSession(*responses))

    return _make


@pytest.fixture
def make_embedding_client():
    def _make(*responses):
        return EmbeddingClient(base_url=BACKEND_URL, model="embed-model", session=FakeSession(*responses))

    return _make
