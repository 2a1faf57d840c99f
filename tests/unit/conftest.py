"""Shared fixtures for unit tests."""

import pytest

from kubeops.config import reset_config
from kubeops.storage.memory import InMemoryStorageBackend


class MockModel:
    """Minimal chat model that implements ainvoke and bind_tools."""

    def __init__(self, responses, model_name="mock-model"):
        self._responses = list(responses)
        self.calls = []
        self.bound_tools = None
        self.model_name = model_name

    def bind_tools(self, tools):
        self.bound_tools = [t.name for t in tools]
        return self

    async def ainvoke(self, messages, config=None):
        self.calls.append(list(messages))
        return self._responses[len(self.calls) - 1]


@pytest.fixture(autouse=True)
def clean_config(monkeypatch):
    """Isolate tests from the process environment and from each other."""
    for var in ("LLM_PROVIDER", "LLM_MODEL", "MEMORY_TYPE", "MEMORY_URL", "LIBSQL_URL", "PORT"):
        monkeypatch.delenv(var, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def storage():
    return InMemoryStorageBackend()


@pytest.fixture
def make_model():
    """Factory for MockModel instances returning the given responses in order."""
    return MockModel
