"""Tests for LLM provider selection and model construction."""

import pytest

lc = pytest.importorskip("langchain_core")

from kubeops_agents import providers  # noqa: E402
from kubeops_agents.exceptions import ProviderError, ProviderNotInstalledError  # noqa: E402
from kubeops_agents.providers import (  # noqa: E402
    default_model_for,
    get_model,
    get_model_name,
    resolve_provider,
    supported_providers,
)


class FakeChatModel:
    def __init__(self, model, **kwargs):
        self.model = model
        self.kwargs = kwargs


@pytest.fixture
def imported(monkeypatch):
    """Record which provider classes get imported and return FakeChatModel."""
    calls = []

    def fake_import(module, class_name):
        calls.append((module, class_name))
        return FakeChatModel

    monkeypatch.setattr(providers, "_import_model_class", fake_import)
    return calls


class TestResolveProvider:
    def test_supported(self):
        assert supported_providers() == ["openai", "anthropic", "google"]

    @pytest.mark.parametrize("name", ["openai", "anthropic", "google"])
    def test_known_providers(self, name):
        assert resolve_provider(name) == name

    def test_case_insensitive(self):
        assert resolve_provider("Anthropic") == "anthropic"

    def test_default_is_openai(self):
        assert resolve_provider(None) == "openai"

    def test_unknown_falls_back_to_openai(self):
        assert resolve_provider("mistral") == "openai"

    def test_default_models(self):
        assert default_model_for("openai") == "gpt-4o-mini"
        assert default_model_for("anthropic") == "claude-3-5-sonnet-20241022"
        assert default_model_for("google") == "gemini-1.5-flash"


class TestGetModel:
    @pytest.mark.parametrize(
        "provider,module,class_name",
        [
            ("openai", "langchain_openai", "ChatOpenAI"),
            ("anthropic", "langchain_anthropic", "ChatAnthropic"),
            ("google", "langchain_google_genai", "ChatGoogleGenerativeAI"),
        ],
    )
    def test_imports_provider_class(self, imported, provider, module, class_name):
        model = get_model(provider)
        assert imported == [(module, class_name)]
        assert model.model == default_model_for(provider)

    def test_explicit_model_and_kwargs(self, imported):
        model = get_model("openai", "gpt-4o", temperature=0)
        assert model.model == "gpt-4o"
        assert model.kwargs == {"temperature": 0}

    def test_unknown_provider_builds_openai(self, imported):
        get_model("unknown")
        assert imported == [("langchain_openai", "ChatOpenAI")]

    def test_missing_package(self, monkeypatch):
        def fail_import(module, class_name):
            raise ImportError(module)

        monkeypatch.setattr(providers, "_import_model_class", fail_import)

        with pytest.raises(ProviderNotInstalledError, match="pip install langchain-anthropic"):
            get_model("anthropic")

    def test_construction_failure(self, monkeypatch):
        class Broken:
            def __init__(self, **kwargs):
                raise RuntimeError("missing API key")

        monkeypatch.setattr(providers, "_import_model_class", lambda m, c: Broken)

        with pytest.raises(ProviderError, match="missing API key") as exc_info:
            get_model("google")
        assert exc_info.value.provider == "google"


class TestGetModelName:
    def test_model_name_attribute(self):
        class M:
            model_name = "gpt-4o"

        assert get_model_name(M()) == "gpt-4o"

    def test_model_attribute(self):
        assert get_model_name(FakeChatModel("claude")) == "claude"

    def test_falls_back_to_class_name(self):
        class Nameless:
            pass

        assert get_model_name(Nameless()) == "Nameless"
