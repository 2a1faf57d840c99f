"""
Chat model construction for the configured LLM provider.

Supported providers (LLM_PROVIDER):
    - "openai"    -> langchain_openai.ChatOpenAI (default)
    - "anthropic" -> langchain_anthropic.ChatAnthropic
    - "google"    -> langchain_google_genai.ChatGoogleGenerativeAI

Provider packages are imported lazily, so only the selected one has to be
installed.
"""

from __future__ import annotations

import importlib
from dataclasses import dataclass
from typing import Any

from langchain_core.language_models.chat_models import BaseChatModel
from loguru import logger

from kubeops_agents.exceptions import ProviderError, ProviderNotInstalledError

DEFAULT_PROVIDER = "openai"


@dataclass(frozen=True)
class ProviderSpec:
    module: str
    class_name: str
    package: str
    default_model: str


_PROVIDERS: dict[str, ProviderSpec] = {
    "openai": ProviderSpec("langchain_openai", "ChatOpenAI", "langchain-openai", "gpt-4o-mini"),
    "anthropic": ProviderSpec(
        "langchain_anthropic", "ChatAnthropic", "langchain-anthropic", "claude-3-5-sonnet-20241022"
    ),
    "google": ProviderSpec(
        "langchain_google_genai",
        "ChatGoogleGenerativeAI",
        "langchain-google-genai",
        "gemini-1.5-flash",
    ),
}


def supported_providers() -> list[str]:
    return list(_PROVIDERS)


def default_model_for(provider: str) -> str:
    return _PROVIDERS[resolve_provider(provider)].default_model


def resolve_provider(provider: str | None) -> str:
    """
    Normalize a provider name.

    Unknown names fall back to "openai" with a warning.
    """
    name = (provider or DEFAULT_PROVIDER).strip().lower()
    if name not in _PROVIDERS:
        logger.warning(
            f"Unknown LLM provider '{provider}', falling back to '{DEFAULT_PROVIDER}'. "
            f"Supported providers: {', '.join(_PROVIDERS)}"
        )
        return DEFAULT_PROVIDER
    return name


def _import_model_class(module: str, class_name: str) -> type:
    return getattr(importlib.import_module(module), class_name)


def get_model(
    provider: str | None = None,
    model: str | None = None,
    **kwargs: Any,
) -> BaseChatModel:
    """Build the chat model for a provider.

    Args:
        provider: Provider name, case-insensitive (default "openai").
        model: Model name; defaults to the provider's default model.
        **kwargs: Extra keyword arguments for the model class (temperature, ...).

    Raises:
        ProviderNotInstalledError: If the provider package is not installed.
        ProviderError: If the model cannot be created (e.g. a missing API key).
    """
    name = resolve_provider(provider)
    spec = _PROVIDERS[name]
    model_name = model or spec.default_model

    try:
        model_class = _import_model_class(spec.module, spec.class_name)
    except ImportError as e:
        raise ProviderNotInstalledError(name, spec.package) from e

    try:
        chat_model = model_class(model=model_name, **kwargs)
    except Exception as e:
        raise ProviderError(f"Failed to create {name} model '{model_name}': {e}", provider=name) from e

    logger.debug(f"Built {spec.class_name} (model={model_name})", provider=name)
    return chat_model


def get_model_name(model: Any) -> str:
    """Best-effort model name of a chat model instance."""
    for attr in ("model_name", "model"):
        value = getattr(model, attr, None)
        if value and isinstance(value, str):
            return value
    return type(model).__name__
