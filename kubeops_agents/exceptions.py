"""
Exception classes for KubeOps agents.

These exceptions do not depend on langchain-core or any provider package, so
they are importable even when a provider is missing.
"""

from kubeops.exceptions import KubeOpsError


class AgentError(KubeOpsError):
    """Base exception for all agent-related errors."""

    pass


class AgentNotFoundError(AgentError):
    """Raised when an agent id is not registered on the platform."""

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"Agent '{agent_id}' not found")
        self.agent_id = agent_id


class ProviderError(AgentError):
    """
    Error originating from an LLM provider.

    Attributes:
        provider: Name of the provider that raised the error (e.g. "anthropic", "openai").
    """

    def __init__(self, message: str, provider: str | None = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderNotInstalledError(ProviderError):
    """
    Raised when the package of the selected LLM provider is not installed.

    The message carries the pip install command that fixes it.
    """

    def __init__(self, provider: str, package: str) -> None:
        super().__init__(
            f"LLM provider '{provider}' requires the '{package}' package. "
            f"Install it with: pip install {package}",
            provider=provider,
        )
        self.package = package
