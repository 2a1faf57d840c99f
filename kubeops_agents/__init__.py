"""
KubeOps Agents - chat agents, tools and LLM providers for the KubeOps platform.

Built on langchain-core: any langchain chat model can back an agent, and tools
are langchain StructuredTools.
"""

from kubeops_agents.agent import DEFAULT_SYSTEM_PROMPT, Agent, AgentResult, run_tool_calling_loop
from kubeops_agents.catalog import create_agents, create_devops_agent, create_kubernetes_agent
from kubeops_agents.exceptions import (
    AgentError,
    AgentNotFoundError,
    ProviderError,
    ProviderNotInstalledError,
)
from kubeops_agents.memory import Memory
from kubeops_agents.providers import get_model
from kubeops_agents.token_tracking import TokenUsage, TokenUsageTracker
from kubeops_agents.tools import (
    KUBERNETES_TOOLS,
    ToolDefinition,
    ToolRegistry,
    ToolResult,
    get_global_registry,
    tool,
)

__all__ = [
    # Exceptions
    "AgentError",
    "AgentNotFoundError",
    "ProviderError",
    "ProviderNotInstalledError",
    # Token tracking
    "TokenUsage",
    "TokenUsageTracker",
    # Tools
    "tool",
    "ToolRegistry",
    "ToolDefinition",
    "ToolResult",
    "get_global_registry",
    "KUBERNETES_TOOLS",
    # Agents
    "DEFAULT_SYSTEM_PROMPT",
    "run_tool_calling_loop",
    "Agent",
    "AgentResult",
    "create_kubernetes_agent",
    "create_devops_agent",
    "create_agents",
    # Providers and memory
    "get_model",
    "Memory",
]
