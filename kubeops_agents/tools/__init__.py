"""
Tool framework for KubeOps agents, plus the Kubernetes operations tools.
"""

from kubeops_agents.tools.base import ToolDefinition, ToolResult
from kubeops_agents.tools.decorator import tool
from kubeops_agents.tools.kubernetes import (
    KUBERNETES_TOOLS,
    debug_tool,
    flux_tool,
    helm_tool,
    kubectl_tool,
)
from kubeops_agents.tools.registry import (
    ToolRegistry,
    get_global_registry,
    reset_global_registry,
)

__all__ = [
    "tool",
    "ToolRegistry",
    "ToolDefinition",
    "ToolResult",
    "get_global_registry",
    "reset_global_registry",
    "KUBERNETES_TOOLS",
    "kubectl_tool",
    "helm_tool",
    "flux_tool",
    "debug_tool",
]
