"""
Agent framework for KubeOps: Agent class and tool-calling loop.
"""

from kubeops_agents.agent.base import Agent
from kubeops_agents.agent.tool_calling import DEFAULT_SYSTEM_PROMPT, run_tool_calling_loop
from kubeops_agents.agent.types import AgentResult

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "run_tool_calling_loop",
    "Agent",
    "AgentResult",
]
