"""
Tool-calling loop for agents that use model.bind_tools().
"""

from kubeops_agents.agent.tool_calling.loop import DEFAULT_SYSTEM_PROMPT, run_tool_calling_loop

__all__ = [
    "DEFAULT_SYSTEM_PROMPT",
    "run_tool_calling_loop",
]
