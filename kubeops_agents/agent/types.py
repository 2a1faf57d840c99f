"""
AgentResult returned by the tool-calling loop and Agent.generate_text().
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from langchain_core.messages import messages_to_dict

from kubeops_agents.token_tracking import TokenUsage


@dataclass
class AgentResult:
    """Result of one agent turn."""

    content: str
    messages: list = field(default_factory=list)
    tool_calls_made: int = 0
    token_usage: TokenUsage = field(default_factory=TokenUsage)
    iterations: int = 0
    finish_reason: str = "stop"
    agent_id: str = ""
    conversation_id: str | None = None

    def to_dict(self, include_messages: bool = True) -> dict[str, Any]:
        data: dict[str, Any] = {
            "content": self.content,
            "tool_calls_made": self.tool_calls_made,
            "token_usage": self.token_usage.to_dict(),
            "iterations": self.iterations,
            "finish_reason": self.finish_reason,
            "agent_id": self.agent_id,
            "conversation_id": self.conversation_id,
        }
        if include_messages:
            data["messages"] = messages_to_dict(self.messages)
        return data
