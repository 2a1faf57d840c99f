"""
What the platform reports about a tool, and what a tool call produced.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass
class ToolDefinition:
    """Tool metadata as listed by the agents API."""

    name: str
    description: str
    parameters: dict[str, Any]  # JSON Schema of the arguments
    title: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["title"] = self.title or self.name
        return data


@dataclass
class ToolResult:
    """Outcome of one tool call. Failures are data, not exceptions."""

    tool_name: str
    tool_call_id: str
    result: Any
    error: str | None = None
    duration_ms: float = 0.0
    is_error: bool = False

    @classmethod
    def failure(cls, tool_name: str, tool_call_id: str, error: str, duration_ms: float = 0.0) -> ToolResult:
        return cls(
            tool_name=tool_name,
            tool_call_id=tool_call_id,
            result=None,
            error=error,
            duration_ms=duration_ms,
            is_error=True,
        )

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)
