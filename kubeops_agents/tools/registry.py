"""
ToolRegistry: the tools one agent may call, keyed by name.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Iterator
from typing import Any

from langchain_core.tools import BaseTool

from kubeops_agents.tools.base import ToolDefinition, ToolResult

logger = logging.getLogger(__name__)


class ToolRegistry:
    """Ordered collection of tools; registration order is listing order."""

    def __init__(self, tools: Iterable[BaseTool] | None = None) -> None:
        self._tools: dict[str, BaseTool] = {}
        for item in tools or ():
            self.register(item)

    def register(self, tool: BaseTool) -> None:
        """Add a tool. Registering a name twice keeps the newer tool."""
        if tool.name in self._tools:
            logger.warning("Duplicate tool name '%s'; replacing existing tool.", tool.name)
        self._tools[tool.name] = tool

    def unregister(self, name: str) -> None:
        self._tools.pop(name, None)

    def get(self, name: str) -> BaseTool | None:
        return self._tools.get(name)

    def get_all(self) -> list[BaseTool]:
        return list(self)

    def get_names(self) -> list[str]:
        return list(self._tools)

    def get_definitions(self) -> list[ToolDefinition]:
        return [_describe(item) for item in self]

    async def execute(
        self, tool_name: str, tool_args: dict[str, Any], tool_call_id: str = ""
    ) -> ToolResult:
        """
        Call a tool with the model-supplied arguments.

        Invalid arguments and exceptions from the tool come back as an
        error result so the model can read them.

        Raises:
            KeyError: If no tool has that name.
        """
        if tool_name not in self._tools:
            raise KeyError(f"Tool '{tool_name}' not found in registry.")

        started = time.perf_counter()
        try:
            output = await self._tools[tool_name].ainvoke(tool_args)
        except Exception as exc:
            elapsed = (time.perf_counter() - started) * 1000
            logger.debug("Tool '%s' failed after %.1f ms: %s", tool_name, elapsed, exc)
            return ToolResult.failure(tool_name, tool_call_id, str(exc), elapsed)

        return ToolResult(
            tool_name=tool_name,
            tool_call_id=tool_call_id,
            result=output,
            duration_ms=(time.perf_counter() - started) * 1000,
        )

    def __iter__(self) -> Iterator[BaseTool]:
        return iter(self._tools.values())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: object) -> bool:
        return name in self._tools


def _describe(item: BaseTool) -> ToolDefinition:
    return ToolDefinition(
        name=item.name,
        description=item.description,
        parameters=item.get_input_schema().model_json_schema(),
        title=(item.metadata or {}).get("title"),
    )


_global_registry: ToolRegistry | None = None


def get_global_registry() -> ToolRegistry:
    """Process-wide registry that `@tool(register=True)` adds to."""
    global _global_registry
    if _global_registry is None:
        _global_registry = ToolRegistry()
    return _global_registry


def reset_global_registry() -> None:
    global _global_registry
    _global_registry = None
