"""
Tool-calling agent loop.

The model is called with the tools bound; while its reply carries tool
calls, the calls are executed, their results appended as ToolMessages and
the model is called again.
"""

from __future__ import annotations

import asyncio
import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Sequence

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage, ToolMessage
from langchain_core.tools import BaseTool
from loguru import logger

from kubeops_agents.agent.types import AgentResult
from kubeops_agents.providers import get_model_name
from kubeops_agents.token_tracking import TokenUsage, TokenUsageTracker
from kubeops_agents.tools.base import ToolResult
from kubeops_agents.tools.registry import ToolRegistry

DEFAULT_SYSTEM_PROMPT = (
    "You are an assistant with access to tools.\n\n"
    "Call a tool when you need information you do not have or when the user "
    "asks you to take an action. Read each tool result before deciding on the "
    "next call, and answer in plain language once you have what you need.\n\n"
    "Answer directly when no tool is needed."
)


@dataclass
class _Turn:
    """Mutable state of one loop run."""

    agent_id: str
    messages: list[BaseMessage]
    usage: TokenUsage
    tool_calls_made: int = 0
    iterations: int = 0
    last_reply: AIMessage | None = None
    log: Any = field(default=None, repr=False)

    def result(self, finish_reason: str) -> AgentResult:
        return AgentResult(
            content=_content_text(self.last_reply) if self.last_reply is not None else "",
            messages=self.messages,
            tool_calls_made=self.tool_calls_made,
            token_usage=self.usage,
            iterations=self.iterations,
            finish_reason=finish_reason,
            agent_id=self.agent_id,
        )


async def run_tool_calling_loop(
    model: BaseChatModel,
    input: str | Sequence[BaseMessage],  # noqa: A002
    tools: list | ToolRegistry | None = None,
    system_prompt: str | None = None,
    max_iterations: int = 10,
    agent_id: str = "",
    agent_name: str = "",
    parallel_tool_calls: bool = True,
) -> AgentResult:
    """
    Run the model until it answers without requesting tools.

    Args:
        model: Chat model generating the replies
        input: A user prompt, or the conversation so far ending with the prompt
        tools: Tools the model may call
        system_prompt: System prompt (DEFAULT_SYSTEM_PROMPT if empty)
        max_iterations: Upper bound on model calls
        agent_id: Identifier used in logs and the result (generated if empty)
        agent_name: Display name used in logs
        parallel_tool_calls: Run the tool calls of one reply concurrently

    Returns:
        AgentResult with finish_reason "stop", or "max_iterations" when the
        model was still calling tools at the bound.
    """
    registry = _resolve_tools(tools)
    model_name = get_model_name(model)
    agent_id = agent_id or f"agent_{uuid.uuid4().hex[:12]}"

    prompt = [HumanMessage(content=input)] if isinstance(input, str) else list(input)
    turn = _Turn(
        agent_id=agent_id,
        messages=[SystemMessage(content=system_prompt or DEFAULT_SYSTEM_PROMPT), *prompt],
        usage=TokenUsage(model=model_name),
        log=logger.bind(agent_id=agent_id),
    )

    if len(registry):
        model = model.bind_tools(registry.get_all())

    turn.log.debug(
        f"Agent {agent_name or agent_id} started",
        model=model_name,
        tools=registry.get_names(),
    )

    tracker = TokenUsageTracker()
    while turn.iterations < max_iterations:
        reply = await _call_model(model, turn, tracker)
        tool_calls = getattr(reply, "tool_calls", None) or []
        if not tool_calls:
            turn.log.debug(
                "Agent finished", iterations=turn.iterations, tool_calls=turn.tool_calls_made
            )
            return turn.result("stop")

        await _run_tool_calls(registry, tool_calls, turn, parallel_tool_calls)

    turn.log.warning(f"Agent stopped after reaching max_iterations={max_iterations}")
    return turn.result("max_iterations")


async def _call_model(model: Any, turn: _Turn, tracker: TokenUsageTracker) -> AIMessage:
    tracker.reset()
    reply = await model.ainvoke(turn.messages, config={"callbacks": [tracker]})

    # Message usage first; some providers only report through the callback
    usage = TokenUsage.from_message(reply)
    turn.usage += tracker.total_usage if usage.is_empty else usage

    turn.messages.append(reply)
    turn.last_reply = reply
    turn.iterations += 1
    return reply


async def _run_tool_calls(
    registry: ToolRegistry,
    tool_calls: list[dict[str, Any]],
    turn: _Turn,
    parallel: bool,
) -> None:
    if parallel and len(tool_calls) > 1:
        results = await asyncio.gather(*(_execute_tool(registry, tc) for tc in tool_calls))
    else:
        results = [await _execute_tool(registry, tc) for tc in tool_calls]

    # gather keeps argument order, so results line up with tool_calls
    for call, outcome in zip(tool_calls, results, strict=True):
        turn.log.debug(
            f"Tool call: {call['name']}",
            tool_call_id=call["id"],
            is_error=outcome.is_error,
            duration_ms=round(outcome.duration_ms, 2),
        )
        turn.messages.append(ToolMessage(content=_tool_message_content(outcome), tool_call_id=call["id"]))
        turn.tool_calls_made += 1


async def _execute_tool(registry: ToolRegistry, call: dict[str, Any]) -> ToolResult:
    """Execute one tool call; an unknown tool becomes an error result."""
    try:
        return await registry.execute(call["name"], call.get("args") or {}, call["id"])
    except KeyError as exc:
        return ToolResult.failure(call["name"], call["id"], str(exc.args[0]) if exc.args else str(exc))


def _tool_message_content(outcome: ToolResult) -> str:
    if outcome.is_error:
        return f"Error: {outcome.error}"
    if isinstance(outcome.result, (dict, list)):
        return json.dumps(outcome.result, default=str)
    return str(outcome.result)


def _content_text(message: Any) -> str:
    content = getattr(message, "content", message)
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        # Content blocks (Anthropic, Google)
        return "".join(
            block if isinstance(block, str) else block.get("text", "")
            for block in content
            if isinstance(block, str) or (isinstance(block, dict) and block.get("type") == "text")
        )
    return str(content)


def _resolve_tools(tools: list | ToolRegistry | None) -> ToolRegistry:
    if isinstance(tools, ToolRegistry):
        return tools
    return ToolRegistry([t for t in tools or [] if isinstance(t, BaseTool)])
