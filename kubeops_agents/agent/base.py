"""
Agent: an instruction prompt, a chat model, tools and optional memory.
"""

from __future__ import annotations

import uuid
from typing import Any, Callable

from langchain_core.language_models.chat_models import BaseChatModel
from langchain_core.messages import BaseMessage, HumanMessage, ToolMessage
from loguru import logger

from kubeops_agents.agent.tool_calling.loop import run_tool_calling_loop
from kubeops_agents.agent.types import AgentResult
from kubeops_agents.memory import Memory
from kubeops_agents.providers import get_model_name
from kubeops_agents.tools.registry import ToolRegistry


class Agent:
    """
    A conversational agent.

    The agent id is its name. With memory, every call to generate_text()
    loads the conversation history first and stores the new messages after.

    Example:
        >>> agent = Agent(
        ...     name="kubernetes-agent",
        ...     instructions="You are a Kubernetes operations specialist.",
        ...     model=get_model("openai"),
        ...     tools=KUBERNETES_TOOLS,
        ...     memory=Memory(InMemoryStorageBackend()),
        ... )
        >>> result = await agent.generate_text("Why is my pod pending?")
    """

    def __init__(
        self,
        name: str,
        instructions: str,
        model: BaseChatModel | None = None,
        tools: list | ToolRegistry | None = None,
        memory: Memory | None = None,
        description: str | None = None,
        max_iterations: int = 10,
        parallel_tool_calls: bool = True,
        model_factory: Callable[[], BaseChatModel] | None = None,
        model_name: str | None = None,
    ) -> None:
        if model is None and model_factory is None:
            raise ValueError(f"Agent '{name}' needs a model or a model_factory")
        self.name = name
        self.instructions = instructions
        self._model = model
        self._model_factory = model_factory
        self._model_name = model_name
        self.tools = tools if isinstance(tools, ToolRegistry) else ToolRegistry(tools or [])
        self.memory = memory
        self.description = description
        self.max_iterations = max_iterations
        self.parallel_tool_calls = parallel_tool_calls

    @property
    def id(self) -> str:
        return self.name

    @property
    def model(self) -> BaseChatModel:
        """The chat model, built by model_factory on first use."""
        if self._model is None:
            assert self._model_factory is not None
            self._model = self._model_factory()
        return self._model

    @property
    def model_name(self) -> str:
        if self._model is None and self._model_name:
            return self._model_name
        return get_model_name(self.model)

    async def generate_text(
        self,
        input: str,  # noqa: A002
        user_id: str | None = None,
        conversation_id: str | None = None,
    ) -> AgentResult:
        """Answer one user message, calling tools as the model requests."""
        conversation_id = conversation_id or str(uuid.uuid4())
        log = logger.bind(agent_id=self.id, conversation_id=conversation_id)

        history: list[BaseMessage] = []
        if self.memory is not None:
            history = _drop_orphan_tool_messages(
                await self.memory.get_messages(conversation_id)
            )

        log.info("Generating text", history_messages=len(history))

        result = await run_tool_calling_loop(
            model=self.model,
            input=[*history, HumanMessage(content=input)],
            tools=self.tools,
            system_prompt=self.instructions,
            max_iterations=self.max_iterations,
            agent_id=self.id,
            agent_name=self.name,
            parallel_tool_calls=self.parallel_tool_calls,
        )
        result.conversation_id = conversation_id

        if self.memory is not None:
            # messages = [system, *history, human, ai/tool...]
            new_messages = result.messages[1 + len(history) :]
            await self.memory.add_messages(
                conversation_id, new_messages, user_id=user_id, agent_id=self.id
            )

        log.info(
            "Text generated",
            finish_reason=result.finish_reason,
            tool_calls=result.tool_calls_made,
            total_tokens=result.token_usage.total_tokens,
        )
        return result

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "instructions": self.instructions,
            "model": self.model_name,
            "tools": [d.to_dict() for d in self.tools.get_definitions()],
            "memory": self.memory is not None,
        }

    def __repr__(self) -> str:
        return f"Agent(name={self.name!r}, tools={self.tools.get_names()!r})"


def _drop_orphan_tool_messages(messages: list[BaseMessage]) -> list[BaseMessage]:
    # A history window cut by storage_limit can start with tool results whose call was dropped
    start = 0
    while start < len(messages) and isinstance(messages[start], ToolMessage):
        start += 1
    return messages[start:]
