"""
Platform bootstrap: wires settings, storage, model, agents and workflows.
"""

import functools
from typing import Any, Dict, List, Optional

from langchain_core.language_models.chat_models import BaseChatModel

from kubeops.config import Settings, get_config, get_storage
from kubeops.exceptions import WorkflowNotFoundError
from kubeops.observability.logging import configure_logging_from_settings, get_logger
from kubeops.storage.base import StorageBackend
from kubeops.storage.config import memory_type_label
from kubeops.workflow.chain import WorkflowChain
from kubeops.workflows.kubernetes import create_kubernetes_workflow
from kubeops_agents.agent.base import Agent
from kubeops_agents.catalog import create_agents
from kubeops_agents.exceptions import AgentNotFoundError
from kubeops_agents.memory import Memory
from kubeops_agents.providers import default_model_for, get_model, resolve_provider


class KubeOpsPlatform:
    """
    Registry of the running platform's agents and workflows.

    Example:
        >>> platform = build_platform()
        >>> platform.get_agent("kubernetes-agent")
        >>> platform.serve()
    """

    def __init__(
        self,
        agents: List[Agent],
        workflows: List[WorkflowChain],
        storage: StorageBackend,
        settings: Settings,
    ) -> None:
        self.agents: Dict[str, Agent] = {agent.id: agent for agent in agents}
        self.workflows: Dict[str, WorkflowChain] = {wf.id: wf for wf in workflows}
        self.storage = storage
        self.settings = settings
        self.logger = get_logger(__name__)

    def get_agent(self, agent_id: str) -> Agent:
        agent = self.agents.get(agent_id)
        if agent is None:
            raise AgentNotFoundError(agent_id)
        return agent

    def get_workflow(self, workflow_id: str) -> WorkflowChain:
        workflow = self.workflows.get(workflow_id)
        if workflow is None:
            raise WorkflowNotFoundError(workflow_id)
        return workflow

    def list_agents(self) -> List[Agent]:
        return list(self.agents.values())

    def list_workflows(self) -> List[WorkflowChain]:
        return list(self.workflows.values())

    async def startup(self) -> None:
        await self.storage.connect()

    async def shutdown(self) -> None:
        await self.storage.disconnect()

    def log_startup(self) -> None:
        self.logger.info(f"KubeOps Platform started on port {self.settings.port}")
        self.logger.info(f"Using {resolve_provider(self.settings.llm_provider)} as LLM provider")
        self.logger.info(f"Memory persistence: {memory_type_label(self.storage)}")

    def serve(self, host: Optional[str] = None, port: Optional[int] = None) -> None:
        """Run the HTTP server with uvicorn (blocking)."""
        import uvicorn

        from kubeops.server.app import create_app

        if host is not None:
            self.settings.host = host
        if port is not None:
            self.settings.port = port

        app = create_app(self)
        uvicorn.run(
            app,
            host=self.settings.host,
            port=self.settings.port,
            log_level=self.settings.log_level.lower(),
        )

    def __repr__(self) -> str:
        return (
            f"KubeOpsPlatform(agents={list(self.agents)}, "
            f"workflows={list(self.workflows)}, storage={self.storage!r})"
        )


def build_platform(
    settings: Optional[Settings] = None,
    model: Optional[BaseChatModel] = None,
    storage: Optional[StorageBackend] = None,
    **model_kwargs: Any,
) -> KubeOpsPlatform:
    """
    Build the platform from settings.

    Args:
        settings: Platform settings (None = get_config())
        model: Chat model to use instead of the configured provider's. Without
            one, the provider model is built on the first agent call, so
            workflow-only use needs no API key.
        storage: Storage backend (None = get_storage())
        **model_kwargs: Extra arguments for the provider's model class
    """
    settings = settings or get_config()
    configure_logging_from_settings(settings)

    if storage is None:
        storage = get_storage()

    memory = Memory(storage)
    if model is not None:
        agents = create_agents(model, memory, max_iterations=settings.agent_max_iterations)
    else:
        provider = resolve_provider(settings.llm_provider)
        model_factory = functools.cache(
            lambda: get_model(provider, settings.llm_model, **model_kwargs)
        )
        agents = create_agents(
            memory=memory,
            max_iterations=settings.agent_max_iterations,
            model_factory=model_factory,
            model_name=settings.llm_model or default_model_for(provider),
        )

    return KubeOpsPlatform(
        agents=agents,
        workflows=[create_kubernetes_workflow()],
        storage=storage,
        settings=settings,
    )
