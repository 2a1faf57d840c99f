"""
The platform's agents: kubernetes-agent and devops-assistant.
"""

from __future__ import annotations

from typing import Callable

from langchain_core.language_models.chat_models import BaseChatModel

from kubeops_agents.agent.base import Agent
from kubeops_agents.memory import Memory
from kubeops_agents.tools.kubernetes import KUBERNETES_TOOLS

KUBERNETES_AGENT_INSTRUCTIONS = """You are a Kubernetes operations specialist AI agent. You help with:
    - Managing Kubernetes resources and deployments
    - Debugging pod issues and analyzing logs
    - Helm chart management and upgrades
    - Flux GitOps reconciliation and troubleshooting
    - Monitoring cluster health and performance
    - Providing best practices and recommendations

    Always prioritize safety and follow GitOps principles when making changes."""

DEVOPS_AGENT_INSTRUCTIONS = """You are a DevOps AI assistant that helps with:
    - CI/CD pipeline design and optimization
    - Infrastructure as Code (IaC) best practices
    - Container orchestration and management
    - Security and compliance automation
    - Monitoring and observability setup
    - Incident response and troubleshooting

    Focus on automation, reliability, and scalability in all recommendations."""


def create_kubernetes_agent(
    model: BaseChatModel | None = None,
    memory: Memory | None = None,
    max_iterations: int = 10,
    model_factory: Callable[[], BaseChatModel] | None = None,
    model_name: str | None = None,
) -> Agent:
    """Kubernetes operations agent with the kubectl, helm, flux and debug tools."""
    return Agent(
        name="kubernetes-agent",
        description="Kubernetes operations: resources, debugging, Helm and Flux GitOps",
        instructions=KUBERNETES_AGENT_INSTRUCTIONS,
        model=model,
        tools=list(KUBERNETES_TOOLS),
        memory=memory,
        max_iterations=max_iterations,
        model_factory=model_factory,
        model_name=model_name,
    )


def create_devops_agent(
    model: BaseChatModel | None = None,
    memory: Memory | None = None,
    max_iterations: int = 10,
    model_factory: Callable[[], BaseChatModel] | None = None,
    model_name: str | None = None,
) -> Agent:
    """General DevOps assistant without tools."""
    return Agent(
        name="devops-assistant",
        description="CI/CD, infrastructure as code, security and incident response advice",
        instructions=DEVOPS_AGENT_INSTRUCTIONS,
        model=model,
        memory=memory,
        max_iterations=max_iterations,
        model_factory=model_factory,
        model_name=model_name,
    )


def create_agents(
    model: BaseChatModel | None = None,
    memory: Memory | None = None,
    max_iterations: int = 10,
    model_factory: Callable[[], BaseChatModel] | None = None,
    model_name: str | None = None,
) -> list[Agent]:
    """
    Both platform agents, sharing one model and one memory.

    Pass model_factory (and model_name for listings) instead of model to
    build the chat model on the first generate_text() call.
    """
    return [
        create_kubernetes_agent(model, memory, max_iterations, model_factory, model_name),
        create_devops_agent(model, memory, max_iterations, model_factory, model_name),
    ]
