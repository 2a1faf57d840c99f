"""FastAPI dependencies."""

from fastapi import Depends, Request

from kubeops.platform import KubeOpsPlatform
from kubeops.server.services import AgentService, WorkflowService


def get_platform(request: Request) -> KubeOpsPlatform:
    """The platform the application was created for."""
    return request.app.state.platform


def get_agent_service(platform: KubeOpsPlatform = Depends(get_platform)) -> AgentService:
    return AgentService(platform)


def get_workflow_service(platform: KubeOpsPlatform = Depends(get_platform)) -> WorkflowService:
    return WorkflowService(platform)
