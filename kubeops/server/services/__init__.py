"""Services for the HTTP API."""

from kubeops.server.services.agent_service import AgentService
from kubeops.server.services.workflow_service import WorkflowService

__all__ = ["AgentService", "WorkflowService"]
