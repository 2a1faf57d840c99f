"""Built-in workflows."""

from kubeops.workflows.kubernetes import (
    CRITICAL_NAMESPACES,
    DeploymentApproval,
    DeploymentRequest,
    DeploymentResult,
    create_kubernetes_workflow,
    kubernetes_workflow,
)

__all__ = [
    "CRITICAL_NAMESPACES",
    "DeploymentApproval",
    "DeploymentRequest",
    "DeploymentResult",
    "create_kubernetes_workflow",
    "kubernetes_workflow",
]
