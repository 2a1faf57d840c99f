"""
KubeOps - an AI agent platform for Kubernetes operations.

Two chat agents (a Kubernetes operations specialist and a DevOps assistant)
and a Kubernetes deployment workflow with approval-gated suspend/resume,
served over HTTP and from the `kubeops` CLI.

Usage:
    >>> import kubeops
    >>> from kubeops.workflows import kubernetes_workflow
    >>>
    >>> result = await kubernetes_workflow.run(
    ...     {"application": "api", "namespace": "staging", "image": "api:1.2.0"}
    ... )
    >>> result.status
    'completed'
"""

from kubeops.config import Settings, configure, get_config, get_storage, reset_config
from kubeops.exceptions import (
    ConfigurationError,
    DeploymentNotApprovedError,
    InvalidResumeDataError,
    InvalidRunStateError,
    InvalidWorkflowInputError,
    KubeOpsError,
    RunNotFoundError,
    SuspensionSignal,
    WorkflowError,
    WorkflowNotFoundError,
    WorkflowNotSuspendedError,
)
from kubeops.workflow import (
    StepContext,
    WorkflowChain,
    WorkflowExecutionResult,
    cancel_workflow,
    create_workflow_chain,
    get_workflow_run,
    resume_workflow,
    start_workflow,
)

__version__ = "0.1.0"

__all__ = [
    # Configuration
    "Settings",
    "configure",
    "get_config",
    "get_storage",
    "reset_config",
    # Exceptions
    "KubeOpsError",
    "ConfigurationError",
    "WorkflowError",
    "WorkflowNotFoundError",
    "RunNotFoundError",
    "InvalidRunStateError",
    "WorkflowNotSuspendedError",
    "InvalidWorkflowInputError",
    "InvalidResumeDataError",
    "DeploymentNotApprovedError",
    "SuspensionSignal",
    # Workflow engine
    "StepContext",
    "WorkflowChain",
    "WorkflowExecutionResult",
    "create_workflow_chain",
    "start_workflow",
    "resume_workflow",
    "cancel_workflow",
    "get_workflow_run",
]
