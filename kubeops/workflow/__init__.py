"""
Workflow engine: step chains with suspend/resume.
"""

from kubeops.workflow.chain import WorkflowChain, WorkflowStep, create_workflow_chain
from kubeops.workflow.context import StepContext, get_context, has_context
from kubeops.workflow.executor import (
    WorkflowExecutionResult,
    cancel_workflow,
    get_workflow_run,
    resume_workflow,
    start_workflow,
)

__all__ = [
    "WorkflowChain",
    "WorkflowStep",
    "create_workflow_chain",
    "StepContext",
    "get_context",
    "has_context",
    "WorkflowExecutionResult",
    "start_workflow",
    "resume_workflow",
    "cancel_workflow",
    "get_workflow_run",
]
