"""
Exception hierarchy for the KubeOps platform.

All platform errors derive from KubeOpsError so callers (HTTP layer, CLI)
can catch them in one place. SuspensionSignal is control flow, not an error.
"""

from typing import Any, Dict, Optional


class KubeOpsError(Exception):
    """Base exception for all platform errors."""

    pass


class ConfigurationError(KubeOpsError):
    """Invalid or incomplete platform configuration."""

    pass


class WorkflowError(KubeOpsError):
    """Base exception for workflow execution errors."""

    pass


class WorkflowNotFoundError(WorkflowError):
    """Raised when a workflow id is not registered."""

    def __init__(self, workflow_id: str) -> None:
        super().__init__(f"Workflow '{workflow_id}' not found")
        self.workflow_id = workflow_id


class RunNotFoundError(WorkflowError):
    """Raised when a workflow run (execution) does not exist in storage."""

    def __init__(self, run_id: str) -> None:
        super().__init__(f"Workflow run '{run_id}' not found")
        self.run_id = run_id


class InvalidRunStateError(WorkflowError):
    """Raised when an operation is not allowed in the run's current status."""

    def __init__(self, run_id: str, status: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"Workflow run '{run_id}' is in status '{status}'")
        self.run_id = run_id
        self.status = status


class WorkflowNotSuspendedError(InvalidRunStateError):
    """Raised when resuming a run that is not suspended."""

    def __init__(self, run_id: str, status: str) -> None:
        super().__init__(
            run_id, status, f"Workflow run '{run_id}' is not suspended (status: {status})"
        )


class InvalidWorkflowInputError(WorkflowError):
    """Raised when workflow input does not match the workflow's input schema."""

    def __init__(self, workflow_id: str, errors: Any) -> None:
        super().__init__(f"Invalid input for workflow '{workflow_id}': {errors}")
        self.workflow_id = workflow_id
        self.errors = errors


class InvalidResumeDataError(WorkflowError):
    """Raised when resume data does not match the suspended step's resume schema."""

    def __init__(self, step_id: str, errors: Any) -> None:
        super().__init__(f"Invalid resume data for step '{step_id}': {errors}")
        self.step_id = step_id
        self.errors = errors


class DeploymentNotApprovedError(WorkflowError):
    """Raised when an operator rejects a suspended deployment."""

    pass


class SuspensionSignal(Exception):
    """
    Raised by StepContext.suspend() to pause a workflow run.

    Not an error: the executor catches it, checkpoints the step input and
    marks the run as suspended until it is resumed.

    Attributes:
        reason: Human-readable reason for the suspension
        suspend_data: Data describing what the run is waiting on
    """

    def __init__(self, reason: str, suspend_data: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.suspend_data = suspend_data or {}
