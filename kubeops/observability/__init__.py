"""
Observability for the KubeOps platform: structured logging with loguru.
"""

from kubeops.observability.logging import (
    SERVICE_NAME,
    bind_step_context,
    bind_workflow_context,
    configure_logging,
    configure_logging_from_settings,
    get_logger,
    step_logging_context,
    workflow_logging_context,
)

__all__ = [
    "SERVICE_NAME",
    "configure_logging",
    "configure_logging_from_settings",
    "get_logger",
    "bind_workflow_context",
    "bind_step_context",
    "workflow_logging_context",
    "step_logging_context",
]
