"""
StepContext - what a workflow step sees while it runs.

The executor builds one context per step execution and also publishes it in a
ContextVar, so helpers called from a step can reach it without passing it
around.

Usage:
    async def deploy(ctx: StepContext) -> dict:
        if ctx.resume_data is None:
            await ctx.suspend("Needs approval", {"namespace": ctx.data["namespace"]})
        ctx.logger.info("Deploying")
        return {**ctx.data, "deployed": True}
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from dataclasses import dataclass, field
from typing import Any, Dict, NoReturn, Optional

from kubeops.exceptions import SuspensionSignal
from kubeops.observability.logging import bind_step_context

_current_context: ContextVar[Optional["StepContext"]] = ContextVar(
    "step_context", default=None
)


@dataclass
class StepContext:
    """
    Execution context passed to every workflow step.

    Attributes:
        data: Output of the previous step, or the validated workflow input
            for the first step
        resume_data: Validated resume data; only set when the step is being
            re-executed after a suspension
        run_id: Workflow run (execution) id
        workflow_id: Workflow id
        step_id: Id of the executing step
        step_index: Position of the step in the chain
        logger: Loguru logger bound with run and step
    """

    data: Any
    run_id: str
    workflow_id: str
    step_id: str
    step_index: int = 0
    resume_data: Optional[Dict[str, Any]] = None
    logger: Any = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self.logger is None:
            self.logger = bind_step_context(self.run_id, self.workflow_id, self.step_id)

    @property
    def is_resumed(self) -> bool:
        return self.resume_data is not None

    async def suspend(
        self, reason: str, suspend_data: Optional[Dict[str, Any]] = None
    ) -> NoReturn:
        """
        Pause the workflow run at this step.

        The run is checkpointed with this step's input and stays suspended
        until it is resumed with data matching the step's resume schema.

        Raises:
            SuspensionSignal: Always; handled by the executor
        """
        self.logger.info(f"Suspending workflow: {reason}")
        raise SuspensionSignal(reason, suspend_data)


def get_context() -> StepContext:
    """
    Get the context of the currently executing step.

    Raises:
        RuntimeError: If called outside of a workflow step
    """
    ctx = _current_context.get()
    if ctx is None:
        raise RuntimeError(
            "No step context available. "
            "This function must be called within a workflow step execution."
        )
    return ctx


def has_context() -> bool:
    return _current_context.get() is not None


def set_context(ctx: Optional[StepContext]) -> Token:
    return _current_context.set(ctx)


def reset_context(token: Token) -> None:
    _current_context.reset(token)
