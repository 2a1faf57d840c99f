"""
Workflow chains: ordered steps with typed input and result schemas.

Example:
    >>> chain = (
    ...     create_workflow_chain(
    ...         id="greet",
    ...         name="Greeting",
    ...         purpose="Say hello",
    ...         input_schema=GreetInput,
    ...         result_schema=GreetResult,
    ...     )
    ...     .and_then(id="build", execute=lambda ctx: {"text": f"Hello {ctx.data['name']}"})
    ... )
    >>> result = await chain.run({"name": "ops"})
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional, Type

from pydantic import BaseModel

if TYPE_CHECKING:
    from kubeops.storage.base import StorageBackend
    from kubeops.workflow.context import StepContext
    from kubeops.workflow.executor import WorkflowExecutionResult

StepFunction = Callable[["StepContext"], Any]


@dataclass
class WorkflowStep:
    """One step of a workflow chain."""

    id: str
    execute: StepFunction
    resume_schema: Optional[Type[BaseModel]] = None
    name: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name or self.id,
            "resumable": self.resume_schema is not None,
            "resume_schema": (
                self.resume_schema.model_json_schema() if self.resume_schema else None
            ),
        }


@dataclass
class WorkflowChain:
    """
    An ordered sequence of steps.

    Build it with `create_workflow_chain(...)` and `and_then(...)`; run it
    with `run(...)` or through the executor functions.
    """

    id: str
    name: str
    purpose: str
    input_schema: Type[BaseModel]
    result_schema: Type[BaseModel]
    steps: List[WorkflowStep] = field(default_factory=list)

    def and_then(
        self,
        id: str,
        execute: StepFunction,
        resume_schema: Optional[Type[BaseModel]] = None,
        name: Optional[str] = None,
    ) -> "WorkflowChain":
        """
        Append a step and return the chain.

        Args:
            id: Step id, unique within the chain
            execute: Step function taking a StepContext; sync or async. Its
                return value is the next step's `ctx.data`
            resume_schema: Pydantic model that resume data must match when
                this step suspends
            name: Display name (defaults to the id)

        Raises:
            ValueError: If a step with the same id already exists
        """
        if self.get_step(id) is not None:
            raise ValueError(f"Step '{id}' already exists in workflow '{self.id}'")
        self.steps.append(
            WorkflowStep(id=id, execute=execute, resume_schema=resume_schema, name=name)
        )
        return self

    def get_step(self, step_id: str) -> Optional[WorkflowStep]:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    @property
    def step_ids(self) -> List[str]:
        return [step.id for step in self.steps]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "purpose": self.purpose,
            "steps": [step.to_dict() for step in self.steps],
            "input_schema": self.input_schema.model_json_schema(),
            "result_schema": self.result_schema.model_json_schema(),
        }

    # Shortcuts to the executor

    async def run(
        self,
        input: Any,
        storage: Optional["StorageBackend"] = None,
        user_id: Optional[str] = None,
    ) -> "WorkflowExecutionResult":
        """Start a run of this workflow (configured storage if none given)."""
        from kubeops.workflow.executor import start_workflow

        return await start_workflow(self, input, storage=storage, user_id=user_id)

    async def resume(
        self,
        run_id: str,
        resume_data: Any,
        storage: Optional["StorageBackend"] = None,
    ) -> "WorkflowExecutionResult":
        """Resume a suspended run of this workflow."""
        from kubeops.workflow.executor import resume_workflow

        return await resume_workflow(self, run_id, resume_data, storage=storage)

    async def cancel(
        self,
        run_id: str,
        storage: Optional["StorageBackend"] = None,
        reason: Optional[str] = None,
    ) -> "WorkflowExecutionResult":
        """Cancel a running or suspended run."""
        from kubeops.workflow.executor import cancel_workflow

        return await cancel_workflow(run_id, storage=storage, reason=reason)


def create_workflow_chain(
    id: str,
    name: str,
    purpose: str,
    input_schema: Type[BaseModel],
    result_schema: Type[BaseModel],
) -> WorkflowChain:
    """Create an empty workflow chain."""
    return WorkflowChain(
        id=id,
        name=name,
        purpose=purpose,
        input_schema=input_schema,
        result_schema=result_schema,
    )
