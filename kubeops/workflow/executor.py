"""
Workflow execution engine.

The executor is responsible for:
- Starting new workflow runs
- Resuming suspended runs
- Cancelling runs
- Recording every transition in the run's event log

A step that raises fails the run; the failure is reported in the returned
WorkflowExecutionResult rather than raised. Only caller mistakes (invalid
input, invalid resume data, unknown run, wrong run status) raise.
"""

import inspect
import uuid
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, Dict, Optional

from loguru import logger
from pydantic import ValidationError
from pydantic_core import to_jsonable_python

from kubeops.engine.events import (
    create_step_completed_event,
    create_step_failed_event,
    create_step_started_event,
    create_workflow_cancelled_event,
    create_workflow_completed_event,
    create_workflow_failed_event,
    create_workflow_resumed_event,
    create_workflow_started_event,
    create_workflow_suspended_event,
)
from kubeops.exceptions import (
    InvalidResumeDataError,
    InvalidRunStateError,
    InvalidWorkflowInputError,
    RunNotFoundError,
    SuspensionSignal,
    WorkflowError,
    WorkflowNotSuspendedError,
)
from kubeops.observability.logging import (
    bind_workflow_context,
    step_logging_context,
    workflow_logging_context,
)
from kubeops.storage.base import StorageBackend
from kubeops.storage.schemas import RunStatus, SuspensionState, WorkflowRun
from kubeops.workflow.chain import WorkflowChain
from kubeops.workflow.context import StepContext, reset_context, set_context


@dataclass
class WorkflowExecutionResult:
    """
    Outcome of a start, resume or cancel call.

    `execution_id` is the run id. `suspension` is set while the run is
    suspended and describes what it is waiting on.
    """

    execution_id: str
    workflow_id: str
    status: str
    result: Any = None
    error: Optional[str] = None
    suspension: Optional[Dict[str, Any]] = None

    @classmethod
    def from_run(cls, run: WorkflowRun) -> "WorkflowExecutionResult":
        suspension = None
        if run.status == RunStatus.SUSPENDED and run.suspension:
            suspension = {
                "step_id": run.suspension.step_id,
                "reason": run.suspension.reason,
                "suspend_data": run.suspension.suspend_data,
                "suspended_at": run.suspension.suspended_at.isoformat(),
            }
        return cls(
            execution_id=run.run_id,
            workflow_id=run.workflow_id,
            status=run.status.value,
            result=run.result,
            error=run.error,
            suspension=suspension,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "execution_id": self.execution_id,
            "workflow_id": self.workflow_id,
            "status": self.status,
            "result": self.result,
            "error": self.error,
            "suspension": self.suspension,
        }


def _resolve_storage(storage: Optional[StorageBackend]) -> StorageBackend:
    if storage is not None:
        return storage
    from kubeops.config import get_storage

    return get_storage()


async def _require_run(storage: StorageBackend, run_id: str) -> WorkflowRun:
    run = await storage.get_run(run_id)
    if run is None:
        raise RunNotFoundError(run_id)
    return run


async def start_workflow(
    chain: WorkflowChain,
    input: Any,
    storage: Optional[StorageBackend] = None,
    user_id: Optional[str] = None,
) -> WorkflowExecutionResult:
    """
    Start a new run of a workflow chain.

    Args:
        chain: Workflow to run
        input: Input data; validated against the chain's input schema
        storage: Storage backend (None = configured storage)
        user_id: Optional user that started the run

    Returns:
        Result with status completed, suspended or failed

    Raises:
        InvalidWorkflowInputError: If the input does not match the input schema
    """
    storage = _resolve_storage(storage)

    try:
        validated = chain.input_schema.model_validate(input)
    except ValidationError as e:
        raise InvalidWorkflowInputError(chain.id, e.errors(include_url=False)) from e

    input_data = validated.model_dump(mode="json")
    run_id = f"run_{uuid.uuid4().hex[:16]}"
    now = datetime.now(UTC)

    run = WorkflowRun(
        run_id=run_id,
        workflow_id=chain.id,
        status=RunStatus.RUNNING,
        started_at=now,
        input_data=input_data,
        user_id=user_id,
    )
    await storage.create_run(run)
    await storage.record_event(
        create_workflow_started_event(run_id, chain.id, input_data, user_id=user_id)
    )

    bind_workflow_context(run_id, chain.id).info(f"Starting workflow: {chain.name}")

    return await _execute_steps(chain, run_id, storage, start_index=0, step_input=input_data)


async def resume_workflow(
    chain: WorkflowChain,
    run_id: str,
    resume_data: Any,
    storage: Optional[StorageBackend] = None,
) -> WorkflowExecutionResult:
    """
    Resume a suspended run.

    The suspended step is executed again with its checkpointed input and the
    validated resume data.

    Raises:
        RunNotFoundError: If the run does not exist
        WorkflowNotSuspendedError: If the run is not suspended
        InvalidResumeDataError: If resume data does not match the step's resume schema
    """
    storage = _resolve_storage(storage)
    run = await _require_run(storage, run_id)

    if run.status != RunStatus.SUSPENDED or run.suspension is None:
        raise WorkflowNotSuspendedError(run_id, run.status.value)
    if run.workflow_id != chain.id:
        raise WorkflowError(
            f"Workflow run '{run_id}' belongs to workflow '{run.workflow_id}', not '{chain.id}'"
        )

    suspension = run.suspension
    step = chain.get_step(suspension.step_id)
    if step is None:
        raise WorkflowError(
            f"Suspended step '{suspension.step_id}' no longer exists in workflow '{chain.id}'"
        )

    validated_resume: Dict[str, Any] = dict(resume_data or {})
    if step.resume_schema is not None:
        try:
            validated_resume = step.resume_schema.model_validate(resume_data or {}).model_dump()
        except ValidationError as e:
            raise InvalidResumeDataError(step.id, e.errors(include_url=False)) from e

    await storage.update_run_suspension(run_id, None)
    await storage.update_run_status(run_id, RunStatus.RUNNING)
    await storage.record_event(
        create_workflow_resumed_event(run_id, step.id, to_jsonable_python(validated_resume))
    )

    bind_workflow_context(run_id, chain.id).info(f"Resuming workflow: {chain.name}", step_id=step.id)

    return await _execute_steps(
        chain,
        run_id,
        storage,
        start_index=suspension.step_index,
        step_input=suspension.step_input,
        resume_data=validated_resume,
    )


async def cancel_workflow(
    run_id: str,
    storage: Optional[StorageBackend] = None,
    reason: Optional[str] = None,
) -> WorkflowExecutionResult:
    """
    Cancel a running or suspended run.

    A running chain notices the cancellation before its next step.

    Raises:
        RunNotFoundError: If the run does not exist
        InvalidRunStateError: If the run already finished
    """
    storage = _resolve_storage(storage)
    run = await _require_run(storage, run_id)

    if run.status not in (RunStatus.RUNNING, RunStatus.SUSPENDED, RunStatus.PENDING):
        raise InvalidRunStateError(
            run_id,
            run.status.value,
            f"Workflow run '{run_id}' cannot be cancelled (status: {run.status.value})",
        )

    await storage.update_run_status(run_id, RunStatus.CANCELLED)
    await storage.record_event(create_workflow_cancelled_event(run_id, reason))

    bind_workflow_context(run_id, run.workflow_id).info("Workflow cancelled", reason=reason)

    return WorkflowExecutionResult.from_run(await _require_run(storage, run_id))


async def get_workflow_run(
    run_id: str,
    storage: Optional[StorageBackend] = None,
) -> WorkflowRun:
    """
    Get a workflow run by id.

    Raises:
        RunNotFoundError: If the run does not exist
    """
    return await _require_run(_resolve_storage(storage), run_id)


async def _cancelled_run(storage: StorageBackend, run_id: str) -> Optional[WorkflowRun]:
    run = await _require_run(storage, run_id)
    return run if run.status == RunStatus.CANCELLED else None


async def _execute_steps(
    chain: WorkflowChain,
    run_id: str,
    storage: StorageBackend,
    start_index: int,
    step_input: Any,
    resume_data: Optional[Dict[str, Any]] = None,
) -> WorkflowExecutionResult:
    data = step_input

    with workflow_logging_context(run_id, chain.id):
        for index in range(start_index, len(chain.steps)):
            step = chain.steps[index]

            current = await _require_run(storage, run_id)
            if current.status == RunStatus.CANCELLED:
                logger.info(f"Workflow cancelled before step {step.id}")
                return WorkflowExecutionResult.from_run(current)

            step_resume = resume_data if index == start_index else None
            await storage.record_event(
                create_step_started_event(run_id, step.id, index, resumed=step_resume is not None)
            )

            ctx = StepContext(
                data=data,
                run_id=run_id,
                workflow_id=chain.id,
                step_id=step.id,
                step_index=index,
                resume_data=step_resume,
            )

            token = set_context(ctx)
            try:
                with step_logging_context(run_id, step.id):
                    output = step.execute(ctx)
                    if inspect.isawaitable(output):
                        output = await output
            except SuspensionSignal as signal:
                return await _suspend(chain, run_id, storage, step.id, index, data, signal)
            except Exception as e:
                return await _fail(run_id, storage, step.id, e)
            finally:
                reset_context(token)

            data = to_jsonable_python(output)
            await storage.record_event(create_step_completed_event(run_id, step.id, data))

        try:
            result = chain.result_schema.model_validate(data).model_dump(mode="json")
        except ValidationError as e:
            return await _fail(run_id, storage, None, e)

        cancelled = await _cancelled_run(storage, run_id)
        if cancelled is not None:
            return WorkflowExecutionResult.from_run(cancelled)

        await storage.update_run_status(run_id, RunStatus.COMPLETED, result=result)
        await storage.record_event(create_workflow_completed_event(run_id, result))
        logger.info(f"Workflow completed: {chain.name}")

    return WorkflowExecutionResult.from_run(await _require_run(storage, run_id))


async def _suspend(
    chain: WorkflowChain,
    run_id: str,
    storage: StorageBackend,
    step_id: str,
    step_index: int,
    step_input: Any,
    signal: SuspensionSignal,
) -> WorkflowExecutionResult:
    # A run cancelled while the step ran stays cancelled
    cancelled = await _cancelled_run(storage, run_id)
    if cancelled is not None:
        logger.info(f"Workflow cancelled during step {step_id}, not suspending")
        return WorkflowExecutionResult.from_run(cancelled)

    suspend_data = to_jsonable_python(signal.suspend_data)
    suspension = SuspensionState(
        step_id=step_id,
        step_index=step_index,
        reason=signal.reason,
        step_input=to_jsonable_python(step_input),
        suspend_data=suspend_data,
    )
    await storage.update_run_suspension(run_id, suspension)
    await storage.update_run_status(run_id, RunStatus.SUSPENDED)
    await storage.record_event(
        create_workflow_suspended_event(run_id, step_id, signal.reason, suspend_data)
    )

    logger.info(
        f"Workflow suspended: {signal.reason}",
        workflow_id=chain.id,
        step_id=step_id,
    )

    return WorkflowExecutionResult.from_run(await _require_run(storage, run_id))


async def _fail(
    run_id: str,
    storage: StorageBackend,
    step_id: Optional[str],
    error: Exception,
) -> WorkflowExecutionResult:
    message = str(error)
    error_type = type(error).__name__

    cancelled = await _cancelled_run(storage, run_id)
    if cancelled is not None:
        logger.info(f"Workflow cancelled, ignoring error: {message}", step_id=step_id)
        return WorkflowExecutionResult.from_run(cancelled)

    if step_id is not None:
        await storage.record_event(create_step_failed_event(run_id, step_id, message, error_type))
    await storage.update_run_status(run_id, RunStatus.FAILED, error=message)
    await storage.record_event(
        create_workflow_failed_event(run_id, message, error_type, step_id=step_id)
    )

    logger.error(
        f"Workflow failed: {message}",
        step_id=step_id,
        error_type=error_type,
    )

    return WorkflowExecutionResult.from_run(await _require_run(storage, run_id))
