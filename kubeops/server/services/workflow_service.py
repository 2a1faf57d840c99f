"""Service layer for workflow operations."""

from kubeops.engine.events import Event
from kubeops.exceptions import RunNotFoundError
from kubeops.platform import KubeOpsPlatform
from kubeops.server.schemas import (
    EventListResponse,
    EventResponse,
    ExecuteWorkflowRequest,
    ExecutionResponse,
    RunDetailResponse,
    RunListResponse,
    RunResponse,
    WorkflowResponse,
)
from kubeops.storage.schemas import RunStatus, WorkflowRun
from kubeops.workflow.executor import (
    WorkflowExecutionResult,
    cancel_workflow,
    resume_workflow,
    start_workflow,
)


class WorkflowService:
    """Workflow listing, execution and run inspection."""

    def __init__(self, platform: KubeOpsPlatform):
        self.platform = platform
        self.storage = platform.storage

    def list_workflows(self) -> list[WorkflowResponse]:
        return [WorkflowResponse(**wf.to_dict()) for wf in self.platform.list_workflows()]

    def get_workflow(self, workflow_id: str) -> WorkflowResponse:
        return WorkflowResponse(**self.platform.get_workflow(workflow_id).to_dict())

    async def execute(self, workflow_id: str, request: ExecuteWorkflowRequest) -> ExecutionResponse:
        chain = self.platform.get_workflow(workflow_id)
        result = await start_workflow(
            chain, request.input, storage=self.storage, user_id=request.options.user_id
        )
        return self._to_execution_response(result)

    async def resume(self, workflow_id: str, execution_id: str, resume_data: dict) -> ExecutionResponse:
        chain = self.platform.get_workflow(workflow_id)
        await self._get_run(workflow_id, execution_id)
        result = await resume_workflow(chain, execution_id, resume_data, storage=self.storage)
        return self._to_execution_response(result)

    async def cancel(
        self, workflow_id: str, execution_id: str, reason: str | None = None
    ) -> ExecutionResponse:
        self.platform.get_workflow(workflow_id)
        await self._get_run(workflow_id, execution_id)
        result = await cancel_workflow(execution_id, storage=self.storage, reason=reason)
        return self._to_execution_response(result)

    async def list_runs(
        self,
        workflow_id: str,
        status: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> RunListResponse:
        self.platform.get_workflow(workflow_id)
        status_enum = RunStatus(status) if status else None

        runs = await self.storage.list_runs(
            workflow_id=workflow_id, status=status_enum, limit=limit, offset=offset
        )
        items = [self._run_to_response(run) for run in runs]
        return RunListResponse(items=items, count=len(items), limit=limit, offset=offset)

    async def get_state(self, workflow_id: str, execution_id: str) -> RunDetailResponse:
        self.platform.get_workflow(workflow_id)
        run = await self._get_run(workflow_id, execution_id)
        return self._run_to_detail_response(run)

    async def get_events(self, workflow_id: str, execution_id: str) -> EventListResponse:
        self.platform.get_workflow(workflow_id)
        await self._get_run(workflow_id, execution_id)
        events = await self.storage.get_events(execution_id)
        items = [self._event_to_response(e) for e in events]
        return EventListResponse(items=items, count=len(items))

    async def _get_run(self, workflow_id: str, execution_id: str) -> WorkflowRun:
        run = await self.storage.get_run(execution_id)
        if run is None or run.workflow_id != workflow_id:
            raise RunNotFoundError(execution_id)
        return run

    @staticmethod
    def _to_execution_response(result: WorkflowExecutionResult) -> ExecutionResponse:
        return ExecutionResponse(**result.to_dict())

    @staticmethod
    def _run_to_response(run: WorkflowRun) -> RunResponse:
        return RunResponse(**WorkflowService._run_fields(run))

    @staticmethod
    def _run_to_detail_response(run: WorkflowRun) -> RunDetailResponse:
        return RunDetailResponse(
            **WorkflowService._run_fields(run),
            input=run.input_data,
            result=run.result,
            suspension=run.suspension.to_dict() if run.suspension else None,
        )

    @staticmethod
    def _run_fields(run: WorkflowRun) -> dict:
        duration = None
        if run.started_at and run.completed_at:
            duration = (run.completed_at - run.started_at).total_seconds()
        return {
            "execution_id": run.run_id,
            "workflow_id": run.workflow_id,
            "status": run.status.value,
            "created_at": run.created_at,
            "updated_at": run.updated_at,
            "started_at": run.started_at,
            "completed_at": run.completed_at,
            "duration_seconds": duration,
            "user_id": run.user_id,
            "error": run.error,
        }

    @staticmethod
    def _event_to_response(event: Event) -> EventResponse:
        return EventResponse(
            event_id=event.event_id,
            run_id=event.run_id,
            type=event.type.value,
            timestamp=event.timestamp,
            sequence=event.sequence,
            data=event.data,
        )
