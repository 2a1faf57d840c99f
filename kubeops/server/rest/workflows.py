"""Workflow and execution endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from kubeops.server.dependencies import get_workflow_service
from kubeops.server.schemas import (
    CancelWorkflowRequest,
    EventListResponse,
    ExecuteWorkflowRequest,
    ExecutionResponse,
    ResumeWorkflowRequest,
    RunDetailResponse,
    RunListResponse,
    SuccessResponse,
    WorkflowResponse,
)
from kubeops.server.services import WorkflowService
from kubeops.storage.schemas import RunStatus

router = APIRouter(prefix="/workflows", tags=["workflows"])


@router.get("", response_model=SuccessResponse[List[WorkflowResponse]])
async def list_workflows(
    service: WorkflowService = Depends(get_workflow_service),
) -> SuccessResponse[List[WorkflowResponse]]:
    """List registered workflows with their steps and schemas."""
    return SuccessResponse(data=service.list_workflows())


@router.get("/{workflow_id}", response_model=SuccessResponse[WorkflowResponse])
async def get_workflow(
    workflow_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> SuccessResponse[WorkflowResponse]:
    return SuccessResponse(data=service.get_workflow(workflow_id))


@router.post("/{workflow_id}/execute", response_model=SuccessResponse[ExecutionResponse])
async def execute_workflow(
    workflow_id: str,
    request: ExecuteWorkflowRequest,
    service: WorkflowService = Depends(get_workflow_service),
) -> SuccessResponse[ExecutionResponse]:
    """
    Start a workflow run.

    The run executes until it completes, fails or suspends; the response
    carries the execution id needed to resume or cancel it.
    """
    return SuccessResponse(data=await service.execute(workflow_id, request))


@router.get("/{workflow_id}/executions", response_model=SuccessResponse[RunListResponse])
async def list_executions(
    workflow_id: str,
    status: Optional[RunStatus] = Query(None, description="Filter by run status"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum results"),
    offset: int = Query(0, ge=0, description="Skip first N results"),
    service: WorkflowService = Depends(get_workflow_service),
) -> SuccessResponse[RunListResponse]:
    """List a workflow's runs, most recent first."""
    data = await service.list_runs(
        workflow_id,
        status=status.value if status else None,
        limit=limit,
        offset=offset,
    )
    return SuccessResponse(data=data)


@router.post(
    "/{workflow_id}/executions/{execution_id}/resume",
    response_model=SuccessResponse[ExecutionResponse],
)
async def resume_execution(
    workflow_id: str,
    execution_id: str,
    request: Optional[ResumeWorkflowRequest] = None,
    service: WorkflowService = Depends(get_workflow_service),
) -> SuccessResponse[ExecutionResponse]:
    """Resume a suspended run with the data its suspended step expects."""
    resume_data = request.resume_data if request else {}
    data = await service.resume(workflow_id, execution_id, resume_data)
    return SuccessResponse(data=data)


@router.post(
    "/{workflow_id}/executions/{execution_id}/cancel",
    response_model=SuccessResponse[ExecutionResponse],
)
async def cancel_execution(
    workflow_id: str,
    execution_id: str,
    request: Optional[CancelWorkflowRequest] = None,
    service: WorkflowService = Depends(get_workflow_service),
) -> SuccessResponse[ExecutionResponse]:
    reason = request.reason if request else None
    data = await service.cancel(workflow_id, execution_id, reason=reason)
    return SuccessResponse(data=data)


@router.get(
    "/{workflow_id}/executions/{execution_id}/state",
    response_model=SuccessResponse[RunDetailResponse],
)
async def get_execution_state(
    workflow_id: str,
    execution_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> SuccessResponse[RunDetailResponse]:
    """Get a run's status, input, result and suspension checkpoint."""
    return SuccessResponse(data=await service.get_state(workflow_id, execution_id))


@router.get(
    "/{workflow_id}/executions/{execution_id}/events",
    response_model=SuccessResponse[EventListResponse],
)
async def get_execution_events(
    workflow_id: str,
    execution_id: str,
    service: WorkflowService = Depends(get_workflow_service),
) -> SuccessResponse[EventListResponse]:
    """Get a run's event log in sequence order."""
    return SuccessResponse(data=await service.get_events(workflow_id, execution_id))
