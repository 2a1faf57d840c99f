"""Request and response schemas for the HTTP API."""

from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


class SuccessResponse(BaseModel, Generic[T]):
    """Envelope of every successful response."""

    success: bool = True
    data: T


class ErrorDetail(BaseModel):
    type: str
    message: str
    details: Optional[Any] = None


class ErrorResponse(BaseModel):
    success: bool = False
    error: ErrorDetail


# Health


class HealthResponse(BaseModel):
    status: str
    version: str
    storage: str
    storage_healthy: bool
    agents: int
    workflows: int


# Agents


class ToolResponse(BaseModel):
    name: str
    title: str
    description: str
    parameters: Dict[str, Any]


class AgentResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    instructions: str
    model: str
    tools: List[ToolResponse] = []
    memory: bool = False


class GenerateTextOptions(BaseModel):
    user_id: Optional[str] = Field(default=None, alias="userId")
    conversation_id: Optional[str] = Field(default=None, alias="conversationId")

    model_config = {"populate_by_name": True}


class GenerateTextRequest(BaseModel):
    input: str = Field(min_length=1)
    options: GenerateTextOptions = Field(default_factory=GenerateTextOptions)


class TokenUsageResponse(BaseModel):
    input_tokens: int = 0
    output_tokens: int = 0
    total_tokens: int = 0
    model: Optional[str] = None


class GenerateTextResponse(BaseModel):
    text: str
    agent_id: str
    conversation_id: str
    finish_reason: str
    tool_calls_made: int
    iterations: int
    usage: TokenUsageResponse


class ConversationResponse(BaseModel):
    conversation_id: str
    agent_id: str
    user_id: Optional[str] = None
    title: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class ConversationListResponse(BaseModel):
    items: List[ConversationResponse]
    count: int
    limit: int = 100
    offset: int = 0


# Workflows


class WorkflowStepResponse(BaseModel):
    id: str
    name: str
    resumable: bool = False
    resume_schema: Optional[Dict[str, Any]] = None


class WorkflowResponse(BaseModel):
    id: str
    name: str
    purpose: str
    steps: List[WorkflowStepResponse] = []
    input_schema: Optional[Dict[str, Any]] = None
    result_schema: Optional[Dict[str, Any]] = None


class ExecuteWorkflowOptions(BaseModel):
    user_id: Optional[str] = Field(default=None, alias="userId")

    model_config = {"populate_by_name": True}


class ExecuteWorkflowRequest(BaseModel):
    input: Dict[str, Any] = Field(default_factory=dict)
    options: ExecuteWorkflowOptions = Field(default_factory=ExecuteWorkflowOptions)


class ResumeWorkflowRequest(BaseModel):
    resume_data: Dict[str, Any] = Field(default_factory=dict, alias="resumeData")

    model_config = {"populate_by_name": True}


class CancelWorkflowRequest(BaseModel):
    reason: Optional[str] = None


class ExecutionResponse(BaseModel):
    execution_id: str
    workflow_id: str
    status: str
    result: Optional[Any] = None
    error: Optional[str] = None
    suspension: Optional[Dict[str, Any]] = None


class RunResponse(BaseModel):
    execution_id: str
    workflow_id: str
    status: str
    created_at: datetime
    updated_at: datetime
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    user_id: Optional[str] = None
    error: Optional[str] = None


class RunDetailResponse(RunResponse):
    input: Dict[str, Any] = {}
    result: Optional[Any] = None
    suspension: Optional[Dict[str, Any]] = None


class RunListResponse(BaseModel):
    items: List[RunResponse]
    count: int
    limit: int = 100
    offset: int = 0


class EventResponse(BaseModel):
    event_id: str
    run_id: str
    type: str
    timestamp: datetime
    sequence: Optional[int] = None
    data: Dict[str, Any] = {}


class EventListResponse(BaseModel):
    items: List[EventResponse]
    count: int
