"""Agent endpoints."""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from kubeops.server.dependencies import get_agent_service
from kubeops.server.schemas import (
    AgentResponse,
    ConversationListResponse,
    GenerateTextRequest,
    GenerateTextResponse,
    SuccessResponse,
)
from kubeops.server.services import AgentService

router = APIRouter(prefix="/agents", tags=["agents"])


@router.get("", response_model=SuccessResponse[List[AgentResponse]])
async def list_agents(
    service: AgentService = Depends(get_agent_service),
) -> SuccessResponse[List[AgentResponse]]:
    """List registered agents with their tools."""
    return SuccessResponse(data=service.list_agents())


@router.get("/{agent_id}", response_model=SuccessResponse[AgentResponse])
async def get_agent(
    agent_id: str,
    service: AgentService = Depends(get_agent_service),
) -> SuccessResponse[AgentResponse]:
    """Get a single agent.

    Raises:
        HTTPException: 404 if the agent is unknown.
    """
    return SuccessResponse(data=service.get_agent(agent_id))


@router.post("/{agent_id}/text", response_model=SuccessResponse[GenerateTextResponse])
async def generate_text(
    agent_id: str,
    request: GenerateTextRequest,
    service: AgentService = Depends(get_agent_service),
) -> SuccessResponse[GenerateTextResponse]:
    """Send a message to an agent and return its reply."""
    return SuccessResponse(data=await service.generate_text(agent_id, request))


@router.get(
    "/{agent_id}/conversations",
    response_model=SuccessResponse[ConversationListResponse],
)
async def list_conversations(
    agent_id: str,
    user_id: Optional[str] = Query(None, description="Filter by user"),
    limit: int = Query(100, ge=1, le=1000, description="Maximum results"),
    offset: int = Query(0, ge=0, description="Skip first N results"),
    service: AgentService = Depends(get_agent_service),
) -> SuccessResponse[ConversationListResponse]:
    """List an agent's stored conversations, most recent first."""
    data = await service.list_conversations(agent_id, user_id=user_id, limit=limit, offset=offset)
    return SuccessResponse(data=data)
