"""Service layer for agent operations."""

from kubeops.platform import KubeOpsPlatform
from kubeops.server.schemas import (
    AgentResponse,
    ConversationListResponse,
    ConversationResponse,
    GenerateTextRequest,
    GenerateTextResponse,
    TokenUsageResponse,
)
from kubeops_agents.agent.base import Agent


class AgentService:
    """Agent listing, text generation and conversation history."""

    def __init__(self, platform: KubeOpsPlatform):
        self.platform = platform

    def list_agents(self) -> list[AgentResponse]:
        return [self._agent_to_response(agent) for agent in self.platform.list_agents()]

    def get_agent(self, agent_id: str) -> AgentResponse:
        return self._agent_to_response(self.platform.get_agent(agent_id))

    async def generate_text(self, agent_id: str, request: GenerateTextRequest) -> GenerateTextResponse:
        agent = self.platform.get_agent(agent_id)
        result = await agent.generate_text(
            request.input,
            user_id=request.options.user_id,
            conversation_id=request.options.conversation_id,
        )
        return GenerateTextResponse(
            text=result.content,
            agent_id=agent.id,
            conversation_id=result.conversation_id or "",
            finish_reason=result.finish_reason,
            tool_calls_made=result.tool_calls_made,
            iterations=result.iterations,
            usage=TokenUsageResponse(**result.token_usage.to_dict()),
        )

    async def list_conversations(
        self,
        agent_id: str,
        user_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> ConversationListResponse:
        agent = self.platform.get_agent(agent_id)
        conversations = []
        if agent.memory is not None:
            conversations = await agent.memory.list_conversations(
                user_id=user_id, agent_id=agent.id, limit=limit, offset=offset
            )
        items = [
            ConversationResponse(
                conversation_id=c.conversation_id,
                agent_id=c.agent_id,
                user_id=c.user_id,
                title=c.title,
                created_at=c.created_at,
                updated_at=c.updated_at,
            )
            for c in conversations
        ]
        return ConversationListResponse(items=items, count=len(items), limit=limit, offset=offset)

    @staticmethod
    def _agent_to_response(agent: Agent) -> AgentResponse:
        return AgentResponse(**agent.to_dict())
