"""
Conversation memory for agents.

`Memory` stores langchain messages per conversation in a platform
StorageBackend, so the same memory works in-process (InMemoryStorageBackend)
and across restarts (SQLiteStorageBackend).
"""

from __future__ import annotations

from collections.abc import Sequence

from langchain_core.messages import BaseMessage, messages_from_dict, messages_to_dict
from loguru import logger

from kubeops.storage.base import StorageBackend
from kubeops.storage.schemas import Conversation, StoredMessage


class Memory:
    """
    Persistent conversation history.

    Args:
        storage: Backend holding conversations and messages.
        storage_limit: Maximum number of most recent messages loaded as history.

    Example:
        >>> memory = Memory(InMemoryStorageBackend())
        >>> await memory.add_messages("conv_1", [HumanMessage("hi")], agent_id="kubernetes-agent")
        >>> await memory.get_messages("conv_1")
    """

    def __init__(self, storage: StorageBackend, storage_limit: int = 100) -> None:
        self.storage = storage
        self.storage_limit = storage_limit

    async def get_messages(
        self, conversation_id: str, limit: int | None = None
    ) -> list[BaseMessage]:
        """Messages of a conversation, oldest first (at most `limit`, default storage_limit)."""
        stored = await self.storage.get_messages(
            conversation_id, limit=limit if limit is not None else self.storage_limit
        )
        return messages_from_dict([m.content for m in stored])

    async def add_messages(
        self,
        conversation_id: str,
        messages: Sequence[BaseMessage],
        user_id: str | None = None,
        agent_id: str = "",
    ) -> None:
        """Append messages, creating the conversation on first use."""
        conversation = await self.storage.get_conversation(conversation_id)
        if conversation is None:
            try:
                await self.storage.create_conversation(
                    Conversation(
                        conversation_id=conversation_id,
                        agent_id=agent_id,
                        user_id=user_id,
                        title=_title_from(messages),
                    )
                )
            except ValueError:
                # Another writer created it between the lookup and the insert
                if await self.storage.get_conversation(conversation_id) is None:
                    raise
            else:
                logger.debug(
                    "Conversation created",
                    conversation_id=conversation_id,
                    agent_id=agent_id,
                )

        serialized = messages_to_dict(list(messages))
        await self.storage.add_messages(
            conversation_id,
            [
                StoredMessage(conversation_id=conversation_id, role=item["type"], content=item)
                for item in serialized
            ],
        )

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        return await self.storage.get_conversation(conversation_id)

    async def list_conversations(
        self,
        user_id: str | None = None,
        agent_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Conversation]:
        return await self.storage.list_conversations(
            user_id=user_id, agent_id=agent_id, limit=limit, offset=offset
        )

    async def clear(self, conversation_id: str) -> None:
        """Delete a conversation and its messages."""
        await self.storage.delete_conversation(conversation_id)


def _title_from(messages: Sequence[BaseMessage], max_length: int = 60) -> str | None:
    for message in messages:
        if message.type == "human" and isinstance(message.content, str):
            text = message.content.strip().splitlines()[0] if message.content.strip() else ""
            return text[:max_length] or None
    return None
