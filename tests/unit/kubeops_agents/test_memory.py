"""Tests for agent conversation memory."""

import asyncio

import pytest

lc = pytest.importorskip("langchain_core")

from langchain_core.messages import AIMessage, HumanMessage  # noqa: E402

from kubeops.storage.sqlite import SQLiteStorageBackend  # noqa: E402
from kubeops_agents.memory import Memory  # noqa: E402


class TestMemory:
    @pytest.mark.asyncio
    async def test_creates_conversation_on_first_add(self, storage):
        memory = Memory(storage)
        await memory.add_messages(
            "c1", [HumanMessage(content="Scale the api deployment")], user_id="u", agent_id="kubernetes-agent"
        )

        conversation = await memory.get_conversation("c1")
        assert conversation is not None
        assert conversation.agent_id == "kubernetes-agent"
        assert conversation.title == "Scale the api deployment"

    @pytest.mark.asyncio
    async def test_messages_round_trip(self, storage):
        memory = Memory(storage)
        await memory.add_messages("c1", [HumanMessage(content="hi"), AIMessage(content="hello")])

        messages = await memory.get_messages("c1")
        assert [type(m) for m in messages] == [HumanMessage, AIMessage]
        assert [m.content for m in messages] == ["hi", "hello"]

    @pytest.mark.asyncio
    async def test_storage_limit_keeps_most_recent(self, storage):
        memory = Memory(storage, storage_limit=3)
        await memory.add_messages("c1", [HumanMessage(content=str(i)) for i in range(5)])

        messages = await memory.get_messages("c1")
        assert [m.content for m in messages] == ["2", "3", "4"]

    @pytest.mark.asyncio
    async def test_list_and_clear(self, storage):
        memory = Memory(storage)
        await memory.add_messages("c1", [HumanMessage(content="a")], user_id="u1", agent_id="x")
        await memory.add_messages("c2", [HumanMessage(content="b")], user_id="u2", agent_id="x")

        assert [c.conversation_id for c in await memory.list_conversations(user_id="u1")] == ["c1"]

        await memory.clear("c1")
        assert await memory.get_conversation("c1") is None
        assert await memory.get_messages("c1") == []

    @pytest.mark.asyncio
    async def test_persists_across_sqlite_connections(self, tmp_path):
        db_path = str(tmp_path / "memory.db")

        first = SQLiteStorageBackend(db_path)
        await Memory(first).add_messages("c1", [HumanMessage(content="remember me")], agent_id="a")
        await first.disconnect()

        second = SQLiteStorageBackend(db_path)
        try:
            messages = await Memory(second).get_messages("c1")
        finally:
            await second.disconnect()

        assert [m.content for m in messages] == ["remember me"]

    @pytest.mark.asyncio
    async def test_concurrent_first_writes_share_conversation(self, tmp_path):
        backend = SQLiteStorageBackend(str(tmp_path / "memory.db"))
        memory = Memory(backend)
        try:
            await asyncio.gather(
                memory.add_messages("c1", [HumanMessage(content="get pods")], agent_id="a"),
                memory.add_messages("c1", [HumanMessage(content="get nodes")], agent_id="a"),
            )

            conversations = await memory.list_conversations()
            messages = await memory.get_messages("c1")
        finally:
            await backend.disconnect()

        assert [c.conversation_id for c in conversations] == ["c1"]
        assert sorted(m.content for m in messages) == ["get nodes", "get pods"]
