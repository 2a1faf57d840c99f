"""
Behaviour shared by every storage backend.

Each test runs against the in-memory and the SQLite backend.
"""

from datetime import UTC, datetime, timedelta

import pytest
import pytest_asyncio

from kubeops.engine.events import (
    EventType,
    create_step_started_event,
    create_workflow_started_event,
    create_workflow_suspended_event,
)
from kubeops.storage.memory import InMemoryStorageBackend
from kubeops.storage.schemas import (
    Conversation,
    RunStatus,
    StoredMessage,
    SuspensionState,
    WorkflowRun,
)
from kubeops.storage.sqlite import SQLiteStorageBackend


@pytest_asyncio.fixture(params=["memory", "sqlite"])
async def backend(request, tmp_path):
    if request.param == "memory":
        backend = InMemoryStorageBackend()
    else:
        backend = SQLiteStorageBackend(str(tmp_path / "kubeops.db"))
    await backend.connect()
    yield backend
    await backend.disconnect()


def _run(run_id="run_1", workflow_id="kubernetes-deployment", status=RunStatus.RUNNING, **kwargs):
    return WorkflowRun(run_id=run_id, workflow_id=workflow_id, status=status, **kwargs)


class TestRuns:
    @pytest.mark.asyncio
    async def test_create_and_get(self, backend):
        await backend.create_run(_run(input_data={"application": "api"}, user_id="u1"))

        run = await backend.get_run("run_1")
        assert run.workflow_id == "kubernetes-deployment"
        assert run.status == RunStatus.RUNNING
        assert run.input_data == {"application": "api"}
        assert run.user_id == "u1"

    @pytest.mark.asyncio
    async def test_get_missing(self, backend):
        assert await backend.get_run("nope") is None

    @pytest.mark.asyncio
    async def test_duplicate_run_rejected(self, backend):
        await backend.create_run(_run())
        with pytest.raises(ValueError, match="already exists"):
            await backend.create_run(_run())

    @pytest.mark.asyncio
    async def test_update_status_terminal_sets_completed_at(self, backend):
        await backend.create_run(_run())
        await backend.update_run_status("run_1", RunStatus.COMPLETED, result={"status": "deployed"})

        run = await backend.get_run("run_1")
        assert run.status == RunStatus.COMPLETED
        assert run.result == {"status": "deployed"}
        assert run.completed_at is not None

    @pytest.mark.asyncio
    async def test_update_status_error(self, backend):
        await backend.create_run(_run())
        await backend.update_run_status("run_1", RunStatus.FAILED, error="boom")
        assert (await backend.get_run("run_1")).error == "boom"

    @pytest.mark.asyncio
    async def test_suspension_round_trip(self, backend):
        await backend.create_run(_run())
        suspension = SuspensionState(
            step_id="deploy-application",
            step_index=1,
            reason="Deployment to critical namespace requires approval",
            step_input={"namespace": "production"},
            suspend_data={"namespace": "production"},
        )
        await backend.update_run_suspension("run_1", suspension)

        stored = (await backend.get_run("run_1")).suspension
        assert stored.step_id == "deploy-application"
        assert stored.step_index == 1
        assert stored.step_input == {"namespace": "production"}

        await backend.update_run_suspension("run_1", None)
        assert (await backend.get_run("run_1")).suspension is None

    @pytest.mark.asyncio
    async def test_list_runs_filters_and_orders(self, backend):
        base = datetime(2026, 1, 1, tzinfo=UTC)
        await backend.create_run(_run("run_a", created_at=base))
        await backend.create_run(_run("run_b", created_at=base + timedelta(minutes=1), status=RunStatus.SUSPENDED))
        await backend.create_run(_run("run_c", workflow_id="other", created_at=base + timedelta(minutes=2)))

        assert [r.run_id for r in await backend.list_runs()] == ["run_c", "run_b", "run_a"]
        assert [r.run_id for r in await backend.list_runs(workflow_id="kubernetes-deployment")] == [
            "run_b",
            "run_a",
        ]
        assert [r.run_id for r in await backend.list_runs(status=RunStatus.SUSPENDED)] == ["run_b"]
        assert [r.run_id for r in await backend.list_runs(limit=1, offset=1)] == ["run_b"]


class TestEvents:
    @pytest.mark.asyncio
    async def test_sequences_start_at_zero_per_run(self, backend):
        await backend.create_run(_run("run_1"))
        await backend.create_run(_run("run_2"))

        first = create_workflow_started_event("run_1", "kubernetes-deployment", {})
        second = create_step_started_event("run_1", "validate-prerequisites", 0)
        other = create_workflow_started_event("run_2", "kubernetes-deployment", {})
        for event in (first, second, other):
            await backend.record_event(event)

        assert (first.sequence, second.sequence, other.sequence) == (0, 1, 0)

        events = await backend.get_events("run_1")
        assert [e.type for e in events] == [EventType.WORKFLOW_STARTED, EventType.STEP_STARTED]
        assert events[1].data["step_id"] == "validate-prerequisites"

    @pytest.mark.asyncio
    async def test_filter_and_latest(self, backend):
        await backend.create_run(_run())
        await backend.record_event(create_workflow_started_event("run_1", "kubernetes-deployment", {}))
        await backend.record_event(
            create_workflow_suspended_event("run_1", "deploy-application", "approval", {"namespace": "production"})
        )

        suspended = await backend.get_events("run_1", ["workflow.suspended"])
        assert len(suspended) == 1
        assert suspended[0].data["suspend_data"] == {"namespace": "production"}

        latest = await backend.get_latest_event("run_1")
        assert latest.type == EventType.WORKFLOW_SUSPENDED
        assert await backend.get_latest_event("run_1", "workflow.completed") is None


class TestConversations:
    @pytest.mark.asyncio
    async def test_create_get_delete(self, backend):
        await backend.create_conversation(
            Conversation(conversation_id="c1", agent_id="kubernetes-agent", user_id="u1", title="pods")
        )

        conversation = await backend.get_conversation("c1")
        assert conversation.agent_id == "kubernetes-agent"
        assert conversation.title == "pods"

        with pytest.raises(ValueError):
            await backend.create_conversation(Conversation(conversation_id="c1", agent_id="x"))

        await backend.delete_conversation("c1")
        assert await backend.get_conversation("c1") is None

    @pytest.mark.asyncio
    async def test_list_filters(self, backend):
        await backend.create_conversation(Conversation(conversation_id="c1", agent_id="kubernetes-agent", user_id="u1"))
        await backend.create_conversation(Conversation(conversation_id="c2", agent_id="devops-assistant", user_id="u1"))
        await backend.create_conversation(Conversation(conversation_id="c3", agent_id="kubernetes-agent", user_id="u2"))

        by_agent = await backend.list_conversations(agent_id="kubernetes-agent")
        assert {c.conversation_id for c in by_agent} == {"c1", "c3"}

        by_user_and_agent = await backend.list_conversations(user_id="u1", agent_id="kubernetes-agent")
        assert [c.conversation_id for c in by_user_and_agent] == ["c1"]

    @pytest.mark.asyncio
    async def test_messages_sequence_and_window(self, backend):
        await backend.create_conversation(Conversation(conversation_id="c1", agent_id="a"))
        await backend.add_messages(
            "c1",
            [
                StoredMessage(conversation_id="c1", role="human", content={"type": "human", "n": i})
                for i in range(3)
            ],
        )
        await backend.add_messages(
            "c1", [StoredMessage(conversation_id="c1", role="ai", content={"type": "ai", "n": 3})]
        )

        messages = await backend.get_messages("c1")
        assert [m.sequence for m in messages] == [0, 1, 2, 3]
        assert messages[3].role == "ai"

        window = await backend.get_messages("c1", limit=2)
        assert [m.content["n"] for m in window] == [2, 3]

        assert await backend.get_messages("c1", limit=0) == []
        assert await backend.get_messages("missing") == []


@pytest.mark.asyncio
async def test_health_check(backend):
    assert await backend.health_check() is True
