"""Tests for workflow chains and the step executor."""

import pytest
from pydantic import BaseModel

from kubeops.config import configure
from kubeops.exceptions import (
    InvalidResumeDataError,
    InvalidRunStateError,
    InvalidWorkflowInputError,
    RunNotFoundError,
    WorkflowNotSuspendedError,
)
from kubeops.storage.schemas import RunStatus
from kubeops.workflow import (
    StepContext,
    cancel_workflow,
    create_workflow_chain,
    get_context,
    get_workflow_run,
    has_context,
    resume_workflow,
    start_workflow,
)


class CountInput(BaseModel):
    value: int


class CountResult(BaseModel):
    value: int


class Approval(BaseModel):
    ok: bool


def _counter_chain():
    def add_one(ctx: StepContext) -> dict:
        return {"value": ctx.data["value"] + 1}

    async def double(ctx: StepContext) -> dict:
        return {"value": ctx.data["value"] * 2}

    return (
        create_workflow_chain(
            id="counter",
            name="Counter",
            purpose="Arithmetic",
            input_schema=CountInput,
            result_schema=CountResult,
        )
        .and_then(id="add-one", execute=add_one)
        .and_then(id="double", execute=double)
    )


def _gated_chain(calls=None):
    async def gate(ctx: StepContext) -> dict:
        if calls is not None:
            calls.append(ctx.resume_data)
        if ctx.resume_data is None:
            await ctx.suspend("needs approval", {"value": ctx.data["value"]})
        if not ctx.resume_data["ok"]:
            raise RuntimeError("rejected")
        return {"value": ctx.data["value"] + 100}

    return (
        create_workflow_chain(
            id="gated",
            name="Gated",
            purpose="Approval gate",
            input_schema=CountInput,
            result_schema=CountResult,
        )
        .and_then(id="prepare", execute=lambda ctx: {"value": ctx.data["value"] * 10})
        .and_then(id="gate", execute=gate, resume_schema=Approval)
    )


class TestWorkflowChain:
    def test_and_then_appends_in_order(self):
        chain = _counter_chain()
        assert chain.step_ids == ["add-one", "double"]
        assert chain.get_step("double").id == "double"
        assert chain.get_step("missing") is None

    def test_duplicate_step_id_rejected(self):
        chain = _counter_chain()
        with pytest.raises(ValueError, match="already exists"):
            chain.and_then(id="double", execute=lambda ctx: ctx.data)

    def test_to_dict(self):
        data = _gated_chain().to_dict()
        assert data["id"] == "gated"
        assert data["purpose"] == "Approval gate"
        assert data["steps"][0] == {
            "id": "prepare",
            "name": "prepare",
            "resumable": False,
            "resume_schema": None,
        }
        assert data["steps"][1]["resumable"] is True
        assert data["input_schema"]["properties"]["value"]["type"] == "integer"


class TestStartWorkflow:
    @pytest.mark.asyncio
    async def test_runs_steps_in_order(self, storage):
        result = await start_workflow(_counter_chain(), {"value": 4}, storage=storage)

        assert result.status == "completed"
        assert result.result == {"value": 10}
        assert result.execution_id.startswith("run_")

        run = await storage.get_run(result.execution_id)
        assert run.status == RunStatus.COMPLETED
        assert run.completed_at is not None

    @pytest.mark.asyncio
    async def test_records_events(self, storage):
        result = await start_workflow(_counter_chain(), {"value": 1}, storage=storage)

        events = await storage.get_events(result.execution_id)
        assert [e.type.value for e in events] == [
            "workflow.started",
            "step.started",
            "step.completed",
            "step.started",
            "step.completed",
            "workflow.completed",
        ]
        assert [e.sequence for e in events] == list(range(6))

    @pytest.mark.asyncio
    async def test_invalid_input(self, storage):
        with pytest.raises(InvalidWorkflowInputError) as exc_info:
            await start_workflow(_counter_chain(), {"value": "many"}, storage=storage)

        assert exc_info.value.errors[0]["loc"] == ("value",)
        assert len(storage) == 0

    @pytest.mark.asyncio
    async def test_step_error_fails_run(self, storage):
        def explode(ctx):
            raise RuntimeError("kaboom")

        chain = _counter_chain().and_then(id="explode", execute=explode)
        result = await start_workflow(chain, {"value": 1}, storage=storage)

        assert result.status == "failed"
        assert result.error == "kaboom"

        failed = await storage.get_latest_event(result.execution_id, "workflow.failed")
        assert failed.data["error_type"] == "RuntimeError"
        assert failed.data["step_id"] == "explode"

    @pytest.mark.asyncio
    async def test_result_schema_mismatch_fails_run(self, storage):
        chain = _counter_chain().and_then(id="wrong", execute=lambda ctx: {"other": 1})
        result = await start_workflow(chain, {"value": 1}, storage=storage)
        assert result.status == "failed"

    @pytest.mark.asyncio
    async def test_step_context_is_available(self, storage):
        seen = {}

        def inspect_context(ctx):
            seen["has"] = has_context()
            seen["ctx"] = get_context()
            return ctx.data

        chain = (
            create_workflow_chain(
                id="ctx", name="Ctx", purpose="", input_schema=CountInput, result_schema=CountResult
            )
            .and_then(id="inspect", execute=inspect_context)
        )
        result = await start_workflow(chain, {"value": 1}, storage=storage)

        assert seen["has"] is True
        assert seen["ctx"].step_id == "inspect"
        assert seen["ctx"].run_id == result.execution_id
        assert has_context() is False

    @pytest.mark.asyncio
    async def test_uses_configured_storage(self, storage):
        configure(storage=storage)
        result = await _counter_chain().run({"value": 0})
        assert (await get_workflow_run(result.execution_id)).status == RunStatus.COMPLETED


class TestSuspendResume:
    @pytest.mark.asyncio
    async def test_suspends_with_checkpoint(self, storage):
        result = await start_workflow(_gated_chain(), {"value": 2}, storage=storage)

        assert result.status == "suspended"
        assert result.suspension["step_id"] == "gate"
        assert result.suspension["reason"] == "needs approval"
        assert result.suspension["suspend_data"] == {"value": 20}

        run = await storage.get_run(result.execution_id)
        assert run.suspension.step_index == 1
        assert run.suspension.step_input == {"value": 20}

    @pytest.mark.asyncio
    async def test_resume_reruns_suspended_step(self, storage):
        calls = []
        chain = _gated_chain(calls)
        started = await start_workflow(chain, {"value": 2}, storage=storage)

        resumed = await resume_workflow(chain, started.execution_id, {"ok": True}, storage=storage)

        assert resumed.status == "completed"
        assert resumed.result == {"value": 120}
        assert resumed.suspension is None
        assert calls == [None, {"ok": True}]

        run = await storage.get_run(started.execution_id)
        assert run.suspension is None

        types = [e.type.value for e in await storage.get_events(started.execution_id)]
        assert "workflow.suspended" in types
        assert "workflow.resumed" in types
        assert types[-1] == "workflow.completed"

    @pytest.mark.asyncio
    async def test_resume_validates_data(self, storage):
        chain = _gated_chain()
        started = await start_workflow(chain, {"value": 2}, storage=storage)

        with pytest.raises(InvalidResumeDataError):
            await resume_workflow(chain, started.execution_id, {"ok": "maybe"}, storage=storage)

        run = await storage.get_run(started.execution_id)
        assert run.status == RunStatus.SUSPENDED

    @pytest.mark.asyncio
    async def test_rejection_fails_run(self, storage):
        chain = _gated_chain()
        started = await start_workflow(chain, {"value": 2}, storage=storage)

        result = await resume_workflow(chain, started.execution_id, {"ok": False}, storage=storage)

        assert result.status == "failed"
        assert result.error == "rejected"

    @pytest.mark.asyncio
    async def test_resume_requires_suspended_run(self, storage):
        chain = _counter_chain()
        started = await start_workflow(chain, {"value": 1}, storage=storage)

        with pytest.raises(WorkflowNotSuspendedError):
            await resume_workflow(chain, started.execution_id, {}, storage=storage)

    @pytest.mark.asyncio
    async def test_resume_unknown_run(self, storage):
        with pytest.raises(RunNotFoundError):
            await resume_workflow(_gated_chain(), "run_missing", {"ok": True}, storage=storage)


class TestCancel:
    @pytest.mark.asyncio
    async def test_cancel_suspended_run(self, storage):
        chain = _gated_chain()
        started = await start_workflow(chain, {"value": 2}, storage=storage)

        result = await cancel_workflow(started.execution_id, storage=storage, reason="no longer needed")

        assert result.status == "cancelled"
        cancelled = await storage.get_latest_event(started.execution_id, "workflow.cancelled")
        assert cancelled.data["reason"] == "no longer needed"

    @pytest.mark.asyncio
    async def test_cancelled_run_cannot_resume(self, storage):
        chain = _gated_chain()
        started = await start_workflow(chain, {"value": 2}, storage=storage)
        await cancel_workflow(started.execution_id, storage=storage)

        with pytest.raises(WorkflowNotSuspendedError):
            await resume_workflow(chain, started.execution_id, {"ok": True}, storage=storage)

    @pytest.mark.asyncio
    async def test_cancel_finished_run_rejected(self, storage):
        started = await start_workflow(_counter_chain(), {"value": 1}, storage=storage)

        with pytest.raises(InvalidRunStateError):
            await cancel_workflow(started.execution_id, storage=storage)

    @pytest.mark.asyncio
    async def test_cancel_between_steps_stops_run(self, storage):
        async def cancel_self(ctx):
            await cancel_workflow(ctx.run_id, storage=storage)
            return ctx.data

        chain = (
            create_workflow_chain(
                id="self-cancel", name="Self cancel", purpose="", input_schema=CountInput, result_schema=CountResult
            )
            .and_then(id="cancel", execute=cancel_self)
            .and_then(id="never", execute=lambda ctx: pytest.fail("step ran after cancel"))
        )

        result = await start_workflow(chain, {"value": 1}, storage=storage)

        assert result.status == "cancelled"
        types = [e.type.value for e in await storage.get_events(result.execution_id)]
        assert "step.started" in types
        assert types.count("step.started") == 1

    @pytest.mark.asyncio
    async def test_cancel_during_step_wins_over_suspend(self, storage):
        async def cancel_then_suspend(ctx):
            await cancel_workflow(ctx.run_id, storage=storage)
            await ctx.suspend("approval")

        chain = create_workflow_chain(
            id="cancel-suspend", name="Cancel suspend", purpose="", input_schema=CountInput, result_schema=CountResult
        ).and_then(id="gate", execute=cancel_then_suspend)

        result = await start_workflow(chain, {"value": 1}, storage=storage)

        assert result.status == "cancelled"
        run = await get_workflow_run(result.execution_id, storage=storage)
        assert run.status == RunStatus.CANCELLED
        assert run.suspension is None
        types = [e.type.value for e in await storage.get_events(result.execution_id)]
        assert "workflow.suspended" not in types

    @pytest.mark.asyncio
    async def test_cancel_during_step_wins_over_failure(self, storage):
        async def cancel_then_raise(ctx):
            await cancel_workflow(ctx.run_id, storage=storage)
            raise RuntimeError("kubectl exited 1")

        chain = create_workflow_chain(
            id="cancel-fail", name="Cancel fail", purpose="", input_schema=CountInput, result_schema=CountResult
        ).and_then(id="deploy", execute=cancel_then_raise)

        result = await start_workflow(chain, {"value": 1}, storage=storage)

        assert result.status == "cancelled"
        run = await get_workflow_run(result.execution_id, storage=storage)
        assert run.status == RunStatus.CANCELLED
        assert run.error is None
        types = [e.type.value for e in await storage.get_events(result.execution_id)]
        assert "workflow.failed" not in types
