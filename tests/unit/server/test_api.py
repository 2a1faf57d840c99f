"""Tests for the HTTP API."""

import httpx
import pytest
import pytest_asyncio
from langchain_core.messages import AIMessage

from kubeops.config import Settings
from kubeops.platform import build_platform
from kubeops.server import create_app
from kubeops.storage.memory import InMemoryStorageBackend

DEPLOYMENT = {"application": "checkout", "namespace": "staging", "image": "checkout:2.1.0"}


@pytest.fixture
def platform(make_model):
    model = make_model(
        [
            AIMessage(content="Hello from the cluster"),
            AIMessage(content="Still here"),
        ]
    )
    return build_platform(
        settings=Settings(_env_file=None),
        model=model,
        storage=InMemoryStorageBackend(),
    )


@pytest_asyncio.fixture
async def client(platform):
    app = create_app(platform)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "ok"
        assert data["storage"] == "in-memory"
        assert data["storage_healthy"] is True
        assert data["agents"] == 2
        assert data["workflows"] == 1


class TestAgents:
    @pytest.mark.asyncio
    async def test_list_agents(self, client):
        response = await client.get("/agents")

        body = response.json()
        assert body["success"] is True
        agents = {a["id"]: a for a in body["data"]}
        assert set(agents) == {"kubernetes-agent", "devops-assistant"}
        tool_names = {t["name"] for t in agents["kubernetes-agent"]["tools"]}
        assert tool_names == {"kubectl", "helm", "flux", "debug"}
        assert agents["devops-assistant"]["tools"] == []
        assert agents["kubernetes-agent"]["model"] == "mock-model"

    @pytest.mark.asyncio
    async def test_get_unknown_agent(self, client):
        response = await client.get("/agents/terraform-agent")

        assert response.status_code == 404
        body = response.json()
        assert body["success"] is False
        assert body["error"]["type"] == "AgentNotFoundError"

    @pytest.mark.asyncio
    async def test_generate_text(self, client):
        response = await client.post(
            "/agents/devops-assistant/text",
            json={"input": "hi", "options": {"userId": "alice", "conversationId": "conv-1"}},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["text"] == "Hello from the cluster"
        assert data["agent_id"] == "devops-assistant"
        assert data["conversation_id"] == "conv-1"
        assert data["finish_reason"] == "stop"
        assert data["tool_calls_made"] == 0

    @pytest.mark.asyncio
    async def test_generate_text_requires_input(self, client):
        response = await client.post("/agents/devops-assistant/text", json={"input": ""})
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_conversations(self, client):
        await client.post(
            "/agents/devops-assistant/text",
            json={"input": "hi", "options": {"userId": "alice", "conversationId": "conv-1"}},
        )

        response = await client.get("/agents/devops-assistant/conversations")

        data = response.json()["data"]
        assert data["count"] == 1
        assert data["items"][0]["conversation_id"] == "conv-1"
        assert data["items"][0]["user_id"] == "alice"

        response = await client.get(
            "/agents/devops-assistant/conversations", params={"user_id": "bob"}
        )
        assert response.json()["data"]["count"] == 0


class TestWorkflows:
    @pytest.mark.asyncio
    async def test_list_workflows(self, client):
        response = await client.get("/workflows")

        workflows = response.json()["data"]
        assert [w["id"] for w in workflows] == ["kubernetes-deployment"]
        assert [s["id"] for s in workflows[0]["steps"]] == [
            "validate-prerequisites",
            "deploy-application",
            "verify-deployment",
        ]

    @pytest.mark.asyncio
    async def test_unknown_workflow(self, client):
        response = await client.get("/workflows/blue-green")
        assert response.status_code == 404
        assert response.json()["error"]["type"] == "WorkflowNotFoundError"

    @pytest.mark.asyncio
    async def test_execute_completes(self, client):
        response = await client.post(
            "/workflows/kubernetes-deployment/execute", json={"input": DEPLOYMENT}
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["result"]["status"] == "deployed"
        assert data["result"]["deployment_name"] == "checkout-deployment"
        assert data["result"]["endpoints"] == [
            "http://checkout.staging.svc.cluster.local"
        ]

    @pytest.mark.asyncio
    async def test_execute_invalid_input(self, client):
        response = await client.post(
            "/workflows/kubernetes-deployment/execute",
            json={"input": {"application": "checkout"}},
        )

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["type"] == "InvalidWorkflowInputError"
        missing = {tuple(e["loc"]) for e in error["details"]}
        assert ("namespace",) in missing
        assert ("image",) in missing

    @pytest.mark.asyncio
    async def test_suspend_and_resume(self, client):
        response = await client.post(
            "/workflows/kubernetes-deployment/execute",
            json={"input": {**DEPLOYMENT, "namespace": "production", "replicas": 2}},
        )
        data = response.json()["data"]
        assert data["status"] == "suspended"
        assert data["suspension"]["step_id"] == "deploy-application"
        execution_id = data["execution_id"]

        state = (
            await client.get(
                f"/workflows/kubernetes-deployment/executions/{execution_id}/state"
            )
        ).json()["data"]
        assert state["status"] == "suspended"
        assert state["input"]["namespace"] == "production"

        response = await client.post(
            f"/workflows/kubernetes-deployment/executions/{execution_id}/resume",
            json={"resumeData": {"approved": True, "modifiedReplicas": 5}},
        )
        data = response.json()["data"]
        assert data["status"] == "completed"
        assert data["result"]["status"] == "deployed"

        events = (
            await client.get(
                f"/workflows/kubernetes-deployment/executions/{execution_id}/events"
            )
        ).json()["data"]
        types = [e["type"] for e in events["items"]]
        assert types[0] == "workflow.started"
        assert "workflow.suspended" in types
        assert "workflow.resumed" in types
        assert types[-1] == "workflow.completed"
        assert [e["sequence"] for e in events["items"]] == list(range(events["count"]))

    @pytest.mark.asyncio
    async def test_resume_rejected(self, client):
        response = await client.post(
            "/workflows/kubernetes-deployment/execute",
            json={"input": {**DEPLOYMENT, "namespace": "kube-system"}},
        )
        execution_id = response.json()["data"]["execution_id"]

        response = await client.post(
            f"/workflows/kubernetes-deployment/executions/{execution_id}/resume",
            json={"resumeData": {"approved": False}},
        )

        data = response.json()["data"]
        assert data["status"] == "failed"
        assert data["error"] == "Deployment not approved"

    @pytest.mark.asyncio
    async def test_resume_invalid_data(self, client):
        response = await client.post(
            "/workflows/kubernetes-deployment/execute",
            json={"input": {**DEPLOYMENT, "namespace": "production"}},
        )
        execution_id = response.json()["data"]["execution_id"]

        response = await client.post(
            f"/workflows/kubernetes-deployment/executions/{execution_id}/resume",
            json={"resumeData": {"modifiedReplicas": 3}},
        )

        assert response.status_code == 422
        assert response.json()["error"]["type"] == "InvalidResumeDataError"

    @pytest.mark.asyncio
    async def test_resume_completed_run(self, client):
        response = await client.post(
            "/workflows/kubernetes-deployment/execute", json={"input": DEPLOYMENT}
        )
        execution_id = response.json()["data"]["execution_id"]

        response = await client.post(
            f"/workflows/kubernetes-deployment/executions/{execution_id}/resume",
            json={"resumeData": {"approved": True}},
        )

        assert response.status_code == 409
        assert response.json()["error"]["type"] == "WorkflowNotSuspendedError"

    @pytest.mark.asyncio
    async def test_cancel(self, client):
        response = await client.post(
            "/workflows/kubernetes-deployment/execute",
            json={"input": {**DEPLOYMENT, "namespace": "flux-system"}},
        )
        execution_id = response.json()["data"]["execution_id"]

        response = await client.post(
            f"/workflows/kubernetes-deployment/executions/{execution_id}/cancel",
            json={"reason": "change freeze"},
        )
        assert response.json()["data"]["status"] == "cancelled"

        response = await client.post(
            f"/workflows/kubernetes-deployment/executions/{execution_id}/cancel"
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_unknown_execution(self, client):
        response = await client.get(
            "/workflows/kubernetes-deployment/executions/run_missing/state"
        )
        assert response.status_code == 404
        assert response.json()["error"]["type"] == "RunNotFoundError"

    @pytest.mark.asyncio
    async def test_list_executions(self, client):
        await client.post("/workflows/kubernetes-deployment/execute", json={"input": DEPLOYMENT})
        await client.post(
            "/workflows/kubernetes-deployment/execute",
            json={"input": {**DEPLOYMENT, "namespace": "production"}},
        )

        response = await client.get("/workflows/kubernetes-deployment/executions")
        assert response.json()["data"]["count"] == 2

        response = await client.get(
            "/workflows/kubernetes-deployment/executions", params={"status": "suspended"}
        )
        items = response.json()["data"]["items"]
        assert len(items) == 1
        assert items[0]["status"] == "suspended"
        assert items[0]["duration_seconds"] is None
