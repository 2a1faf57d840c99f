"""Tests for kubeops_agents.tools: decorator, registry and the Kubernetes tools."""

import logging

import pytest

lc = pytest.importorskip("langchain_core")

from langchain_core.tools import BaseTool, StructuredTool  # noqa: E402

from kubeops_agents.tools import (  # noqa: E402
    KUBERNETES_TOOLS,
    ToolDefinition,
    ToolRegistry,
    ToolResult,
    debug_tool,
    flux_tool,
    get_global_registry,
    helm_tool,
    kubectl_tool,
    reset_global_registry,
    tool,
)


@pytest.fixture(autouse=True)
def _clean_global_registry():
    reset_global_registry()
    yield
    reset_global_registry()


def _make_sync_tool(*, register: bool = False) -> StructuredTool:
    @tool(register=register)
    def add(a: int, b: int) -> int:
        """Add two numbers."""
        return a + b

    return add


def _make_async_tool() -> StructuredTool:
    @tool
    async def multiply(a: int, b: int) -> int:
        """Multiply two numbers."""
        return a * b

    return multiply


class TestToolDecorator:
    def test_creates_structured_tool(self):
        t = _make_sync_tool()
        assert isinstance(t, StructuredTool)
        assert isinstance(t, BaseTool)

    def test_infers_name_and_description(self):
        t = _make_sync_tool()
        assert t.name == "add"
        assert "Add two numbers" in t.description

    def test_title_defaults_to_name(self):
        t = _make_sync_tool()
        assert t.metadata["title"] == "add"

    def test_explicit_name_title_description(self):
        @tool(name="custom", title="Custom Tool", description="Does custom things")
        def fn(x: int) -> int:
            return x

        assert fn.name == "custom"
        assert fn.metadata["title"] == "Custom Tool"
        assert fn.description == "Does custom things"

    def test_not_registered_by_default(self):
        _make_sync_tool()
        assert len(get_global_registry()) == 0

    def test_register_adds_to_global_registry(self):
        _make_sync_tool(register=True)
        assert "add" in get_global_registry()

    @pytest.mark.asyncio
    async def test_async_tool_invocation(self):
        t = _make_async_tool()
        assert await t.ainvoke({"a": 3, "b": 4}) == 12


class TestToolRegistry:
    def test_register_and_get(self):
        registry = ToolRegistry()
        t = _make_sync_tool()
        registry.register(t)
        assert registry.get("add") is t
        assert registry.get_names() == ["add"]
        assert len(registry) == 1

    def test_constructor_accepts_tools(self):
        registry = ToolRegistry(KUBERNETES_TOOLS)
        assert registry.get_names() == ["kubectl", "helm", "flux", "debug"]

    def test_duplicate_name_replaces_and_warns(self, caplog):
        registry = ToolRegistry()
        first = _make_sync_tool()
        second = _make_sync_tool()
        registry.register(first)
        with caplog.at_level(logging.WARNING):
            registry.register(second)
        assert registry.get("add") is second
        assert "Duplicate tool name 'add'" in caplog.text

    def test_unregister(self):
        registry = ToolRegistry([_make_sync_tool()])
        registry.unregister("add")
        registry.unregister("missing")
        assert len(registry) == 0

    def test_get_definitions(self):
        registry = ToolRegistry([kubectl_tool])
        (definition,) = registry.get_definitions()
        assert isinstance(definition, ToolDefinition)
        assert definition.name == "kubectl"
        assert definition.title == "Kubectl Command"
        assert definition.parameters["required"] == ["command"]
        assert set(definition.parameters["properties"]) == {"command", "namespace"}

    def test_definition_to_dict_falls_back_to_name_for_title(self):
        definition = ToolDefinition(name="t", description="d", parameters={})
        assert definition.to_dict()["title"] == "t"

    @pytest.mark.asyncio
    async def test_execute_success(self):
        registry = ToolRegistry([_make_sync_tool()])
        result = await registry.execute("add", {"a": 1, "b": 2}, "call_1")
        assert isinstance(result, ToolResult)
        assert result.result == 3
        assert result.tool_call_id == "call_1"
        assert result.is_error is False

    @pytest.mark.asyncio
    async def test_execute_unknown_tool_raises(self):
        with pytest.raises(KeyError):
            await ToolRegistry().execute("nope", {})

    @pytest.mark.asyncio
    async def test_execute_invalid_args_is_error_result(self):
        registry = ToolRegistry([helm_tool])
        result = await registry.execute("helm", {"action": "explode"})
        assert result.is_error is True
        assert result.error

    @pytest.mark.asyncio
    async def test_execute_tool_exception_is_error_result(self):
        @tool
        def boom(x: int) -> int:
            """Always fails."""
            raise ValueError("tool exploded")

        result = await ToolRegistry([boom]).execute("boom", {"x": 1})
        assert result.is_error is True
        assert "tool exploded" in result.error


class TestKubernetesTools:
    def test_tool_set(self):
        assert [t.name for t in KUBERNETES_TOOLS] == ["kubectl", "helm", "flux", "debug"]
        assert [t.metadata["title"] for t in KUBERNETES_TOOLS] == [
            "Kubectl Command",
            "Helm Operations",
            "Flux GitOps",
            "Debug Kubernetes",
        ]

    @pytest.mark.asyncio
    async def test_kubectl_with_namespace(self):
        result = await kubectl_tool.ainvoke({"command": "get pods", "namespace": "staging"})
        assert result == {
            "success": True,
            "output": "Executed: kubectl -n staging get pods",
            "note": "This tool requires Kubernetes API integration",
        }

    @pytest.mark.asyncio
    async def test_kubectl_without_namespace_keeps_spacing(self):
        result = await kubectl_tool.ainvoke({"command": "get nodes"})
        assert result["output"] == "Executed: kubectl  get nodes"

    @pytest.mark.asyncio
    async def test_helm_echoes_arguments(self):
        result = await helm_tool.ainvoke({"action": "install", "release": "api", "chart": "bitnami/nginx"})
        assert result == {
            "success": True,
            "action": "install",
            "release": "api",
            "chart": "bitnami/nginx",
            "namespace": None,
            "note": "This tool requires Helm integration",
        }

    @pytest.mark.asyncio
    async def test_flux_requires_resource(self):
        with pytest.raises(Exception):
            await flux_tool.ainvoke({"action": "reconcile"})

    @pytest.mark.asyncio
    async def test_flux_echoes_arguments(self):
        result = await flux_tool.ainvoke({"action": "reconcile", "resource": "kustomization", "name": "apps"})
        assert result["action"] == "reconcile"
        assert result["resource"] == "kustomization"
        assert result["name"] == "apps"
        assert result["note"] == "This tool requires Flux integration"

    @pytest.mark.asyncio
    async def test_debug_nests_debug_info(self):
        result = await debug_tool.ainvoke(
            {"resource": "pod", "name": "api-0", "namespace": "default", "action": "logs"}
        )
        assert result["success"] is True
        assert result["debug_info"] == {
            "resource": "pod",
            "name": "api-0",
            "namespace": "default",
            "action": "logs",
        }
        assert result["note"] == "This tool requires Kubernetes API integration"

    @pytest.mark.asyncio
    async def test_debug_rejects_unknown_action(self):
        with pytest.raises(Exception):
            await debug_tool.ainvoke(
                {"resource": "pod", "name": "api-0", "namespace": "default", "action": "delete"}
            )
