"""
Kubernetes operations tools: kubectl, helm, flux and debug.

These are placeholders. Each returns a static description of what it would
have done; none of them talk to a cluster.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel, Field

from kubeops_agents.tools.decorator import tool


class KubectlInput(BaseModel):
    command: str = Field(description="The kubectl command to execute")
    namespace: Optional[str] = Field(default=None, description="Target namespace")


class HelmInput(BaseModel):
    action: Literal["list", "install", "upgrade", "rollback", "uninstall"]
    release: Optional[str] = None
    chart: Optional[str] = None
    namespace: Optional[str] = None


class FluxInput(BaseModel):
    action: Literal["reconcile", "suspend", "resume", "get", "logs"]
    resource: str
    name: Optional[str] = None
    namespace: Optional[str] = None


class DebugInput(BaseModel):
    resource: str = Field(description="Resource to debug (pod/service/deployment)")
    name: str = Field(description="Resource name")
    namespace: str = Field(description="Namespace")
    action: Literal["logs", "describe", "exec", "port-forward"]


@tool(
    name="kubectl",
    title="Kubectl Command",
    description="Execute kubectl commands to manage Kubernetes resources",
    args_schema=KubectlInput,
)
async def kubectl_tool(command: str, namespace: Optional[str] = None) -> dict[str, Any]:
    namespace_flag = f"-n {namespace}" if namespace else ""
    return {
        "success": True,
        "output": f"Executed: kubectl {namespace_flag} {command}",
        "note": "This tool requires Kubernetes API integration",
    }


@tool(
    name="helm",
    title="Helm Operations",
    description="Manage Helm charts and releases",
    args_schema=HelmInput,
)
async def helm_tool(
    action: str,
    release: Optional[str] = None,
    chart: Optional[str] = None,
    namespace: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "success": True,
        "action": action,
        "release": release,
        "chart": chart,
        "namespace": namespace,
        "note": "This tool requires Helm integration",
    }


@tool(
    name="flux",
    title="Flux GitOps",
    description="Manage Flux reconciliation and GitOps workflows",
    args_schema=FluxInput,
)
async def flux_tool(
    action: str,
    resource: str,
    name: Optional[str] = None,
    namespace: Optional[str] = None,
) -> dict[str, Any]:
    return {
        "success": True,
        "action": action,
        "resource": resource,
        "name": name,
        "namespace": namespace,
        "note": "This tool requires Flux integration",
    }


@tool(
    name="debug",
    title="Debug Kubernetes",
    description="Debug pods, services, and other Kubernetes resources",
    args_schema=DebugInput,
)
async def debug_tool(resource: str, name: str, namespace: str, action: str) -> dict[str, Any]:
    return {
        "success": True,
        "debug_info": {
            "resource": resource,
            "name": name,
            "namespace": namespace,
            "action": action,
        },
        "note": "This tool requires Kubernetes API integration",
    }


KUBERNETES_TOOLS = [kubectl_tool, helm_tool, flux_tool, debug_tool]
