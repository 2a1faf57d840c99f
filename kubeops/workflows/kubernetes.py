"""
Kubernetes deployment workflow.

Three steps: validate prerequisites, deploy (suspending for approval when the
target namespace is critical) and verify. Validation, deployment and health
checks are placeholders; nothing here talks to a cluster.
"""

from datetime import UTC, datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from kubeops.exceptions import DeploymentNotApprovedError
from kubeops.workflow.chain import WorkflowChain, create_workflow_chain
from kubeops.workflow.context import StepContext

CRITICAL_NAMESPACES = ("production", "kube-system", "flux-system")


class _Schema(BaseModel):
    # Accept both snake_case and camelCase keys (healthCheckUrl, modifiedReplicas)
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DeploymentRequest(_Schema):
    """Workflow input."""

    application: str
    namespace: str
    image: str
    replicas: int = 1
    health_check_url: Optional[str] = None


class DeploymentApproval(_Schema):
    """Resume data for a deployment suspended for approval."""

    approved: bool
    modified_replicas: Optional[int] = None


class DeploymentResult(_Schema):
    """Workflow result."""

    status: Literal["deployed", "rolled_back", "failed"]
    deployment_name: str
    version: str
    endpoints: List[str] = Field(default_factory=list)


def _utc_timestamp() -> str:
    return datetime.now(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def validate_prerequisites(ctx: StepContext) -> Dict[str, Any]:
    data = ctx.data
    ctx.logger.info(
        "Validating Kubernetes prerequisites",
        namespace=data["namespace"],
        application=data["application"],
    )

    # Namespace existence, existing deployments and image availability are not checked yet.

    return {
        **data,
        "validated": True,
        "deployment_name": f"{data['application']}-deployment",
    }


async def deploy_application(ctx: StepContext) -> Dict[str, Any]:
    data = ctx.data
    approval = ctx.resume_data

    if data["namespace"] in CRITICAL_NAMESPACES and approval is None:
        await ctx.suspend(
            "Deployment to critical namespace requires approval",
            {
                "namespace": data["namespace"],
                "application": data["application"],
                "image": data["image"],
            },
        )

    if approval is not None and not approval.get("approved"):
        raise DeploymentNotApprovedError("Deployment not approved")

    final_replicas = (approval or {}).get("modified_replicas") or data["replicas"]

    ctx.logger.info(
        "Deploying application",
        deployment_name=data["deployment_name"],
        replicas=final_replicas,
    )

    return {
        **data,
        "deployed": True,
        "actual_replicas": final_replicas,
        "version": _utc_timestamp(),
    }


async def verify_deployment(ctx: StepContext) -> Dict[str, Any]:
    data = ctx.data
    ctx.logger.info(
        "Verifying deployment health",
        deployment_name=data["deployment_name"],
        health_check_url=data.get("health_check_url"),
    )

    return {
        "status": "deployed",
        "deployment_name": data["deployment_name"],
        "version": data["version"],
        "endpoints": [f"http://{data['application']}.{data['namespace']}.svc.cluster.local"],
    }


def create_kubernetes_workflow() -> WorkflowChain:
    """Build the `kubernetes-deployment` workflow chain."""
    return (
        create_workflow_chain(
            id="kubernetes-deployment",
            name="Kubernetes Deployment Workflow",
            purpose="Deploy and verify applications in Kubernetes with rollback capability",
            input_schema=DeploymentRequest,
            result_schema=DeploymentResult,
        )
        .and_then(id="validate-prerequisites", execute=validate_prerequisites)
        .and_then(
            id="deploy-application",
            execute=deploy_application,
            resume_schema=DeploymentApproval,
        )
        .and_then(id="verify-deployment", execute=verify_deployment)
    )


kubernetes_workflow = create_kubernetes_workflow()
