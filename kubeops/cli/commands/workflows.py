"""Workflow commands."""

import json
from typing import Optional

import click

from kubeops.cli.output.formatters import (
    console,
    format_json,
    format_key_value,
    format_plain,
    format_table,
    print_error,
    print_info,
    print_success,
    print_warning,
)
from kubeops.cli.utils.async_helpers import async_command
from kubeops.cli.utils.platform import parse_key_values, platform_session
from kubeops.exceptions import KubeOpsError
from kubeops.workflow.executor import WorkflowExecutionResult, start_workflow


def render_execution(result: WorkflowExecutionResult, output: str) -> None:
    """Print a start/resume/cancel outcome in the selected output format."""
    if output == "json":
        format_json(result.to_dict())
        return
    if output == "plain":
        format_plain([f"{result.execution_id} {result.status}"])
        return

    if result.status == "completed":
        print_success(f"Workflow completed: {result.execution_id}")
        console.print(f"[dim]Result:[/dim] {json.dumps(result.result, indent=2, default=str)}")
    elif result.status == "suspended":
        suspension = result.suspension or {}
        print_warning(f"Workflow suspended at step '{suspension.get('step_id')}'")
        format_key_value(
            {
                "Execution ID": result.execution_id,
                "Reason": suspension.get("reason"),
                "Suspend data": suspension.get("suspend_data"),
            }
        )
        print_info(
            f"Resume with: kubeops runs resume {result.execution_id} --arg approved=true"
        )
    elif result.status == "failed":
        print_error(f"Workflow failed: {result.error}")
    else:
        print_info(f"Workflow {result.status}: {result.execution_id}")


@click.group(name="workflows")
def workflows() -> None:
    """List and run workflows."""
    pass


@workflows.command(name="list")
@click.pass_context
@async_command
async def list_workflows_cmd(ctx: click.Context) -> None:
    """
    List registered workflows.

    Examples:

        kubeops workflows list
    """
    output = ctx.obj["output"]

    async with platform_session() as platform:
        chains = platform.list_workflows()

        if output == "json":
            format_json([chain.to_dict() for chain in chains])
        elif output == "plain":
            format_plain([chain.id for chain in chains])
        else:
            data = [
                {
                    "ID": chain.id,
                    "Name": chain.name,
                    "Steps": " → ".join(chain.step_ids),
                }
                for chain in chains
            ]
            format_table(data, ["ID", "Name", "Steps"], title="Workflows")


@workflows.command(name="run")
@click.argument("workflow_id")
@click.option(
    "--arg",
    multiple=True,
    help="Workflow input field in key=value format (can be repeated)",
)
@click.option(
    "--args-json",
    help="Workflow input as JSON object",
)
@click.option("--user-id", help="User starting the run")
@click.pass_context
@async_command
async def run_workflow(
    ctx: click.Context,
    workflow_id: str,
    arg: tuple,
    args_json: Optional[str],
    user_id: Optional[str],
) -> None:
    """
    Execute a workflow until it completes, fails or suspends.

    Args:
        WORKFLOW_ID: Workflow identifier

    Examples:

        kubeops workflows run kubernetes-deployment \\
            --arg application=api --arg namespace=staging --arg image=api:1.2.0

        kubeops workflows run kubernetes-deployment \\
            --args-json '{"application": "api", "namespace": "production", "image": "api:2"}'
    """
    output = ctx.obj["output"]
    input_data = parse_key_values(arg, args_json, "--args-json")

    async with platform_session() as platform:
        try:
            chain = platform.get_workflow(workflow_id)
            if output == "table":
                print_info(f"Starting workflow: {chain.name}")
            result = await start_workflow(
                chain, input_data, storage=platform.storage, user_id=user_id
            )
        except KubeOpsError as e:
            print_error(f"Failed to start workflow: {e}")
            if ctx.obj["verbose"]:
                raise
            raise click.Abort()

        render_execution(result, output)
        if result.status == "failed":
            ctx.exit(1)
