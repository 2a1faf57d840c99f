"""Workflow run management commands."""

from typing import Optional

import click

from kubeops.cli.commands.workflows import render_execution
from kubeops.cli.output.formatters import (
    console,
    format_event_type,
    format_json,
    format_key_value,
    format_plain,
    format_table,
    print_error,
    print_info,
)
from kubeops.cli.utils.async_helpers import async_command
from kubeops.cli.utils.platform import parse_key_values, platform_session
from kubeops.exceptions import KubeOpsError
from kubeops.storage.schemas import RunStatus, WorkflowRun
from kubeops.workflow.executor import cancel_workflow, get_workflow_run, resume_workflow


def _duration(run: WorkflowRun) -> str:
    if run.started_at and run.completed_at:
        return f"{(run.completed_at - run.started_at).total_seconds():.1f}s"
    return "-"


@click.group(name="runs")
def runs() -> None:
    """Manage workflow runs (list, status, logs, resume, cancel)."""
    pass


@runs.command(name="list")
@click.option("--workflow", help="Filter by workflow id")
@click.option(
    "--status",
    type=click.Choice([s.value for s in RunStatus], case_sensitive=False),
    help="Filter by run status",
)
@click.option(
    "--limit",
    type=int,
    default=20,
    help="Maximum number of runs to display (default: 20)",
)
@click.pass_context
@async_command
async def list_runs(
    ctx: click.Context,
    workflow: Optional[str],
    status: Optional[str],
    limit: int,
) -> None:
    """
    List workflow runs, most recent first.

    Examples:

        kubeops runs list

        kubeops runs list --status suspended
    """
    output = ctx.obj["output"]
    status_filter = RunStatus(status.lower()) if status else None

    async with platform_session() as platform:
        runs_list = await platform.storage.list_runs(
            workflow_id=workflow, status=status_filter, limit=limit
        )

        if output == "json":
            format_json(
                [
                    {
                        "run_id": run.run_id,
                        "workflow_id": run.workflow_id,
                        "status": run.status.value,
                        "created_at": run.created_at.isoformat(),
                        "duration": _duration(run),
                    }
                    for run in runs_list
                ]
            )
            return

        if not runs_list:
            print_info("No workflow runs found")
            return

        if output == "plain":
            format_plain([run.run_id for run in runs_list])
        else:
            data = [
                {
                    "Run ID": run.run_id,
                    "Workflow": run.workflow_id,
                    "Status": run.status.value,
                    "Created": run.created_at,
                    "Duration": _duration(run),
                }
                for run in runs_list
            ]
            format_table(
                data,
                ["Run ID", "Workflow", "Status", "Created", "Duration"],
                title="Workflow Runs",
            )


@runs.command(name="status")
@click.argument("run_id")
@click.pass_context
@async_command
async def run_status(ctx: click.Context, run_id: str) -> None:
    """
    Show workflow run status and details.

    Args:
        RUN_ID: Workflow run identifier
    """
    output = ctx.obj["output"]

    async with platform_session() as platform:
        try:
            run = await get_workflow_run(run_id, storage=platform.storage)
        except KubeOpsError as e:
            print_error(str(e))
            raise click.Abort()

        if output == "json":
            format_json(run.to_dict())
            return

        data = {
            "Run ID": run.run_id,
            "Workflow": run.workflow_id,
            "Status": run.status.value,
            "Created": run.created_at,
            "Started": run.started_at,
            "Completed": run.completed_at,
            "Duration": _duration(run),
            "Input": run.input_data,
        }
        if run.suspension:
            data["Suspended at"] = run.suspension.step_id
            data["Reason"] = run.suspension.reason
        if run.result is not None:
            data["Result"] = run.result
        if run.error:
            data["Error"] = run.error

        format_key_value(data, title=f"Workflow Run: {run_id}")


@runs.command(name="logs")
@click.argument("run_id")
@click.pass_context
@async_command
async def run_logs(ctx: click.Context, run_id: str) -> None:
    """
    Show a run's event log.

    Args:
        RUN_ID: Workflow run identifier
    """
    output = ctx.obj["output"]

    async with platform_session() as platform:
        try:
            await get_workflow_run(run_id, storage=platform.storage)
        except KubeOpsError as e:
            print_error(str(e))
            raise click.Abort()

        events = await platform.storage.get_events(run_id)

        if output == "json":
            format_json([event.to_dict() for event in events])
        elif output == "plain":
            format_plain([f"{event.sequence}: {event.type.value}" for event in events])
        else:
            console.print(f"\n[bold magenta]Event Log: {run_id}[/bold magenta]")
            for event in events:
                timestamp = event.timestamp.strftime("%H:%M:%S.%f")[:-3]
                indent = "  " if event.type.is_step_event else ""
                step = f" [step]{event.step_id}[/step]" if event.step_id else ""
                console.print(
                    f"{indent}[bold]{event.sequence}[/bold] {timestamp} "
                    f"{format_event_type(event.type.value)}{step}"
                )
                details = {k: v for k, v in event.data.items() if k != "step_id"}
                if details:
                    format_key_value(details)


@runs.command(name="resume")
@click.argument("run_id")
@click.option(
    "--arg",
    multiple=True,
    help="Resume field in key=value format (can be repeated)",
)
@click.option("--data-json", help="Resume data as JSON object")
@click.pass_context
@async_command
async def resume_run(
    ctx: click.Context,
    run_id: str,
    arg: tuple,
    data_json: Optional[str],
) -> None:
    """
    Resume a suspended run.

    Args:
        RUN_ID: Workflow run identifier

    Examples:

        kubeops runs resume run_abc123 --arg approved=true

        kubeops runs resume run_abc123 --data-json '{"approved": true, "modifiedReplicas": 2}'
    """
    output = ctx.obj["output"]
    resume_data = parse_key_values(arg, data_json, "--data-json")

    async with platform_session() as platform:
        try:
            run = await get_workflow_run(run_id, storage=platform.storage)
            chain = platform.get_workflow(run.workflow_id)
            result = await resume_workflow(chain, run_id, resume_data, storage=platform.storage)
        except KubeOpsError as e:
            print_error(f"Failed to resume run: {e}")
            if ctx.obj["verbose"]:
                raise
            raise click.Abort()

        render_execution(result, output)
        if result.status == "failed":
            ctx.exit(1)


@runs.command(name="cancel")
@click.argument("run_id")
@click.option("--reason", help="Why the run is cancelled")
@click.pass_context
@async_command
async def cancel_run(ctx: click.Context, run_id: str, reason: Optional[str]) -> None:
    """
    Cancel a running or suspended run.

    Args:
        RUN_ID: Workflow run identifier
    """
    output = ctx.obj["output"]

    async with platform_session() as platform:
        try:
            result = await cancel_workflow(run_id, storage=platform.storage, reason=reason)
        except KubeOpsError as e:
            print_error(f"Failed to cancel run: {e}")
            raise click.Abort()

        render_execution(result, output)
