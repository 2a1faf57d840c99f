"""KubeOps CLI - Run the platform, talk to agents and drive workflows."""

from typing import Optional

import click

from kubeops import __version__
from kubeops.config import configure


@click.group()
@click.version_option(version=__version__, prog_name="kubeops")
@click.option(
    "--llm-provider",
    type=click.Choice(["openai", "anthropic", "google"], case_sensitive=False),
    help="LLM provider (default: LLM_PROVIDER or openai)",
)
@click.option(
    "--memory-type",
    type=click.Choice(["in-memory", "sqlite", "libsql"], case_sensitive=False),
    help="Memory persistence (default: MEMORY_TYPE or in-memory)",
)
@click.option(
    "--output",
    type=click.Choice(["table", "json", "plain"], case_sensitive=False),
    default="table",
    help="Output format (default: table)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable debug logging",
)
@click.pass_context
def main(
    ctx: click.Context,
    llm_provider: Optional[str],
    memory_type: Optional[str],
    output: str,
    verbose: bool,
) -> None:
    """
    KubeOps CLI - Kubernetes operations agents and deployment workflows.

    Examples:

        # Start the HTTP API on port 3141
        kubeops serve

        # Ask the Kubernetes agent a question
        kubeops agents chat kubernetes-agent -m "Show pods in staging"

        # Deploy, then approve the suspended production rollout
        kubeops workflows run kubernetes-deployment --args-json '{...}'
        kubeops runs resume run_abc123 --arg approved=true

    Configuration is read from environment variables and a .env file;
    the flags above override them.
    """
    overrides = {}
    if llm_provider:
        overrides["llm_provider"] = llm_provider.lower()
    if memory_type:
        overrides["memory_type"] = memory_type.lower()
    if verbose:
        overrides["log_level"] = "debug"
    if overrides:
        configure(**overrides)

    ctx.ensure_object(dict)
    ctx.obj["output"] = output.lower()
    ctx.obj["verbose"] = verbose


from kubeops.cli.commands.agents import agents  # noqa: E402
from kubeops.cli.commands.runs import runs  # noqa: E402
from kubeops.cli.commands.serve import serve  # noqa: E402
from kubeops.cli.commands.workflows import workflows  # noqa: E402

main.add_command(serve)
main.add_command(agents)
main.add_command(workflows)
main.add_command(runs)

__all__ = ["main"]
