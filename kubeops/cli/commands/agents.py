"""Agent commands."""

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
)
from kubeops.cli.utils.async_helpers import async_command
from kubeops.cli.utils.platform import platform_session
from kubeops.exceptions import KubeOpsError


@click.group(name="agents")
def agents() -> None:
    """Inspect and talk to agents."""
    pass


@agents.command(name="list")
@click.pass_context
@async_command
async def list_agents(ctx: click.Context) -> None:
    """
    List registered agents.

    Examples:

        kubeops agents list

        kubeops --output json agents list
    """
    output = ctx.obj["output"]

    async with platform_session() as platform:
        agent_list = platform.list_agents()

        if output == "json":
            format_json([agent.to_dict() for agent in agent_list])
        elif output == "plain":
            format_plain([agent.id for agent in agent_list])
        else:
            data = [
                {
                    "ID": agent.id,
                    "Description": agent.description or "-",
                    "Tools": ", ".join(agent.tools.get_names()) or "-",
                    "Memory": "yes" if agent.memory is not None else "no",
                }
                for agent in agent_list
            ]
            format_table(data, ["ID", "Description", "Tools", "Memory"], title="Agents")


@agents.command(name="chat")
@click.argument("agent_id")
@click.option("--message", "-m", help="Send a single message and exit")
@click.option("--conversation-id", help="Continue an existing conversation")
@click.option("--user-id", help="User the conversation belongs to")
@click.pass_context
@async_command
async def chat(
    ctx: click.Context,
    agent_id: str,
    message: Optional[str],
    conversation_id: Optional[str],
    user_id: Optional[str],
) -> None:
    """
    Chat with an agent.

    Without --message, starts an interactive session; enter an empty line
    or "exit" to quit.

    Args:
        AGENT_ID: Agent identifier (e.g. kubernetes-agent)

    Examples:

        kubeops agents chat kubernetes-agent -m "List pods in staging"

        kubeops agents chat devops-assistant
    """
    output = ctx.obj["output"]

    async with platform_session() as platform:
        try:
            agent = platform.get_agent(agent_id)
        except KubeOpsError as e:
            print_error(str(e))
            raise click.Abort()

        if message is None and output == "table":
            print_info(f"Chatting with {agent.name}. Empty line or 'exit' to quit.")

        while True:
            text = message if message is not None else click.prompt(
                "you", default="", show_default=False
            )
            if not text.strip() or text.strip().lower() in ("exit", "quit"):
                break

            try:
                result = await agent.generate_text(
                    text, user_id=user_id, conversation_id=conversation_id
                )
            except KubeOpsError as e:
                print_error(f"Agent request failed: {e}")
                if ctx.obj["verbose"]:
                    raise
                raise click.Abort()

            conversation_id = result.conversation_id

            if output == "json":
                format_json(result.to_dict(include_messages=False))
            elif output == "plain":
                format_plain([result.content])
            else:
                console.print(f"[agent]{agent.name}[/agent]: {result.content}")
                if ctx.obj["verbose"]:
                    format_key_value(
                        {
                            "Conversation": conversation_id,
                            "Tool calls": result.tool_calls_made,
                            "Tokens": json.dumps(result.token_usage.to_dict()),
                        }
                    )

            if message is not None:
                break
