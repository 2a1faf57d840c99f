"""Platform lifecycle for one CLI command."""

import json
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Dict, Optional, Tuple

import click

from kubeops.cli.output.formatters import print_error
from kubeops.exceptions import KubeOpsError
from kubeops.platform import KubeOpsPlatform, build_platform


@asynccontextmanager
async def platform_session() -> AsyncIterator[KubeOpsPlatform]:
    """
    Build the platform from configuration and hold its storage open.

    The sqlite connection belongs to the running event loop, so every
    command opens and closes its own session. Setup errors are printed and
    abort the command.
    """
    try:
        platform = build_platform()
        await platform.startup()
    except KubeOpsError as e:
        print_error(f"Failed to start platform: {e}")
        raise click.Abort()
    try:
        yield platform
    finally:
        await platform.shutdown()


def parse_key_values(pairs: Tuple[str, ...], json_str: Optional[str], option: str) -> Dict[str, Any]:
    """
    Merge ``key=value`` pairs and a JSON object into one dict.

    Values are parsed as JSON where possible, otherwise kept as strings.

    Raises:
        click.BadParameter: On a malformed pair or JSON that is not an object.
    """
    data: Dict[str, Any] = {}

    for pair in pairs:
        if "=" not in pair:
            raise click.BadParameter(f"Invalid argument format: {pair}. Expected key=value")
        key, value = pair.split("=", 1)
        try:
            data[key] = json.loads(value)
        except json.JSONDecodeError:
            data[key] = value

    if json_str:
        try:
            parsed = json.loads(json_str)
        except json.JSONDecodeError as e:
            raise click.BadParameter(f"Invalid JSON in {option}: {e}")
        if not isinstance(parsed, dict):
            raise click.BadParameter(f"{option} must be a JSON object")
        data.update(parsed)

    return data
