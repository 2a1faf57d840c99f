"""Run the HTTP server."""

from typing import Optional

import click

from kubeops.config import configure, get_config
from kubeops.platform import build_platform


@click.command(name="serve")
@click.option("--host", help="Interface to bind (default: HOST or 0.0.0.0)")
@click.option("--port", type=int, help="Port to listen on (default: PORT or 3141)")
def serve(host: Optional[str], port: Optional[int]) -> None:
    """
    Start the KubeOps HTTP API server.

    Examples:

        kubeops serve

        kubeops --memory-type sqlite serve --port 8080
    """
    overrides = {}
    if host:
        overrides["host"] = host
    if port:
        overrides["port"] = port
    if overrides:
        configure(**overrides)

    settings = get_config()
    platform = build_platform(settings)
    platform.serve()
