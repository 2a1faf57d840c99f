"""HTTP server for the KubeOps platform."""

from kubeops.server.app import create_app

__all__ = ["create_app"]
