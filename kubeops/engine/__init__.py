"""Workflow run event log."""

from kubeops.engine.events import Event, EventType

__all__ = ["Event", "EventType"]
