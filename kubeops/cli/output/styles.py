"""Rich styles and themes for CLI output."""

from rich.theme import Theme

KUBEOPS_THEME = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
    "agent": "magenta",
    "workflow": "magenta",
    "step": "blue",
    "status.completed": "green",
    "status.running": "blue",
    "status.suspended": "yellow",
    "status.failed": "red",
    "status.cancelled": "magenta",
    "status.pending": "cyan",
})

EVENT_STYLES = {
    "workflow.started": "blue",
    "workflow.completed": "green",
    "workflow.failed": "red",
    "workflow.suspended": "yellow",
    "workflow.resumed": "cyan",
    "workflow.cancelled": "magenta",
    "step.started": "cyan",
    "step.completed": "green",
    "step.failed": "red",
}
