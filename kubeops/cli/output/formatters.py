"""Rich rendering for CLI output."""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from kubeops.cli.output.styles import EVENT_STYLES, KUBEOPS_THEME

console = Console(theme=KUBEOPS_THEME)
err_console = Console(theme=KUBEOPS_THEME, stderr=True)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _styled(text: str, style: Optional[str]) -> str:
    return f"[{style}]{text}[/{style}]" if style else text


def _render_value(key: str, value: Any, pretty_json: bool = False) -> str:
    """Markup for one table cell or key/value entry."""
    if isinstance(value, datetime):
        text = value.strftime(TIMESTAMP_FORMAT)
    elif pretty_json and isinstance(value, (dict, list)):
        text = json.dumps(value, indent=2, default=str)
    elif value is None:
        return "[dim]-[/dim]"
    else:
        text = str(value)
    return format_status(text) if key.lower() == "status" else text


def format_table(
    data: List[Dict[str, Any]],
    columns: List[str],
    title: Optional[str] = None,
) -> None:
    """
    Print rows as a table.

    Example:
        format_table(
            [{"ID": "kubernetes-agent", "Tools": 4}],
            ["ID", "Tools"],
            title="Agents",
        )
    """
    if not data:
        console.print("[dim]No data to display[/dim]")
        return

    table = Table(title=title, header_style="bold magenta", box=box.ROUNDED)
    for column in columns:
        table.add_column(column, style="cyan")
    for row in data:
        table.add_row(*(_render_value(column, row.get(column, "")) for column in columns))

    console.print(table)


def format_json(data: Any, indent: int = 2) -> None:
    """Print JSON: highlighted on a terminal, verbatim when piped."""
    text = json.dumps(data, indent=indent, default=str)
    if console.is_terminal:
        console.print(Syntax(text, "json", theme="monokai"))
    else:
        console.out(text, highlight=False)


def format_plain(data: List[str]) -> None:
    for line in data:
        console.out(line, highlight=False)


def format_status(status: str) -> str:
    """
    Wrap a run status in its theme style.

    Examples:
        >>> format_status("suspended")
        '[status.suspended]suspended[/status.suspended]'
    """
    style = f"status.{status.lower()}"
    return _styled(status, style if style in KUBEOPS_THEME.styles else None)


def format_event_type(event_type: str) -> str:
    return _styled(event_type, EVENT_STYLES.get(event_type))


def format_key_value(data: Dict[str, Any], title: Optional[str] = None) -> None:
    if title:
        console.print(f"\n[bold magenta]{title}[/bold magenta]")
    for key, value in data.items():
        console.print(f"  [cyan]{key}:[/cyan] {_render_value(key, value, pretty_json=True)}")


def print_success(message: str) -> None:
    console.print(f"[success]✓[/success] {message}")


def print_error(message: str) -> None:
    err_console.print(f"[error]✗[/error] {message}")


def print_warning(message: str) -> None:
    console.print(f"[warning]⚠[/warning] {message}")


def print_info(message: str) -> None:
    console.print(f"[info]ℹ[/info] {message}")
