"""
Loguru setup for the KubeOps platform.

Console output is human-readable with the run/step/agent identifiers
appended; JSON output writes one object per line for log shippers (ELK,
Loki). Settings come from LOG_LEVEL, LOG_FORMAT and LOG_FILE.

Identifiers are attached with `logger.bind()` (see the bind_* helpers) or,
for everything logged inside a block, with the *_logging_context managers.
"""

import json
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Any, Callable, Generator

from loguru import logger

if TYPE_CHECKING:
    from kubeops.config import Settings

SERVICE_NAME = "kubeops-platform"

# Extras promoted to the console suffix and the JSON "context" object
CONTEXT_KEYS = ("run_id", "workflow_id", "step_id", "agent_id", "conversation_id")

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>{extra[_context]}"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message} | {extra}"
JSON_FORMAT = "{extra[_json]}"

FILE_ROTATION = {"rotation": "100 MB", "retention": "30 days", "compression": "gz"}


def configure_logging(
    level: str = "INFO",
    log_file: str | None = None,
    json_logs: bool = False,
    show_context: bool = True,
) -> None:
    """
    Replace all loguru sinks with the platform's.

    Args:
        level: Minimum level, case-insensitive
        log_file: Also write to this file, rotated at 100 MB
        json_logs: One JSON object per line instead of the console format
        show_context: Include run/step/agent identifiers

    Example:
        configure_logging(level="debug", log_file="logs/kubeops.log", json_logs=True)
    """
    level = level.upper()
    logger.remove()

    if json_logs:
        stream_filter = _json_filter(show_context)
        logger.add(sys.stderr, format=JSON_FORMAT, level=level, colorize=False, filter=stream_filter)
    else:
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=level,
            colorize=True,
            filter=_console_filter(show_context),
        )

    if log_file:
        Path(log_file).parent.mkdir(parents=True, exist_ok=True)
        if json_logs:
            logger.add(
                log_file,
                format=JSON_FORMAT,
                level=level,
                filter=_json_filter(show_context),
                **FILE_ROTATION,
            )
        else:
            logger.add(log_file, format=FILE_FORMAT, level=level, **FILE_ROTATION)

    logger.debug(f"Logging configured at level {level}")


def configure_logging_from_settings(settings: "Settings") -> None:
    configure_logging(
        level=settings.log_level,
        log_file=settings.log_file,
        json_logs=settings.log_format.lower() == "json",
    )


def _console_filter(show_context: bool) -> Callable[[dict[str, Any]], bool]:
    def add_context_suffix(record: dict[str, Any]) -> bool:
        pairs = [
            f"{key}={record['extra'][key]}"
            for key in CONTEXT_KEYS
            if show_context and record["extra"].get(key) is not None
        ]
        record["extra"]["_context"] = " | " + " ".join(pairs) if pairs else ""
        return True

    return add_context_suffix


def _json_filter(show_context: bool) -> Callable[[dict[str, Any]], bool]:
    def render_json(record: dict[str, Any]) -> bool:
        record["extra"]["_json"] = _format_for_json(record, show_context)
        return True

    return render_json


def _format_for_json(record: dict[str, Any], show_context: bool = True) -> str:
    """Render a loguru record as one JSON line."""
    extras = {k: v for k, v in record["extra"].items() if not k.startswith("_")}
    context = {k: extras.pop(k) for k in CONTEXT_KEYS if k in extras}

    line: dict[str, Any] = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "message": record["message"],
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
    }
    if show_context and context:
        line["context"] = context
    if extras:
        line["extra"] = {k: _safe_serialize(v) for k, v in extras.items()}

    exception = record["exception"]
    if exception is not None:
        line["exception"] = {
            "type": exception.type.__name__ if exception.type else None,
            "value": str(exception.value) if exception.value else None,
        }

    return json.dumps(line, default=str)


def _safe_serialize(value: Any) -> Any:
    if value is None or isinstance(value, (str, int, float, bool)):
        return value
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(k): _safe_serialize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set)):
        return [_safe_serialize(v) for v in value]
    return str(value)


def get_logger(name: str | None = None) -> Any:
    """Logger bound with the service name and, if given, the module name."""
    bound = logger.bind(service=SERVICE_NAME)
    return bound.bind(module=name) if name else bound


def bind_workflow_context(run_id: str, workflow_id: str) -> Any:
    return logger.bind(run_id=run_id, workflow_id=workflow_id)


def bind_step_context(run_id: str, workflow_id: str, step_id: str) -> Any:
    return logger.bind(run_id=run_id, workflow_id=workflow_id, step_id=step_id)


@contextmanager
def workflow_logging_context(run_id: str, workflow_id: str) -> Generator[None, None, None]:
    """
    Attach run identifiers to every log emitted inside the block.

    Example:
        with workflow_logging_context(run_id, "kubernetes-deployment"):
            logger.info("Starting workflow")
    """
    with logger.contextualize(run_id=run_id, workflow_id=workflow_id):
        yield


@contextmanager
def step_logging_context(run_id: str, step_id: str) -> Generator[None, None, None]:
    with logger.contextualize(run_id=run_id, step_id=step_id):
        yield
