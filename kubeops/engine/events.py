"""
Workflow run history.

Each state change of a run is appended to the run's event log; storage
assigns the sequence number. The HTTP API and `kubeops runs logs` replay
the log to show what a run did.
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Dict, Optional


class EventType(Enum):
    """Run and step lifecycle events."""

    WORKFLOW_STARTED = "workflow.started"
    WORKFLOW_COMPLETED = "workflow.completed"
    WORKFLOW_FAILED = "workflow.failed"
    WORKFLOW_SUSPENDED = "workflow.suspended"
    WORKFLOW_RESUMED = "workflow.resumed"
    WORKFLOW_CANCELLED = "workflow.cancelled"

    STEP_STARTED = "step.started"
    STEP_COMPLETED = "step.completed"
    STEP_FAILED = "step.failed"

    @property
    def is_step_event(self) -> bool:
        return self.value.startswith("step.")


def _new_event_id() -> str:
    return f"evt_{uuid.uuid4().hex[:16]}"


@dataclass
class Event:
    """One entry of a run's append-only event log."""

    run_id: str
    type: EventType
    data: Dict[str, Any] = field(default_factory=dict)
    event_id: str = field(default_factory=_new_event_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    sequence: Optional[int] = None

    def __post_init__(self) -> None:
        if not self.run_id:
            raise ValueError("Event must have a run_id")
        if not isinstance(self.type, EventType):
            raise TypeError(f"Event type must be EventType enum, got {type(self.type)}")

    @property
    def step_id(self) -> Optional[str]:
        return self.data.get("step_id")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "event_id": self.event_id,
            "run_id": self.run_id,
            "type": self.type.value,
            "timestamp": self.timestamp.isoformat(),
            "sequence": self.sequence,
            "data": self.data,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Event":
        return cls(
            run_id=data["run_id"],
            type=EventType(data["type"]),
            data=data.get("data") or {},
            event_id=data["event_id"],
            timestamp=datetime.fromisoformat(data["timestamp"]),
            sequence=data.get("sequence"),
        )


# Constructors used by the executor


def create_workflow_started_event(
    run_id: str, workflow_id: str, input_data: Any, user_id: Optional[str] = None
) -> Event:
    return Event(
        run_id,
        EventType.WORKFLOW_STARTED,
        {"workflow_id": workflow_id, "input": input_data, "user_id": user_id},
    )


def create_workflow_completed_event(run_id: str, result: Any) -> Event:
    return Event(run_id, EventType.WORKFLOW_COMPLETED, {"result": result})


def create_workflow_failed_event(
    run_id: str, error: str, error_type: str, step_id: Optional[str] = None
) -> Event:
    """`step_id` is None when the run failed after its last step (result validation)."""
    return Event(
        run_id,
        EventType.WORKFLOW_FAILED,
        {"error": error, "error_type": error_type, "step_id": step_id},
    )


def create_workflow_suspended_event(
    run_id: str, step_id: str, reason: str, suspend_data: Optional[Dict[str, Any]] = None
) -> Event:
    return Event(
        run_id,
        EventType.WORKFLOW_SUSPENDED,
        {"step_id": step_id, "reason": reason, "suspend_data": suspend_data or {}},
    )


def create_workflow_resumed_event(
    run_id: str, step_id: str, resume_data: Optional[Dict[str, Any]] = None
) -> Event:
    return Event(
        run_id,
        EventType.WORKFLOW_RESUMED,
        {"step_id": step_id, "resume_data": resume_data or {}},
    )


def create_workflow_cancelled_event(run_id: str, reason: Optional[str] = None) -> Event:
    return Event(run_id, EventType.WORKFLOW_CANCELLED, {"reason": reason})


def create_step_started_event(
    run_id: str, step_id: str, step_index: int, resumed: bool = False
) -> Event:
    return Event(
        run_id,
        EventType.STEP_STARTED,
        {"step_id": step_id, "step_index": step_index, "resumed": resumed},
    )


def create_step_completed_event(run_id: str, step_id: str, result: Any) -> Event:
    return Event(run_id, EventType.STEP_COMPLETED, {"step_id": step_id, "result": result})


def create_step_failed_event(run_id: str, step_id: str, error: str, error_type: str) -> Event:
    return Event(
        run_id,
        EventType.STEP_FAILED,
        {"step_id": step_id, "error": error, "error_type": error_type},
    )
