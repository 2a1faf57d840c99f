"""
Records kept by the storage backends: workflow runs with their suspension
checkpoints, and agent conversations with their messages.
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class RunStatus(Enum):
    """Lifecycle of a workflow run. Completed, failed and cancelled are final."""

    PENDING = "pending"
    RUNNING = "running"
    SUSPENDED = "suspended"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RunStatus.COMPLETED, RunStatus.FAILED, RunStatus.CANCELLED)


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass
class SuspensionState:
    """
    Checkpoint of a suspended step.

    `step_input` is the data the step was called with; it is replayed on resume
    together with the validated resume data.
    """

    step_id: str
    step_index: int
    reason: str
    step_input: Any = None
    suspend_data: dict[str, Any] = field(default_factory=dict)
    suspended_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "step_id": self.step_id,
            "step_index": self.step_index,
            "reason": self.reason,
            "step_input": self.step_input,
            "suspend_data": self.suspend_data,
            "suspended_at": self.suspended_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SuspensionState":
        return cls(
            step_id=data["step_id"],
            step_index=data["step_index"],
            reason=data.get("reason", ""),
            step_input=data.get("step_input"),
            suspend_data=data.get("suspend_data") or {},
            suspended_at=_parse_dt(data.get("suspended_at")) or _utcnow(),
        )


@dataclass
class WorkflowRun:
    """
    One execution of a workflow.

    `run_id` is what the HTTP API calls the execution id. `input_data` is the
    validated workflow input; `result` is set once the run completes.
    """

    run_id: str
    workflow_id: str
    status: RunStatus
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    # Input/output
    input_data: dict[str, Any] = field(default_factory=dict)
    result: Any = None
    error: str | None = None

    user_id: str | None = None
    suspension: SuspensionState | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "workflow_id": self.workflow_id,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "started_at": _iso(self.started_at),
            "completed_at": _iso(self.completed_at),
            "input_data": self.input_data,
            "result": self.result,
            "error": self.error,
            "user_id": self.user_id,
            "suspension": self.suspension.to_dict() if self.suspension else None,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WorkflowRun":
        suspension = data.get("suspension")
        return cls(
            run_id=data["run_id"],
            workflow_id=data["workflow_id"],
            status=RunStatus(data["status"]),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            started_at=_parse_dt(data.get("started_at")),
            completed_at=_parse_dt(data.get("completed_at")),
            input_data=data.get("input_data") or {},
            result=data.get("result"),
            error=data.get("error"),
            user_id=data.get("user_id"),
            suspension=SuspensionState.from_dict(suspension) if suspension else None,
            metadata=data.get("metadata") or {},
        )


@dataclass
class Conversation:
    """A conversation thread between a user and an agent."""

    conversation_id: str
    agent_id: str
    user_id: str | None = None
    title: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    metadata: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "agent_id": self.agent_id,
            "user_id": self.user_id,
            "title": self.title,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Conversation":
        return cls(
            conversation_id=data["conversation_id"],
            agent_id=data["agent_id"],
            user_id=data.get("user_id"),
            title=data.get("title"),
            created_at=datetime.fromisoformat(data["created_at"]),
            updated_at=datetime.fromisoformat(data["updated_at"]),
            metadata=data.get("metadata") or {},
        )


@dataclass
class StoredMessage:
    """
    A single message in a conversation.

    `content` holds the langchain message dict (as produced by
    `messages_to_dict`); `role` is its type (human, ai, tool, system).
    """

    conversation_id: str
    role: str
    content: dict[str, Any]
    sequence: int | None = None
    created_at: datetime = field(default_factory=_utcnow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "conversation_id": self.conversation_id,
            "role": self.role,
            "content": self.content,
            "sequence": self.sequence,
            "created_at": self.created_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "StoredMessage":
        return cls(
            conversation_id=data["conversation_id"],
            role=data["role"],
            content=data["content"],
            sequence=data.get("sequence"),
            created_at=_parse_dt(data.get("created_at")) or _utcnow(),
        )
