"""
In-memory storage backend.

The default persistence (MEMORY_TYPE=in-memory): runs, event logs and
conversations live in process memory and are gone when the process exits.
Also what the unit tests run against.
"""

import threading
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from kubeops.engine.events import Event
from kubeops.storage.base import StorageBackend
from kubeops.storage.schemas import (
    Conversation,
    RunStatus,
    StoredMessage,
    SuspensionState,
    WorkflowRun,
)


@dataclass
class _EventLog:
    events: list[Event] = field(default_factory=list)

    def append(self, event: Event) -> None:
        # Sequences are dense and start at 0
        event.sequence = len(self.events)
        self.events.append(event)


@dataclass
class _Thread:
    conversation: Conversation | None
    messages: list[StoredMessage] = field(default_factory=list)


class InMemoryStorageBackend(StorageBackend):
    """
    Dictionary-backed storage guarded by one reentrant lock.

    Example:
        >>> kubeops.configure(storage=InMemoryStorageBackend())
    """

    def __init__(self) -> None:
        self._runs: dict[str, WorkflowRun] = {}
        self._logs: dict[str, _EventLog] = {}
        self._threads: dict[str, _Thread] = {}
        self._lock = threading.RLock()

    # Workflow runs

    async def create_run(self, run: WorkflowRun) -> None:
        with self._lock:
            if run.run_id in self._runs:
                raise ValueError(f"Run {run.run_id} already exists")
            self._runs[run.run_id] = run
            self._logs.setdefault(run.run_id, _EventLog())

    async def get_run(self, run_id: str) -> WorkflowRun | None:
        with self._lock:
            return self._runs.get(run_id)

    async def update_run_status(
        self,
        run_id: str,
        status: RunStatus,
        result: Any = None,
        error: str | None = None,
    ) -> None:
        with self._lock:
            run = self._runs.get(run_id)
            if run is None:
                return
            now = datetime.now(UTC)
            run.status = status
            run.updated_at = now
            if status.is_terminal:
                run.completed_at = now
            if result is not None:
                run.result = result
            if error is not None:
                run.error = error

    async def update_run_suspension(
        self,
        run_id: str,
        suspension: SuspensionState | None,
    ) -> None:
        with self._lock:
            run = self._runs.get(run_id)
            if run is not None:
                run.suspension = suspension
                run.updated_at = datetime.now(UTC)

    async def list_runs(
        self,
        workflow_id: str | None = None,
        status: RunStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[WorkflowRun]:
        with self._lock:
            matching = [
                run
                for run in self._runs.values()
                if (workflow_id is None or run.workflow_id == workflow_id)
                and (status is None or run.status == status)
            ]
        matching.sort(key=lambda run: run.created_at, reverse=True)
        return matching[offset : offset + limit]

    # Event log

    async def record_event(self, event: Event) -> None:
        with self._lock:
            self._logs.setdefault(event.run_id, _EventLog()).append(event)

    async def get_events(
        self,
        run_id: str,
        event_types: list[str] | None = None,
    ) -> list[Event]:
        with self._lock:
            log = self._logs.get(run_id)
            events = list(log.events) if log else []
        if event_types:
            events = [e for e in events if e.type.value in event_types]
        return events

    async def get_latest_event(
        self,
        run_id: str,
        event_type: str | None = None,
    ) -> Event | None:
        events = await self.get_events(run_id, [event_type] if event_type else None)
        return events[-1] if events else None

    # Conversations

    async def create_conversation(self, conversation: Conversation) -> None:
        with self._lock:
            thread = self._threads.get(conversation.conversation_id)
            if thread is not None and thread.conversation is not None:
                raise ValueError(f"Conversation {conversation.conversation_id} already exists")
            if thread is None:
                self._threads[conversation.conversation_id] = _Thread(conversation)
            else:
                thread.conversation = conversation

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        with self._lock:
            thread = self._threads.get(conversation_id)
            return thread.conversation if thread else None

    async def list_conversations(
        self,
        user_id: str | None = None,
        agent_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Conversation]:
        with self._lock:
            matching = [
                thread.conversation
                for thread in self._threads.values()
                if thread.conversation is not None
                and (user_id is None or thread.conversation.user_id == user_id)
                and (agent_id is None or thread.conversation.agent_id == agent_id)
            ]
        matching.sort(key=lambda c: c.updated_at, reverse=True)
        return matching[offset : offset + limit]

    async def delete_conversation(self, conversation_id: str) -> None:
        with self._lock:
            self._threads.pop(conversation_id, None)

    # Messages

    async def add_messages(self, conversation_id: str, messages: list[StoredMessage]) -> None:
        with self._lock:
            thread = self._threads.setdefault(conversation_id, _Thread(None))
            for message in messages:
                message.sequence = len(thread.messages)
                thread.messages.append(message)
            if thread.conversation is not None:
                thread.conversation.updated_at = datetime.now(UTC)

    async def get_messages(
        self,
        conversation_id: str,
        limit: int | None = None,
    ) -> list[StoredMessage]:
        with self._lock:
            thread = self._threads.get(conversation_id)
            messages = list(thread.messages) if thread else []
        if limit is None:
            return messages
        return messages[-limit:] if limit > 0 else []

    def clear(self) -> None:
        """Drop everything; used between tests."""
        with self._lock:
            self._runs.clear()
            self._logs.clear()
            self._threads.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._runs)

    def __repr__(self) -> str:
        with self._lock:
            events = sum(len(log.events) for log in self._logs.values())
            conversations = sum(1 for t in self._threads.values() if t.conversation is not None)
            return (
                f"InMemoryStorageBackend(runs={len(self._runs)}, events={events}, "
                f"conversations={conversations})"
            )
