"""
Storage interface shared by the workflow executor and agent memory.

Two implementations ship with the platform: `InMemoryStorageBackend` (the
default) and `SQLiteStorageBackend` (MEMORY_TYPE=sqlite).
"""

from abc import ABC, abstractmethod
from typing import Any

from kubeops.engine.events import Event
from kubeops.storage.schemas import (
    Conversation,
    RunStatus,
    StoredMessage,
    SuspensionState,
    WorkflowRun,
)


class StorageBackend(ABC):
    """
    Persistence for workflow runs, their event logs and agent conversations.

    Backends own sequence numbering: `record_event` and `add_messages` assign
    `sequence` per run and per conversation, starting at 0.
    """

    # Runs

    @abstractmethod
    async def create_run(self, run: WorkflowRun) -> None:
        """
        Persist a new run.

        Raises:
            ValueError: If a run with the same id exists
        """

    @abstractmethod
    async def get_run(self, run_id: str) -> WorkflowRun | None:
        """The run, or None if unknown."""

    @abstractmethod
    async def update_run_status(
        self,
        run_id: str,
        status: RunStatus,
        result: Any = None,
        error: str | None = None,
    ) -> None:
        """
        Move a run to `status`.

        A terminal status also sets `completed_at`. `result` and `error` are
        only written when given. Unknown run ids are ignored.
        """

    @abstractmethod
    async def update_run_suspension(
        self,
        run_id: str,
        suspension: SuspensionState | None,
    ) -> None:
        """Save the checkpoint of a suspended run; None clears it."""

    @abstractmethod
    async def list_runs(
        self,
        workflow_id: str | None = None,
        status: RunStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[WorkflowRun]:
        """Runs matching the filters, newest first."""

    # Event log

    @abstractmethod
    async def record_event(self, event: Event) -> None:
        """Append to the run's log, setting `event.sequence`."""

    @abstractmethod
    async def get_events(
        self,
        run_id: str,
        event_types: list[str] | None = None,
    ) -> list[Event]:
        """
        A run's events in sequence order.

        Args:
            run_id: Run whose log to read
            event_types: Only these type values (e.g. ["workflow.suspended"])
        """

    @abstractmethod
    async def get_latest_event(
        self,
        run_id: str,
        event_type: str | None = None,
    ) -> Event | None:
        pass

    # Conversations

    @abstractmethod
    async def create_conversation(self, conversation: Conversation) -> None:
        """
        Raises:
            ValueError: If the conversation id is taken
        """

    @abstractmethod
    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        pass

    @abstractmethod
    async def list_conversations(
        self,
        user_id: str | None = None,
        agent_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Conversation]:
        """Conversations matching the filters, most recently updated first."""

    @abstractmethod
    async def delete_conversation(self, conversation_id: str) -> None:
        """Remove a conversation together with its messages."""

    @abstractmethod
    async def add_messages(self, conversation_id: str, messages: list[StoredMessage]) -> None:
        """Append messages (setting `sequence`) and touch the conversation's `updated_at`."""

    @abstractmethod
    async def get_messages(
        self,
        conversation_id: str,
        limit: int | None = None,
    ) -> list[StoredMessage]:
        """Messages oldest first; with `limit`, only the last `limit` of them."""

    # Lifecycle

    async def connect(self) -> None:
        pass

    async def disconnect(self) -> None:
        pass

    async def health_check(self) -> bool:
        """True if a trivial read succeeds."""
        try:
            await self.get_run("__health_check__")
        except Exception:
            return False
        return True
