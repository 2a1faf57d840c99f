"""
Storage backends for the KubeOps platform.

Provides in-memory and SQLite implementations for workflow run state and
agent conversation memory.
"""

from kubeops.storage.base import StorageBackend
from kubeops.storage.config import DEFAULT_MEMORY_URL, create_storage, url_to_path
from kubeops.storage.memory import InMemoryStorageBackend
from kubeops.storage.schemas import (
    Conversation,
    RunStatus,
    StoredMessage,
    SuspensionState,
    WorkflowRun,
)
from kubeops.storage.sqlite import SQLiteStorageBackend

__all__ = [
    "StorageBackend",
    "InMemoryStorageBackend",
    "SQLiteStorageBackend",
    "WorkflowRun",
    "SuspensionState",
    "Conversation",
    "StoredMessage",
    "RunStatus",
    # Config utilities
    "DEFAULT_MEMORY_URL",
    "create_storage",
    "url_to_path",
]
