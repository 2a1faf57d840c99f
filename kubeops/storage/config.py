"""
Storage backend selection from the MEMORY_TYPE / MEMORY_URL settings.
"""

from loguru import logger

from kubeops.storage.base import StorageBackend

DEFAULT_MEMORY_URL = "file:.kubeops/memory.db"

SQLITE_MEMORY_TYPES = ("sqlite", "libsql")


def url_to_path(url: str) -> str:
    """
    Turn a memory URL into a filesystem path.

    Accepts `file:path`, `file://path` and plain paths.

    Example:
        >>> url_to_path("file:.kubeops/memory.db")
        '.kubeops/memory.db'
        >>> url_to_path("file:///var/lib/kubeops/memory.db")
        '/var/lib/kubeops/memory.db'
    """
    if url.startswith("file://"):
        return url[len("file://") :]
    if url.startswith("file:"):
        return url[len("file:") :]
    return url


def create_storage(
    memory_type: str | None = None,
    url: str | None = None,
) -> StorageBackend:
    """
    Create the storage backend for a memory type.

    `sqlite` (or its alias `libsql`) selects the persistent SQLite backend;
    any other value selects the in-memory backend.

    Args:
        memory_type: Memory type name (case-insensitive)
        url: Database URL for the SQLite backend

    Returns:
        Storage backend instance
    """
    normalized = (memory_type or "in-memory").strip().lower()

    if normalized in SQLITE_MEMORY_TYPES:
        from kubeops.storage.sqlite import SQLiteStorageBackend

        db_path = url_to_path(url or DEFAULT_MEMORY_URL)
        logger.debug("Using SQLite storage", db_path=db_path)
        return SQLiteStorageBackend(db_path=db_path)

    from kubeops.storage.memory import InMemoryStorageBackend

    return InMemoryStorageBackend()


def memory_type_label(storage: StorageBackend) -> str:
    """Short label of a backend, as shown in startup logs."""
    class_name = storage.__class__.__name__
    if class_name == "SQLiteStorageBackend":
        return "sqlite"
    if class_name == "InMemoryStorageBackend":
        return "in-memory"
    return class_name
