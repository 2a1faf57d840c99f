"""
Versioned schema changes for the SQL storage backend.

Migrations are numbered from 1. A runner compares the registry with the
`schema_versions` table of a database and applies what is missing, in
order, each in its own transaction.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Awaitable, Callable

BASELINE_DESCRIPTION = "Baseline: existing schema"


@dataclass
class Migration:
    """
    A numbered schema change.

    `up_sql` is executed as a script; `up_func`, if set, is awaited with the
    open connection after it. `down_sql` is kept for manual rollbacks and is
    never run by the runner.
    """

    version: int
    description: str
    up_sql: str | None = None
    down_sql: str | None = None
    up_func: Callable[[Any], Awaitable[Any]] | None = None

    def __post_init__(self) -> None:
        if self.version < 1:
            raise ValueError("Migration version must be >= 1")
        if not (self.up_sql or self.up_func):
            raise ValueError("Migration must have either up_sql or up_func")


@dataclass
class AppliedMigration:
    version: int
    description: str
    applied_at: datetime = field(default_factory=lambda: datetime.now(UTC))


class MigrationRegistry:
    """The known migrations of one backend."""

    def __init__(self) -> None:
        self._by_version: dict[int, Migration] = {}

    def register(self, migration: Migration) -> None:
        """
        Raises:
            ValueError: If the version is already registered
        """
        if migration.version in self._by_version:
            raise ValueError(f"Migration version {migration.version} already registered")
        self._by_version[migration.version] = migration

    def get(self, version: int) -> Migration | None:
        return self._by_version.get(version)

    def get_all(self) -> list[Migration]:
        return sorted(self._by_version.values(), key=lambda m: m.version)

    def get_pending(self, current_version: int) -> list[Migration]:
        return [m for m in self.get_all() if m.version > current_version]

    def get_latest_version(self) -> int:
        return max(self._by_version, default=0)

    def __len__(self) -> int:
        return len(self._by_version)


class MigrationRunner(ABC):
    """Backend-specific bookkeeping around `run_migrations()`."""

    def __init__(self, registry: MigrationRegistry) -> None:
        self.registry = registry

    @abstractmethod
    async def ensure_schema_versions_table(self) -> None:
        pass

    @abstractmethod
    async def get_current_version(self) -> int:
        """Highest recorded version; 0 for an unversioned database."""

    @abstractmethod
    async def apply_migration(self, migration: Migration) -> None:
        """Run and record one migration atomically, re-raising after rollback on failure."""

    @abstractmethod
    async def detect_existing_schema(self) -> bool:
        """Whether the platform's tables exist even though no version is recorded."""

    @abstractmethod
    async def record_baseline_version(self, version: int, description: str) -> None:
        pass

    async def run_migrations(self) -> list[AppliedMigration]:
        """
        Apply every pending migration and return the ones applied now.

        An unversioned database that already holds the tables is stamped as
        version 1 first, so only later migrations run against it.
        """
        await self.ensure_schema_versions_table()
        version = await self.get_current_version()

        if version == 0 and await self.detect_existing_schema():
            await self.record_baseline_version(1, BASELINE_DESCRIPTION)
            version = 1

        applied = []
        for migration in self.registry.get_pending(version):
            await self.apply_migration(migration)
            applied.append(AppliedMigration(migration.version, migration.description))
        return applied
