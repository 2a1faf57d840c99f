"""
Schema migration framework for persistent storage backends.
"""

from kubeops.storage.migrations.base import (
    AppliedMigration,
    Migration,
    MigrationRegistry,
    MigrationRunner,
)
from kubeops.storage.migrations.sqlite import SQLITE_MIGRATIONS, SQLiteMigrationRunner

__all__ = [
    "AppliedMigration",
    "Migration",
    "MigrationRegistry",
    "MigrationRunner",
    "SQLITE_MIGRATIONS",
    "SQLiteMigrationRunner",
]
