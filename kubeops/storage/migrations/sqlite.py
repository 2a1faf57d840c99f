"""
SQLite schema and migration runner.
"""

from datetime import UTC, datetime

import aiosqlite
from loguru import logger

from kubeops.storage.migrations.base import Migration, MigrationRegistry, MigrationRunner

SQLITE_MIGRATIONS = MigrationRegistry()

SQLITE_MIGRATIONS.register(
    Migration(
        version=1,
        description="Workflow runs, run events, conversations and messages",
        up_sql="""
        CREATE TABLE IF NOT EXISTS workflow_runs (
            run_id TEXT PRIMARY KEY,
            workflow_id TEXT NOT NULL,
            status TEXT NOT NULL,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            started_at TEXT,
            completed_at TEXT,
            input_data TEXT NOT NULL DEFAULT '{}',
            result TEXT,
            error TEXT,
            user_id TEXT,
            suspension TEXT,
            metadata TEXT NOT NULL DEFAULT '{}'
        );

        CREATE TABLE IF NOT EXISTS events (
            event_id TEXT PRIMARY KEY,
            run_id TEXT NOT NULL,
            sequence INTEGER NOT NULL,
            type TEXT NOT NULL,
            timestamp TEXT NOT NULL,
            data TEXT NOT NULL DEFAULT '{}',
            UNIQUE (run_id, sequence)
        );

        CREATE TABLE IF NOT EXISTS conversations (
            conversation_id TEXT PRIMARY KEY,
            agent_id TEXT NOT NULL,
            user_id TEXT,
            title TEXT,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            metadata TEXT NOT NULL DEFAULT '{}'
        );

        CREATE TABLE IF NOT EXISTS messages (
            conversation_id TEXT NOT NULL,
            sequence INTEGER NOT NULL,
            role TEXT NOT NULL,
            content TEXT NOT NULL,
            created_at TEXT NOT NULL,
            PRIMARY KEY (conversation_id, sequence)
        );
        """,
        down_sql="""
        DROP TABLE IF EXISTS messages;
        DROP TABLE IF EXISTS conversations;
        DROP TABLE IF EXISTS events;
        DROP TABLE IF EXISTS workflow_runs;
        """,
    )
)

SQLITE_MIGRATIONS.register(
    Migration(
        version=2,
        description="Indexes for run listing and conversation lookup",
        up_sql="""
        CREATE INDEX IF NOT EXISTS idx_runs_workflow_status
            ON workflow_runs (workflow_id, status, created_at);
        CREATE INDEX IF NOT EXISTS idx_conversations_agent_user
            ON conversations (agent_id, user_id, updated_at);
        """,
        down_sql="""
        DROP INDEX IF EXISTS idx_runs_workflow_status;
        DROP INDEX IF EXISTS idx_conversations_agent_user;
        """,
    )
)


class SQLiteMigrationRunner(MigrationRunner):
    """Runs migrations over an open aiosqlite connection."""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        registry: MigrationRegistry | None = None,
    ) -> None:
        super().__init__(registry or SQLITE_MIGRATIONS)
        self._conn = conn

    async def ensure_schema_versions_table(self) -> None:
        await self._conn.execute(
            """CREATE TABLE IF NOT EXISTS schema_versions (
                version INTEGER PRIMARY KEY,
                applied_at TEXT NOT NULL,
                description TEXT
            )"""
        )
        await self._conn.commit()

    async def get_current_version(self) -> int:
        async with self._conn.execute("SELECT MAX(version) FROM schema_versions") as cursor:
            row = await cursor.fetchone()
        return row[0] if row and row[0] is not None else 0

    async def apply_migration(self, migration: Migration) -> None:
        logger.info(
            f"Applying migration {migration.version}: {migration.description}",
            version=migration.version,
        )
        try:
            if migration.up_sql:
                await self._conn.executescript(migration.up_sql)
            if migration.up_func:
                await migration.up_func(self._conn)
            await self._insert_version(migration.version, migration.description)
            await self._conn.commit()
        except Exception:
            await self._conn.rollback()
            logger.exception(f"Migration {migration.version} failed, rolled back")
            raise

    async def detect_existing_schema(self) -> bool:
        async with self._conn.execute(
            "SELECT name FROM sqlite_master WHERE type = 'table' AND name = 'workflow_runs'"
        ) as cursor:
            return await cursor.fetchone() is not None

    async def record_baseline_version(self, version: int, description: str) -> None:
        await self._insert_version(version, description)
        await self._conn.commit()

    async def _insert_version(self, version: int, description: str) -> None:
        await self._conn.execute(
            "INSERT INTO schema_versions (version, applied_at, description) VALUES (?, ?, ?)",
            (version, datetime.now(UTC).isoformat(), description),
        )
