"""
SQLite storage backend built on aiosqlite.

Persistent storage for workflow runs, run events and agent conversations
(MEMORY_TYPE=sqlite). The schema is versioned with the migration framework
and brought up to date on connect.
"""

import asyncio
import json
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

import aiosqlite
from loguru import logger

from kubeops.engine.events import Event, EventType
from kubeops.storage.base import StorageBackend
from kubeops.storage.migrations.sqlite import SQLiteMigrationRunner
from kubeops.storage.schemas import (
    Conversation,
    RunStatus,
    StoredMessage,
    SuspensionState,
    WorkflowRun,
)


def _dumps(value: Any) -> str:
    return json.dumps(value, default=str)


def _loads(value: str | None) -> Any:
    return json.loads(value) if value is not None else None


def _dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


class SQLiteStorageBackend(StorageBackend):
    """
    SQLite storage backend.

    A single aiosqlite connection is opened lazily on first use (or by
    `connect()`) and kept until `disconnect()`.

    Example:
        >>> storage = SQLiteStorageBackend(".kubeops/memory.db")
        >>> await storage.connect()
    """

    def __init__(self, db_path: str = ".kubeops/memory.db") -> None:
        self.db_path = db_path
        self._conn: aiosqlite.Connection | None = None
        self._connect_lock = asyncio.Lock()

    # Lifecycle

    async def connect(self) -> None:
        async with self._connect_lock:
            if self._conn is None:
                await self._open()

    async def _open(self) -> None:
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)

        conn = await aiosqlite.connect(self.db_path)
        conn.row_factory = aiosqlite.Row
        await conn.execute("PRAGMA journal_mode = WAL")

        applied = await SQLiteMigrationRunner(conn).run_migrations()
        if applied:
            logger.debug(
                f"SQLite schema migrated to version {applied[-1].version}",
                db_path=self.db_path,
            )

        self._conn = conn
        logger.debug("SQLite storage connected", db_path=self.db_path)

    async def disconnect(self) -> None:
        if self._conn is not None:
            await self._conn.close()
            self._conn = None

    async def _db(self) -> aiosqlite.Connection:
        if self._conn is None:
            await self.connect()
        assert self._conn is not None
        return self._conn

    async def health_check(self) -> bool:
        try:
            conn = await self._db()
            async with conn.execute("SELECT 1") as cursor:
                await cursor.fetchone()
            return True
        except Exception:
            return False

    # Workflow Run Operations

    async def create_run(self, run: WorkflowRun) -> None:
        conn = await self._db()
        try:
            await conn.execute(
                """INSERT INTO workflow_runs (
                    run_id, workflow_id, status, created_at, updated_at, started_at,
                    completed_at, input_data, result, error, user_id, suspension, metadata
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)""",
                (
                    run.run_id,
                    run.workflow_id,
                    run.status.value,
                    run.created_at.isoformat(),
                    run.updated_at.isoformat(),
                    run.started_at.isoformat() if run.started_at else None,
                    run.completed_at.isoformat() if run.completed_at else None,
                    _dumps(run.input_data),
                    _dumps(run.result) if run.result is not None else None,
                    run.error,
                    run.user_id,
                    _dumps(run.suspension.to_dict()) if run.suspension else None,
                    _dumps(run.metadata),
                ),
            )
            await conn.commit()
        except aiosqlite.IntegrityError as e:
            await conn.rollback()
            raise ValueError(f"Run {run.run_id} already exists") from e

    async def get_run(self, run_id: str) -> WorkflowRun | None:
        conn = await self._db()
        async with conn.execute("SELECT * FROM workflow_runs WHERE run_id = ?", (run_id,)) as cursor:
            row = await cursor.fetchone()
        return self._row_to_run(row) if row else None

    async def update_run_status(
        self,
        run_id: str,
        status: RunStatus,
        result: Any = None,
        error: str | None = None,
    ) -> None:
        conn = await self._db()
        now = datetime.now(UTC).isoformat()
        await conn.execute(
            """UPDATE workflow_runs SET
                status = ?,
                updated_at = ?,
                result = COALESCE(?, result),
                error = COALESCE(?, error),
                completed_at = CASE WHEN ? THEN ? ELSE completed_at END
            WHERE run_id = ?""",
            (
                status.value,
                now,
                _dumps(result) if result is not None else None,
                error,
                status.is_terminal,
                now,
                run_id,
            ),
        )
        await conn.commit()

    async def update_run_suspension(
        self,
        run_id: str,
        suspension: SuspensionState | None,
    ) -> None:
        conn = await self._db()
        await conn.execute(
            "UPDATE workflow_runs SET suspension = ?, updated_at = ? WHERE run_id = ?",
            (
                _dumps(suspension.to_dict()) if suspension else None,
                datetime.now(UTC).isoformat(),
                run_id,
            ),
        )
        await conn.commit()

    async def list_runs(
        self,
        workflow_id: str | None = None,
        status: RunStatus | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[WorkflowRun]:
        conn = await self._db()
        query = "SELECT * FROM workflow_runs WHERE 1 = 1"
        params: list[Any] = []
        if workflow_id:
            query += " AND workflow_id = ?"
            params.append(workflow_id)
        if status:
            query += " AND status = ?"
            params.append(status.value)
        query += " ORDER BY created_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = await conn.execute_fetchall(query, params)
        return [self._row_to_run(row) for row in rows]

    @staticmethod
    def _row_to_run(row: aiosqlite.Row) -> WorkflowRun:
        suspension = _loads(row["suspension"])
        return WorkflowRun(
            run_id=row["run_id"],
            workflow_id=row["workflow_id"],
            status=RunStatus(row["status"]),
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            started_at=_dt(row["started_at"]),
            completed_at=_dt(row["completed_at"]),
            input_data=_loads(row["input_data"]) or {},
            result=_loads(row["result"]),
            error=row["error"],
            user_id=row["user_id"],
            suspension=SuspensionState.from_dict(suspension) if suspension else None,
            metadata=_loads(row["metadata"]) or {},
        )

    # Event Log Operations

    async def record_event(self, event: Event) -> None:
        conn = await self._db()
        # Sequence is computed inside the INSERT so concurrent writers never collide.
        await conn.execute(
            """INSERT INTO events (event_id, run_id, sequence, type, timestamp, data)
            VALUES (
                ?, ?,
                (SELECT COALESCE(MAX(sequence), -1) + 1 FROM events WHERE run_id = ?),
                ?, ?, ?
            )""",
            (
                event.event_id,
                event.run_id,
                event.run_id,
                event.type.value,
                event.timestamp.isoformat(),
                _dumps(event.data),
            ),
        )
        await conn.commit()

        async with conn.execute(
            "SELECT sequence FROM events WHERE event_id = ?", (event.event_id,)
        ) as cursor:
            row = await cursor.fetchone()
        event.sequence = row["sequence"]

    async def get_events(
        self,
        run_id: str,
        event_types: list[str] | None = None,
    ) -> list[Event]:
        conn = await self._db()
        query = "SELECT * FROM events WHERE run_id = ?"
        params: list[Any] = [run_id]
        if event_types:
            query += f" AND type IN ({', '.join('?' for _ in event_types)})"
            params.extend(event_types)
        query += " ORDER BY sequence ASC"

        rows = await conn.execute_fetchall(query, params)
        return [self._row_to_event(row) for row in rows]

    async def get_latest_event(
        self,
        run_id: str,
        event_type: str | None = None,
    ) -> Event | None:
        conn = await self._db()
        query = "SELECT * FROM events WHERE run_id = ?"
        params: list[Any] = [run_id]
        if event_type:
            query += " AND type = ?"
            params.append(event_type)
        query += " ORDER BY sequence DESC LIMIT 1"

        async with conn.execute(query, params) as cursor:
            row = await cursor.fetchone()
        return self._row_to_event(row) if row else None

    @staticmethod
    def _row_to_event(row: aiosqlite.Row) -> Event:
        return Event(
            event_id=row["event_id"],
            run_id=row["run_id"],
            type=EventType(row["type"]),
            timestamp=datetime.fromisoformat(row["timestamp"]),
            data=_loads(row["data"]) or {},
            sequence=row["sequence"],
        )

    # Conversation Operations

    async def create_conversation(self, conversation: Conversation) -> None:
        conn = await self._db()
        # OR IGNORE: no rollback on the shared connection when a writer races us
        cursor = await conn.execute(
            """INSERT OR IGNORE INTO conversations (
                conversation_id, agent_id, user_id, title, created_at, updated_at, metadata
            ) VALUES (?, ?, ?, ?, ?, ?, ?)""",
            (
                conversation.conversation_id,
                conversation.agent_id,
                conversation.user_id,
                conversation.title,
                conversation.created_at.isoformat(),
                conversation.updated_at.isoformat(),
                _dumps(conversation.metadata),
            ),
        )
        inserted = cursor.rowcount
        await cursor.close()
        await conn.commit()
        if inserted == 0:
            raise ValueError(f"Conversation {conversation.conversation_id} already exists")

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        conn = await self._db()
        async with conn.execute(
            "SELECT * FROM conversations WHERE conversation_id = ?", (conversation_id,)
        ) as cursor:
            row = await cursor.fetchone()
        return self._row_to_conversation(row) if row else None

    async def list_conversations(
        self,
        user_id: str | None = None,
        agent_id: str | None = None,
        limit: int = 100,
        offset: int = 0,
    ) -> list[Conversation]:
        conn = await self._db()
        query = "SELECT * FROM conversations WHERE 1 = 1"
        params: list[Any] = []
        if user_id:
            query += " AND user_id = ?"
            params.append(user_id)
        if agent_id:
            query += " AND agent_id = ?"
            params.append(agent_id)
        query += " ORDER BY updated_at DESC LIMIT ? OFFSET ?"
        params.extend([limit, offset])

        rows = await conn.execute_fetchall(query, params)
        return [self._row_to_conversation(row) for row in rows]

    async def delete_conversation(self, conversation_id: str) -> None:
        conn = await self._db()
        await conn.execute("DELETE FROM messages WHERE conversation_id = ?", (conversation_id,))
        await conn.execute(
            "DELETE FROM conversations WHERE conversation_id = ?", (conversation_id,)
        )
        await conn.commit()

    @staticmethod
    def _row_to_conversation(row: aiosqlite.Row) -> Conversation:
        return Conversation(
            conversation_id=row["conversation_id"],
            agent_id=row["agent_id"],
            user_id=row["user_id"],
            title=row["title"],
            created_at=datetime.fromisoformat(row["created_at"]),
            updated_at=datetime.fromisoformat(row["updated_at"]),
            metadata=_loads(row["metadata"]) or {},
        )

    # Message Operations

    async def add_messages(self, conversation_id: str, messages: list[StoredMessage]) -> None:
        conn = await self._db()
        async with conn.execute(
            "SELECT COALESCE(MAX(sequence), -1) + 1 FROM messages WHERE conversation_id = ?",
            (conversation_id,),
        ) as cursor:
            row = await cursor.fetchone()
        next_sequence = row[0]

        try:
            for offset, message in enumerate(messages):
                message.sequence = next_sequence + offset
                await conn.execute(
                    """INSERT INTO messages (conversation_id, sequence, role, content, created_at)
                    VALUES (?, ?, ?, ?, ?)""",
                    (
                        conversation_id,
                        message.sequence,
                        message.role,
                        _dumps(message.content),
                        message.created_at.isoformat(),
                    ),
                )
            await conn.execute(
                "UPDATE conversations SET updated_at = ? WHERE conversation_id = ?",
                (datetime.now(UTC).isoformat(), conversation_id),
            )
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise

    async def get_messages(
        self,
        conversation_id: str,
        limit: int | None = None,
    ) -> list[StoredMessage]:
        conn = await self._db()
        if limit is not None:
            # Most recent `limit` messages, returned oldest first.
            rows = await conn.execute_fetchall(
                """SELECT * FROM (
                    SELECT * FROM messages WHERE conversation_id = ?
                    ORDER BY sequence DESC LIMIT ?
                ) ORDER BY sequence ASC""",
                (conversation_id, max(limit, 0)),
            )
        else:
            rows = await conn.execute_fetchall(
                "SELECT * FROM messages WHERE conversation_id = ? ORDER BY sequence ASC",
                (conversation_id,),
            )
        return [
            StoredMessage(
                conversation_id=row["conversation_id"],
                role=row["role"],
                content=_loads(row["content"]),
                sequence=row["sequence"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in rows
        ]

    def __repr__(self) -> str:
        return f"SQLiteStorageBackend(db_path={self.db_path!r})"
