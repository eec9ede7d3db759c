"""SQLite conversation store.

Provides persistent chat history using a SQLite database file.
Uses aiosqlite for async access.
"""

from datetime import datetime, timezone
from pathlib import Path

import aiosqlite

from .base import ConversationStore


class SQLiteConversationStore(ConversationStore):
    """SQLite-backed conversation store.

    Records live in one key/payload table; both records of a user are
    written in a single transaction.
    """

    def __init__(self, path: str | Path = "./finadvisor_chat.db"):
        self._db_path = Path(path)
        self._connection: aiosqlite.Connection | None = None

    async def connect(self) -> None:
        """Open the database and create the schema."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._connection = await aiosqlite.connect(self._db_path)
        await self._connection.execute("""
            CREATE TABLE IF NOT EXISTS chat_records (
                key TEXT PRIMARY KEY,
                payload TEXT NOT NULL,
                updated_at TEXT NOT NULL
            )
        """)
        await self._connection.commit()

    async def disconnect(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if self._connection is None:
            raise RuntimeError("SQLiteConversationStore is not connected")
        return self._connection

    async def _read_record(self, key: str) -> str | None:
        connection = self._require_connection()
        async with connection.execute(
            "SELECT payload FROM chat_records WHERE key = ?",
            (key,)
        ) as cursor:
            row = await cursor.fetchone()
        return row[0] if row else None

    async def _write_records(self, records: dict[str, str]) -> None:
        connection = self._require_connection()
        now = datetime.now(timezone.utc).isoformat()
        await connection.executemany("""
            INSERT INTO chat_records (key, payload, updated_at)
            VALUES (?, ?, ?)
            ON CONFLICT(key) DO UPDATE SET
                payload = excluded.payload,
                updated_at = excluded.updated_at
        """, [(key, payload, now) for key, payload in records.items()])
        await connection.commit()

    async def _delete_records(self, keys: list[str]) -> None:
        connection = self._require_connection()
        await connection.executemany(
            "DELETE FROM chat_records WHERE key = ?",
            [(key,) for key in keys]
        )
        await connection.commit()

    @property
    def backend_type(self) -> str:
        return "sqlite"

    @property
    def db_path(self) -> Path:
        return self._db_path
