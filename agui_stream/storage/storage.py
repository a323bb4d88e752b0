"""SQLite storage for agent memory."""

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import aiosqlite

from ..config import resolve_db_path
from ..models import AgentMemory, MemoryEntry

MAX_RECENT_QUERIES = 10


class IStorage(Protocol):
    """Persistent storage for agent memory (SQLite)."""

    async def init(self) -> None:
        """Initialize database and create tables."""
        ...

    async def close(self) -> None:
        """Close database connection."""
        ...

    async def get_memory(self, user_id: str) -> AgentMemory | None:
        """Get what is remembered about a requester."""
        ...

    async def remember_query(self, user_id: str, entry: MemoryEntry) -> AgentMemory:
        """Prepend a query to the requester's recent queries."""
        ...

    async def get_memory_log(self, user_id: str, limit: int = 100) -> list[dict]:
        """Get memory update log entries (newest first)."""
        ...

    async def clear(self) -> None:
        """Clear all data."""
        ...


def _entry_to_dict(entry: MemoryEntry) -> dict:
    return {
        "question": entry.question,
        "used_sources": entry.used_sources,
        "timestamp": entry.timestamp.isoformat(),
    }


def _entry_from_dict(data: dict) -> MemoryEntry:
    return MemoryEntry(
        question=data["question"],
        used_sources=list(data.get("used_sources", [])),
        timestamp=datetime.fromisoformat(data["timestamp"]),
    )


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None

    async def init(self) -> None:
        """Initialize database and create tables."""
        if self._db_path != ":memory:":
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
        self._conn = await aiosqlite.connect(self._db_path)

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    async def get_memory(self, user_id: str) -> AgentMemory | None:
        """Get what is remembered about a requester."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        cursor = await self._conn.execute(
            """
            SELECT user_id, preferences, recent_queries, updated_at
            FROM agent_memory
            WHERE user_id = ?
            """,
            (user_id,),
        )
        row = await cursor.fetchone()

        if not row:
            return None

        return AgentMemory(
            user_id=row[0],
            preferences=json.loads(row[1]),
            recent_queries=[_entry_from_dict(q) for q in json.loads(row[2])],
            updated_at=(
                datetime.fromisoformat(row[3]).replace(tzinfo=timezone.utc)
                if row[3]
                else None
            ),
        )

    async def remember_query(self, user_id: str, entry: MemoryEntry) -> AgentMemory:
        """Prepend a query to the requester's recent queries."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        memory = await self.get_memory(user_id) or AgentMemory(user_id=user_id)
        memory.recent_queries = [entry, *memory.recent_queries][:MAX_RECENT_QUERIES]

        await self._conn.execute(
            """
            INSERT INTO agent_memory (user_id, preferences, recent_queries, updated_at)
            VALUES (?, ?, ?, CURRENT_TIMESTAMP)
            ON CONFLICT(user_id) DO UPDATE SET
                recent_queries = excluded.recent_queries,
                updated_at = CURRENT_TIMESTAMP
            """,
            (
                user_id,
                json.dumps(memory.preferences),
                json.dumps([_entry_to_dict(q) for q in memory.recent_queries]),
            ),
        )
        await self._conn.execute(
            """
            INSERT INTO agent_memory_log (user_id, action, data)
            VALUES (?, ?, ?)
            """,
            (user_id, "remember_query", json.dumps(_entry_to_dict(entry))),
        )
        await self._conn.commit()

        return memory

    async def get_memory_log(self, user_id: str, limit: int = 100) -> list[dict]:
        """Get memory update log entries (newest first)."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        cursor = await self._conn.execute(
            """
            SELECT action, data
            FROM agent_memory_log
            WHERE user_id = ?
            ORDER BY id DESC
            LIMIT ?
            """,
            (user_id, limit),
        )
        rows = await cursor.fetchall()

        return [{"action": row[0], "data": json.loads(row[1])} for row in rows]

    async def clear(self) -> None:
        """Clear all data."""
        if not self._conn:
            raise RuntimeError("Storage not initialized")

        await self._conn.execute("DELETE FROM agent_memory_log")
        await self._conn.execute("DELETE FROM agent_memory")
        await self._conn.commit()
