"""Tests for Storage."""

from datetime import datetime, timezone

import pytest

from agui_stream.models import MemoryEntry
from agui_stream.storage import MAX_RECENT_QUERIES, Storage


def entry(question: str, sources=None) -> MemoryEntry:
    return MemoryEntry(
        question=question,
        used_sources=sources or [],
        timestamp=datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc),
    )


class TestStorageInit:
    """Tests for Storage initialization."""

    async def test_init_creates_tables(self, storage):
        """Test that init creates all tables."""
        async with storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            assert "agent_memory" in tables
            assert "agent_memory_log" in tables

    async def test_init_creates_parent_directory(self, tmp_path):
        """Test that a file database gets its directory created."""
        db_path = tmp_path / "nested" / "memory.db"
        st = Storage(db_path)
        await st.init()
        await st.close()

        assert db_path.exists()

    async def test_use_before_init_raises(self):
        st = Storage(":memory:")
        with pytest.raises(RuntimeError, match="not initialized"):
            await st.get_memory("u1")


class TestStorageMemory:
    """Tests for agent memory."""

    async def test_get_memory_missing(self, storage):
        assert await storage.get_memory("nobody") is None

    async def test_remember_query_creates_memory(self, storage):
        """Test that the first query creates the memory row."""
        memory = await storage.remember_query("u1", entry("2+2?", ["memory"]))

        assert memory.user_id == "u1"
        assert [q.question for q in memory.recent_queries] == ["2+2?"]

        loaded = await storage.get_memory("u1")
        assert loaded.recent_queries == memory.recent_queries
        assert loaded.preferences == {}
        assert loaded.updated_at is not None

    async def test_recent_queries_newest_first(self, storage):
        await storage.remember_query("u1", entry("first"))
        await storage.remember_query("u1", entry("second"))

        memory = await storage.get_memory("u1")
        assert [q.question for q in memory.recent_queries] == ["second", "first"]

    async def test_recent_queries_capped(self, storage):
        """Test that only the most recent queries are kept."""
        for i in range(MAX_RECENT_QUERIES + 3):
            await storage.remember_query("u1", entry(f"q{i}"))

        memory = await storage.get_memory("u1")
        assert len(memory.recent_queries) == MAX_RECENT_QUERIES
        assert memory.recent_queries[0].question == f"q{MAX_RECENT_QUERIES + 2}"

    async def test_memory_is_per_user(self, storage):
        await storage.remember_query("u1", entry("mine"))
        assert await storage.get_memory("u2") is None

    async def test_memory_log(self, storage):
        """Test that every remembered query is logged, newest first."""
        await storage.remember_query("u1", entry("first", ["sql"]))
        await storage.remember_query("u1", entry("second"))

        log = await storage.get_memory_log("u1")
        assert [item["data"]["question"] for item in log] == ["second", "first"]
        assert log[1]["action"] == "remember_query"
        assert log[1]["data"]["used_sources"] == ["sql"]

        assert len(await storage.get_memory_log("u1", limit=1)) == 1

    async def test_clear(self, storage):
        await storage.remember_query("u1", entry("q"))
        await storage.clear()

        assert await storage.get_memory("u1") is None
        assert await storage.get_memory_log("u1") == []
