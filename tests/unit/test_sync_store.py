"""
Unit tests for the table store.
"""

import pytest

from pdanalytics.storage.store import SyncStore, TableSchema
from pdanalytics.tables import MEMPOOL_SCHEMA, VOTE_SCHEMA, Mempool, Vote
from pdanalytics.utils.errors import DatabaseError
from tests.fixtures.sync_fixtures import SyncFixtures


def mempool_rows(count, start=0):
    records = SyncFixtures.mempool_records(count, start)
    return [Mempool.model_validate(record).model_dump(mode="json") for record in records]


class TestTableSchema:
    """Test schema validation and DDL."""

    def test_rejects_unknown_cursor_column(self):
        with pytest.raises(ValueError):
            TableSchema(name="t", columns=(("a", "INTEGER"),), cursor_column="b", key_columns=("a",))

    def test_rejects_unknown_key_column(self):
        with pytest.raises(ValueError):
            TableSchema(name="t", columns=(("a", "INTEGER"),), cursor_column="a", key_columns=("c",))

    def test_create_statements(self):
        table, index = MEMPOOL_SCHEMA.create_statements()
        assert table.startswith("CREATE TABLE IF NOT EXISTS mempool")
        assert "UNIQUE (time)" in table
        assert index == "CREATE INDEX IF NOT EXISTS idx_mempool_time ON mempool(time)"


class TestSyncStore:
    """Test persistence used by the sync protocol."""

    @pytest.mark.asyncio
    async def test_last_entry_empty_table(self, peer_store):
        assert await peer_store.last_entry("mempool") is None

    @pytest.mark.asyncio
    async def test_last_entry_is_newest_cursor_value(self, peer_store):
        rows = mempool_rows(3)
        await peer_store.save_many_from_sync("mempool", list(reversed(rows)))

        assert await peer_store.last_entry("mempool") == "2024-01-01T00:02:00Z"

    @pytest.mark.asyncio
    async def test_duplicate_rows_are_ignored(self, peer_store):
        rows = mempool_rows(4)

        assert await peer_store.save_many_from_sync("mempool", rows) == 4
        assert await peer_store.save_many_from_sync("mempool", rows[2:] + mempool_rows(1, start=4)) == 1
        assert not await peer_store.save_from_sync("mempool", rows[0])
        assert await peer_store.count("mempool") == 5

    @pytest.mark.asyncio
    async def test_save_nothing(self, peer_store):
        assert await peer_store.save_many_from_sync("mempool", []) == 0

    @pytest.mark.asyncio
    async def test_fetch_for_sync_pages_after_cursor(self, local_store):
        await local_store.save_many_from_sync("mempool", mempool_rows(10))

        rows, total = await local_store.fetch_for_sync("mempool", "2024-01-01T00:03:00Z", 2, 3)

        assert total == 6
        assert [row["time"] for row in rows] == [
            "2024-01-01T00:06:00Z",
            "2024-01-01T00:07:00Z",
            "2024-01-01T00:08:00Z",
        ]

    @pytest.mark.asyncio
    async def test_fetch_for_sync_past_the_end(self, local_store):
        await local_store.save_many_from_sync("mempool", mempool_rows(2))

        rows, total = await local_store.fetch_for_sync("mempool", "1970-01-01T00:00:00Z", 1000, 1000)

        assert rows == []
        assert total == 2

    @pytest.mark.asyncio
    async def test_inclusive_cursor_serves_rows_at_the_cursor(self, local_store):
        first, second = SyncFixtures.vote_records(2)
        second["receive_time"] = first["receive_time"]
        rows = [Vote.model_validate(record).model_dump(mode="json") for record in (first, second)]
        await local_store.save_many_from_sync("vote", rows)

        rows, total = await local_store.fetch_for_sync("vote", first["receive_time"], 0, 10)

        assert VOTE_SCHEMA.cursor_operator == ">="
        assert MEMPOOL_SCHEMA.cursor_operator == ">"
        assert total == 2
        assert [row["hash"] for row in rows] == [first["hash"], second["hash"]]

    @pytest.mark.asyncio
    async def test_unmanaged_table(self, temp_dir):
        store = SyncStore.open(temp_dir / "bare.db")
        await store.initialize()
        try:
            assert store.label == "bare"
            assert store.table_names() == []
            with pytest.raises(DatabaseError):
                await store.last_entry("mempool")
        finally:
            await store.close()

    @pytest.mark.asyncio
    async def test_tables_survive_reopen(self, temp_dir):
        path = temp_dir / "reopen.db"
        store = SyncStore.open(path)
        await store.initialize([MEMPOOL_SCHEMA])
        await store.save_many_from_sync("mempool", mempool_rows(3))
        await store.close()

        store = SyncStore.open(path)
        await store.initialize([MEMPOOL_SCHEMA])
        try:
            assert await store.count("mempool") == 3
        finally:
            await store.close()
