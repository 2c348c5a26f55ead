"""Mempool snapshots, keyed and ordered by snapshot time."""

from pydantic import BaseModel

from ..datasync.syncer import TableSyncer, Timestamp, TimestampCursor
from ..storage.store import TableSchema


class Mempool(BaseModel):
    time: Timestamp
    first_seen_time: Timestamp
    number_of_transactions: int = 0
    voters: int = 0
    tickets: int = 0
    revocations: int = 0
    size: int = 0
    total_fee: float = 0.0
    total: float = 0.0


MEMPOOL_SCHEMA = TableSchema(
    name="mempool",
    columns=(
        ("time", "TEXT NOT NULL"),
        ("first_seen_time", "TEXT NOT NULL"),
        ("number_of_transactions", "INTEGER NOT NULL DEFAULT 0"),
        ("voters", "INTEGER NOT NULL DEFAULT 0"),
        ("tickets", "INTEGER NOT NULL DEFAULT 0"),
        ("revocations", "INTEGER NOT NULL DEFAULT 0"),
        ("size", "INTEGER NOT NULL DEFAULT 0"),
        ("total_fee", "REAL NOT NULL DEFAULT 0"),
        ("total", "REAL NOT NULL DEFAULT 0"),
    ),
    cursor_column="time",
    key_columns=("time",),
)


class MempoolSyncer(TableSyncer[Mempool]):
    record_model = Mempool
    schema = MEMPOOL_SCHEMA
    cursor = TimestampCursor()
