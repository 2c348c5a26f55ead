"""Voting service provider ticks."""

from pydantic import BaseModel

from ..datasync.syncer import IntegerCursor, TableSyncer, Timestamp
from ..storage.store import TableSchema


class VSPTick(BaseModel):
    """One observation of a VSP's pool statistics."""
    id: int
    vsp: str
    immature: int = 0
    live: int = 0
    voted: int = 0
    missed: int = 0
    pool_fees: float = 0.0
    proportion_live: float = 0.0
    proportion_missed: float = 0.0
    user_count: int = 0
    users_active: int = 0
    time: Timestamp


VSP_TICK_SCHEMA = TableSchema(
    name="vsp_tick",
    columns=(
        ("id", "INTEGER NOT NULL"),
        ("vsp", "TEXT NOT NULL"),
        ("immature", "INTEGER NOT NULL DEFAULT 0"),
        ("live", "INTEGER NOT NULL DEFAULT 0"),
        ("voted", "INTEGER NOT NULL DEFAULT 0"),
        ("missed", "INTEGER NOT NULL DEFAULT 0"),
        ("pool_fees", "REAL NOT NULL DEFAULT 0"),
        ("proportion_live", "REAL NOT NULL DEFAULT 0"),
        ("proportion_missed", "REAL NOT NULL DEFAULT 0"),
        ("user_count", "INTEGER NOT NULL DEFAULT 0"),
        ("users_active", "INTEGER NOT NULL DEFAULT 0"),
        ("time", "TEXT NOT NULL"),
    ),
    cursor_column="id",
    key_columns=("vsp", "time"),
)


class VSPTickSyncer(TableSyncer[VSPTick]):
    record_model = VSPTick
    schema = VSP_TICK_SCHEMA
    cursor = IntegerCursor()
