"""
Table-shaped store used by the data sync subsystem.

Each registered table is described by a ``TableSchema``; the store creates
the table, answers "what is the newest row I hold" for cursor resolution,
appends synced rows idempotently and serves cursor-relative pages to peers.
"""

import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .database import Database
from ..utils.errors import DatabaseError
from ..utils.logging import get_logger, log_function_call


logger = get_logger("pdanalytics.storage")


@dataclass(frozen=True)
class TableSchema:
    """Column layout of a synced table.

    ``cursor_column`` orders the table for replication; ``key_columns`` form
    the unique key that makes re-delivered rows no-ops. Set
    ``inclusive_cursor`` when several rows can share one cursor value, so
    rows equal to the cursor are served again instead of being skipped.
    """
    name: str
    columns: Tuple[Tuple[str, str], ...]
    cursor_column: str
    key_columns: Tuple[str, ...]
    inclusive_cursor: bool = False

    def __post_init__(self):
        names = self.column_names
        if self.cursor_column not in names:
            raise ValueError(f"cursor column {self.cursor_column!r} not in {self.name}")
        missing = [c for c in self.key_columns if c not in names]
        if missing:
            raise ValueError(f"key columns {missing} not in {self.name}")

    @property
    def column_names(self) -> List[str]:
        return [name for name, _ in self.columns]

    @property
    def cursor_operator(self) -> str:
        return ">=" if self.inclusive_cursor else ">"

    def create_statements(self) -> List[str]:
        columns = ",\n    ".join(f"{name} {sql_type}" for name, sql_type in self.columns)
        keys = ", ".join(self.key_columns)
        return [
            f"CREATE TABLE IF NOT EXISTS {self.name} (\n    {columns},\n    UNIQUE ({keys})\n)",
            f"CREATE INDEX IF NOT EXISTS idx_{self.name}_{self.cursor_column} "
            f"ON {self.name}({self.cursor_column})",
        ]


class SyncStore:
    """SQLite store for replicated tables."""

    def __init__(self, db: Database, label: Optional[str] = None):
        self.db = db
        self.label = label or db.db_path.stem
        self._schemas: Dict[str, TableSchema] = {}

    @classmethod
    def open(cls, db_path: Path | str, label: Optional[str] = None, **db_options) -> "SyncStore":
        """Create a store over a new database wrapper for ``db_path``."""
        return cls(Database(db_path, **db_options), label=label)

    async def initialize(self, schemas: Sequence[TableSchema] = ()) -> None:
        """Connect and create the tables for ``schemas``."""
        await self.db.connect()
        for schema in schemas:
            await self.ensure_table(schema)

    async def close(self) -> None:
        await self.db.close()

    async def ensure_table(self, schema: TableSchema) -> None:
        """Create ``schema``'s table and index if they do not exist."""
        try:
            for statement in schema.create_statements():
                await self.db.execute(statement)
        except sqlite3.Error as e:
            raise DatabaseError(f"error creating table {schema.name}: {e}", cause=e) from e
        self._schemas[schema.name] = schema
        logger.debug("table_ready", store=self.label, table=schema.name)

    def table_names(self) -> List[str]:
        return list(self._schemas)

    def schema(self, table: str) -> TableSchema:
        try:
            return self._schemas[table]
        except KeyError:
            raise DatabaseError(f"table {table} is not managed by store {self.label}") from None

    async def last_entry(self, table: str) -> Optional[Any]:
        """Return the cursor column value of the newest row, or None when empty."""
        schema = self.schema(table)
        column = schema.cursor_column
        try:
            row = await self.db.fetchone(
                f"SELECT {column} FROM {table} ORDER BY {column} DESC LIMIT 1"
            )
        except sqlite3.Error as e:
            raise DatabaseError(f"error reading last entry of {table}: {e}", cause=e) from e
        return None if row is None else row[0]

    async def save_from_sync(self, table: str, record: Dict[str, Any]) -> bool:
        """Insert one synced row; returns False when the row already exists."""
        return await self.save_many_from_sync(table, [record]) == 1

    async def save_many_from_sync(self, table: str, records: Sequence[Dict[str, Any]]) -> int:
        """
        Insert synced rows in a single transaction.

        Rows whose unique key is already present are skipped.

        Returns:
            Number of rows actually inserted
        """
        if not records:
            return 0
        schema = self.schema(table)
        columns = schema.column_names
        sql = (
            f"INSERT OR IGNORE INTO {table} ({', '.join(columns)}) "
            f"VALUES ({', '.join('?' for _ in columns)})"
        )
        statements = [(sql, [record.get(column) for column in columns]) for record in records]
        try:
            return await self.db.execute_in_transaction(statements)
        except sqlite3.Error as e:
            raise DatabaseError(f"error saving synced {table} rows: {e}", cause=e) from e

    @log_function_call(logger)
    async def fetch_for_sync(
        self,
        table: str,
        after: Any,
        skip: int,
        take: int,
    ) -> Tuple[List[Dict[str, Any]], int]:
        """
        Page through rows newer than ``after`` (or equal to it, for tables
        with an inclusive cursor).

        Rows are ordered by the cursor column, then the unique key, so a
        fixed ``after`` and growing ``skip`` walk the table deterministically.

        Returns:
            (rows, total number of rows newer than ``after``)
        """
        schema = self.schema(table)
        cursor = schema.cursor_column
        op = schema.cursor_operator
        order = ", ".join([cursor, *[c for c in schema.key_columns if c != cursor]])
        try:
            rows = await self.db.fetchall(
                f"SELECT {', '.join(schema.column_names)} FROM {table} "
                f"WHERE {cursor} {op} ? ORDER BY {order} LIMIT ? OFFSET ?",
                (after, take, skip),
            )
            total = await self.db.fetchone(
                f"SELECT COUNT(*) FROM {table} WHERE {cursor} {op} ?", (after,)
            )
        except sqlite3.Error as e:
            raise DatabaseError(f"error fetching {table} rows for sync: {e}", cause=e) from e
        return [dict(row) for row in rows], total[0]

    async def count(self, table: str) -> int:
        self.schema(table)
        row = await self.db.fetchone(f"SELECT COUNT(*) FROM {table}")
        return row[0]

    def __repr__(self) -> str:
        return f"SyncStore(label={self.label!r}, path={str(self.db.db_path)!r})"


__all__ = ['TableSchema', 'SyncStore']
