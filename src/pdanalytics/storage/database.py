"""
Simple database wrapper for pdanalytics.

This module provides a thin wrapper around aiosqlite for database operations.
"""

import aiosqlite
from pathlib import Path
from typing import Optional, List, Iterable
import asyncio


class Database:
    """Async SQLite database wrapper."""

    def __init__(self, db_path: Path | str, timeout: float = 30.0,
                 journal_mode: str = "WAL", synchronous: str = "NORMAL"):
        """
        Initialize database wrapper.

        Args:
            db_path: Path to SQLite database file
            timeout: Seconds to wait on a locked database
            journal_mode: SQLite journal mode (WAL lets readers run beside the writer)
            synchronous: SQLite synchronous pragma
        """
        self.db_path = Path(db_path)
        self.timeout = timeout
        self.journal_mode = journal_mode
        self.synchronous = synchronous
        self._connection: Optional[aiosqlite.Connection] = None
        self._lock = asyncio.Lock()

    async def connect(self) -> None:
        """Open database connection."""
        if self._connection is None:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._connection = await aiosqlite.connect(
                self.db_path,
                timeout=self.timeout,
                isolation_level=None  # Autocommit mode
            )
            self._connection.row_factory = aiosqlite.Row
            await self._connection.execute(f"PRAGMA journal_mode={self.journal_mode}")
            await self._connection.execute(f"PRAGMA synchronous={self.synchronous}")

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def execute(self, sql: str, parameters: Iterable = ()) -> None:
        """Execute a single statement."""
        async with self._lock:
            if not self._connection:
                await self.connect()
            await self._connection.execute(sql, tuple(parameters))

    async def execute_in_transaction(self, statements: List[tuple]) -> int:
        """
        Execute ``(sql, parameters)`` pairs in one transaction.

        Returns:
            Total number of rows changed
        """
        async with self._lock:
            if not self._connection:
                await self.connect()
            changed = 0
            await self._connection.execute("BEGIN")
            try:
                for sql, parameters in statements:
                    cursor = await self._connection.execute(sql, tuple(parameters))
                    changed += max(cursor.rowcount, 0)
                    await cursor.close()
                await self._connection.execute("COMMIT")
            except Exception:
                await self._connection.execute("ROLLBACK")
                raise
            return changed

    async def fetchone(self, sql: str, parameters: Iterable = ()) -> Optional[aiosqlite.Row]:
        """
        Execute query and fetch one result.

        Args:
            sql: SQL query
            parameters: Query parameters

        Returns:
            Single row or None
        """
        async with self._lock:
            if not self._connection:
                await self.connect()
            async with self._connection.execute(sql, tuple(parameters)) as cursor:
                return await cursor.fetchone()

    async def fetchall(self, sql: str, parameters: Iterable = ()) -> List[aiosqlite.Row]:
        """
        Execute query and fetch all results.

        Args:
            sql: SQL query
            parameters: Query parameters

        Returns:
            List of rows
        """
        async with self._lock:
            if not self._connection:
                await self.connect()
            async with self._connection.execute(sql, tuple(parameters)) as cursor:
                return list(await cursor.fetchall())

    @property
    def connection(self) -> Optional[aiosqlite.Connection]:
        """Get raw connection object."""
        return self._connection

    async def __aenter__(self):
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
