"""Base repository class for database operations.

Provides common functionality for all repository classes including
connection management, async execution patterns and error translation.
"""

from __future__ import annotations

import asyncio
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Callable, Generic, Iterator, Sequence, TypeVar

from ..errors import StoreError

T = TypeVar("T")

# Stays under SQLITE_MAX_VARIABLE_NUMBER on old builds (999)
IN_CHUNK_SIZE = 500


def placeholders(values: Sequence[Any]) -> str:
    """Build a '?,?,?' placeholder list for an IN clause."""
    return ",".join("?" * len(values))


def chunked(values: Sequence[Any], size: int) -> Iterator[Sequence[Any]]:
    """Split values into consecutive slices of at most ``size``."""
    for start in range(0, len(values), size):
        yield values[start:start + size]


class BaseRepository(Generic[T]):
    """Base repository with common database operations.

    Provides:
    - Connection management
    - Async execution via run_in_executor
    - Transaction support
    - sqlite3 errors re-raised as StoreError

    Subclasses should implement entity-specific query operations.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize repository with database path.

        Args:
            db_path: Path to SQLite database file.
        """
        self.db_path = Path(db_path).expanduser()

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[sqlite3.Connection]:
        """Context manager for database connections.

        Yields:
            SQLite connection with row factory set to sqlite3.Row.

        Raises:
            StoreError: If the connection or any statement run inside fails.
        """
        loop = asyncio.get_running_loop()
        try:
            conn = await loop.run_in_executor(
                None,
                lambda: sqlite3.connect(self.db_path, check_same_thread=False),
            )
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open database {self.db_path}: {e}") from e
        conn.row_factory = sqlite3.Row

        try:
            yield conn
        except sqlite3.Error as e:
            raise StoreError(f"Database error: {e}") from e
        finally:
            await loop.run_in_executor(None, conn.close)

    async def _fetch_all(self, query: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        """Run a SELECT and return all rows.

        Args:
            query: SQL query string.
            params: Query parameters.

        Returns:
            List of sqlite3.Row.
        """
        async with self._connection() as conn:
            loop = asyncio.get_running_loop()
            return await loop.run_in_executor(
                None, lambda: conn.execute(query, tuple(params)).fetchall()
            )

    async def _fetch_all_in(self, query: str, ids: Sequence[Any]) -> list[sqlite3.Row]:
        """Run a SELECT whose ``IN ({ids})`` clause is filled in chunks.

        Args:
            query: SQL query with an ``{ids}`` slot for the placeholder list.
            ids: Values bound to the IN clause.

        Returns:
            Rows of every chunk, in chunk order.
        """
        rows: list[sqlite3.Row] = []
        for chunk in chunked(list(ids), IN_CHUNK_SIZE):
            rows.extend(await self._fetch_all(query.format(ids=placeholders(chunk)), chunk))
        return rows

    async def _execute(self, query: str, params: Sequence[Any] = ()) -> int:
        """Execute a write statement and commit.

        Args:
            query: SQL statement.
            params: Statement parameters.

        Returns:
            Number of rows affected.
        """
        async with self._connection() as conn:
            loop = asyncio.get_running_loop()

            def _run():
                cursor = conn.execute(query, tuple(params))
                conn.commit()
                return cursor.rowcount

            return await loop.run_in_executor(None, _run)

    async def _execute_many(
        self,
        query: str,
        params_list: list[tuple],
    ) -> int:
        """Execute a query with multiple parameter sets.

        Args:
            query: SQL query string.
            params_list: List of parameter tuples.

        Returns:
            Number of rows affected.
        """
        async with self._connection() as conn:
            loop = asyncio.get_running_loop()

            def _run():
                conn.executemany(query, params_list)
                conn.commit()
                return len(params_list)

            return await loop.run_in_executor(None, _run)

    async def _run_in_transaction(
        self,
        operations: Callable[[sqlite3.Connection], T],
    ) -> T:
        """Run operations within a transaction.

        Args:
            operations: Function that takes connection and performs operations.

        Returns:
            Result from operations function.
        """
        async with self._connection() as conn:
            loop = asyncio.get_running_loop()

            def _run():
                try:
                    result = operations(conn)
                    conn.commit()
                    return result
                except Exception:
                    conn.rollback()
                    raise

            return await loop.run_in_executor(None, _run)
