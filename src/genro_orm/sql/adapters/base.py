# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Base adapter class for async database backends, result cursor and write result."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ..build import MYSQL, Dialect

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence


@dataclass(frozen=True)
class ExecResult:
    """Outcome of a write statement.

    Attributes:
        rows_affected: Rows inserted/updated/deleted as reported by the driver.
        last_insert_id: Auto-increment id generated by the last insert, if any.
            For multi-row inserts MySQL reports the id of the first row.
    """

    rows_affected: int
    last_insert_id: int | None = None


class Rows:
    """Async result cursor handed to the row mapper.

    Wraps a DB-API style async cursor (aiosqlite, mysql.connector.aio).
    Column names are read once from the cursor description. The cursor is
    released by close(), which is idempotent; use it as an async context
    manager to close on every exit path::

        async with await db.query("SELECT `id` FROM `users`") as rows:
            async for row in rows:
                ...
    """

    def __init__(self, cursor: Any):
        self._cursor = cursor
        self.columns: list[str] = [d[0] for d in cursor.description or ()]
        self.closed = False

    async def fetchone(self) -> tuple[Any, ...] | None:
        """Return the next row as a tuple, None when exhausted."""
        if self.closed:
            return None
        row = await self._cursor.fetchone()
        return None if row is None else tuple(row)

    async def close(self) -> None:
        """Release the underlying cursor."""
        if self.closed:
            return
        self.closed = True
        await self._cursor.close()

    async def __aenter__(self) -> Rows:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __aiter__(self) -> Rows:
        return self

    async def __anext__(self) -> tuple[Any, ...]:
        row = await self.fetchone()
        if row is None:
            raise StopAsyncIteration
        return row


class DbAdapter(ABC):
    """Abstract base class for async database adapters.

    Provides a unified interface for SQLite and MySQL with:
    - Connection management (acquire, release, shutdown)
    - Transaction control (commit, rollback on connection)
    - Statement execution with positional `?` or named `:name` parameters
    - Result cursors (query) consumed by the row mapper

    Connection model:
    - acquire(): Returns a new connection (from pool or new file handle)
    - release(conn): Returns connection to pool or closes it
    - shutdown(): Closes resources held for the whole application

    SqlDb manages connection lifecycle via contextvars for per-request isolation.

    Subclasses set:
    - dialect: statement shapes used by the builders (upsert, row values).
    - errors: driver exception classes, wrapped into ExecutionError by SqlDb.
    """

    dialect: Dialect = MYSQL
    errors: tuple[type[BaseException], ...] = ()

    @abstractmethod
    async def acquire(self) -> Any:
        """Acquire a new connection.

        Returns:
            Database connection object.
        """
        ...

    @abstractmethod
    async def release(self, conn: Any) -> None:
        """Release a connection (return it to the pool or close it)."""
        ...

    @abstractmethod
    async def shutdown(self) -> None:
        """Release application-wide resources (application shutdown)."""
        ...

    @abstractmethod
    async def commit(self, conn: Any) -> None:
        """Commit transaction on connection."""
        ...

    @abstractmethod
    async def rollback(self, conn: Any) -> None:
        """Rollback transaction on connection."""
        ...

    # -------------------------------------------------------------------------
    # Connection-bound operations
    # -------------------------------------------------------------------------

    @abstractmethod
    async def execute(self, conn: Any, query: str, args: Sequence[Any] = ()) -> ExecResult:
        """Execute a statement with positional `?` parameters."""
        ...

    @abstractmethod
    async def execute_named(
        self, conn: Any, query: str, params: Mapping[str, Any]
    ) -> ExecResult:
        """Execute a statement with named `:name` parameters."""
        ...

    @abstractmethod
    async def execute_many(
        self, conn: Any, query: str, params_list: Sequence[Mapping[str, Any]]
    ) -> ExecResult:
        """Execute a named statement once per mapping (batch insert)."""
        ...

    @abstractmethod
    async def query(self, conn: Any, query: str, args: Sequence[Any] = ()) -> Rows:
        """Execute a SELECT with positional parameters and return its cursor."""
        ...

    @abstractmethod
    async def execute_script(self, conn: Any, script: str) -> None:
        """Execute multiple statements on connection (for schema creation)."""
        ...
