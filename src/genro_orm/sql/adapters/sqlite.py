# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQLite async adapter using aiosqlite with per-request connections."""

from __future__ import annotations

import logging
import sqlite3
from typing import TYPE_CHECKING, Any

import aiosqlite

from ..build import SQLITE
from .base import DbAdapter, ExecResult, Rows

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

logger = logging.getLogger(__name__)


class SqliteAdapter(DbAdapter):
    """SQLite async adapter with per-request connections.

    Uses `?` and `:name` placeholders natively and accepts backtick-quoted
    identifiers. Each acquire() opens a new connection, release() closes it.

    Upserts use ON CONFLICT DO UPDATE and multi-column IN lists use a VALUES
    row list (SQLite 3.35+).
    """

    dialect = SQLITE
    errors = (sqlite3.Error,)

    def __init__(self, db_path: str):
        self.db_path = db_path or ":memory:"

    async def acquire(self) -> aiosqlite.Connection:
        """Open new connection for request."""
        conn = await aiosqlite.connect(self.db_path)
        logger.debug("SQLite connection opened: %s", self.db_path)
        return conn

    async def release(self, conn: aiosqlite.Connection) -> None:
        """Close connection."""
        await conn.close()
        logger.debug("SQLite connection closed: %s", self.db_path)

    async def shutdown(self) -> None:
        """No-op for SQLite (no pool to close)."""
        pass

    async def commit(self, conn: aiosqlite.Connection) -> None:
        """Commit transaction on connection."""
        await conn.commit()

    async def rollback(self, conn: aiosqlite.Connection) -> None:
        """Rollback transaction on connection."""
        await conn.rollback()

    async def execute(
        self, conn: aiosqlite.Connection, query: str, args: Sequence[Any] = ()
    ) -> ExecResult:
        """Execute statement with positional parameters."""
        async with conn.execute(query, tuple(args)) as cursor:
            return ExecResult(cursor.rowcount, cursor.lastrowid)

    async def execute_named(
        self, conn: aiosqlite.Connection, query: str, params: Mapping[str, Any]
    ) -> ExecResult:
        """Execute statement with named parameters."""
        async with conn.execute(query, dict(params)) as cursor:
            return ExecResult(cursor.rowcount, cursor.lastrowid)

    async def execute_many(
        self,
        conn: aiosqlite.Connection,
        query: str,
        params_list: Sequence[Mapping[str, Any]],
    ) -> ExecResult:
        """Execute named statement once per mapping (batch insert)."""
        async with conn.executemany(query, [dict(p) for p in params_list]) as cursor:
            return ExecResult(cursor.rowcount, cursor.lastrowid)

    async def query(
        self, conn: aiosqlite.Connection, query: str, args: Sequence[Any] = ()
    ) -> Rows:
        """Execute query, return an open cursor."""
        cursor = await conn.execute(query, tuple(args))
        return Rows(cursor)

    async def execute_script(self, conn: aiosqlite.Connection, script: str) -> None:
        """Execute multiple statements (for schema creation)."""
        await conn.executescript(script)
