# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Async SQL layer: statement builders, row mapper, adapters and the SqlDb client.

Components:
    SqlDb: ORM client with per-request connections and transaction
           context manager.
    SchemaResolver: Cache from result column names to record fields.
    SqlLogHook: Statement logging (slow statements, echo, errors).
    DbAdapter: Abstract base for SQLite/MySQL adapters.
    build: Pure functions producing (sql, args) for every statement.

Transaction Model:
    - connection(): Acquires a connection, commits on success, rolls back
      on exception and releases it
    - shutdown(): Application shutdown only

Example:
    Records are dataclasses whose fields carry a column tag::

        from dataclasses import dataclass
        from genro_orm import column
        from genro_orm.sql import SqlDb

        @dataclass
        class User:
            id: int = column("id")
            name: str = column("name")
            tags: list[str] = column("tags", default_factory=list)

            @classmethod
            def table_name(cls) -> str:
                return "users"

        db = SqlDb("/data/app.db")
        async with db.connection():
            await db.upsert([User(1, "ann", ["a"]), User(2, "bob")])
            users = await db.search(list[User], "WHERE `id` IN (?)", [1, 2])
            total = await db.count("users")
"""

from .adapters import DbAdapter, ExecResult, Rows, get_adapter
from .build import MYSQL, SQLITE, Dialect
from .hooks import SqlLogHook
from .mapper import SchemaResolver
from .sqldb import SqlDb

__all__ = [
    "SqlDb",
    "SchemaResolver",
    "SqlLogHook",
    "DbAdapter",
    "ExecResult",
    "Rows",
    "get_adapter",
    "Dialect",
    "MYSQL",
    "SQLITE",
]
