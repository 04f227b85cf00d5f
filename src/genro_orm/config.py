# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Configuration for SqlDb.

Configuration via environment variables:
    GENRO_ORM_DB: Database path (SQLite file or mysql:// URL)
    GENRO_ORM_TAG: Field metadata key holding column names (default: db)
    GENRO_ORM_STRICT: Fail on result columns without a field (default: true)
    GENRO_ORM_PRINT_SQL: Log every statement at INFO (default: false)
    GENRO_ORM_SLOW_QUERY: Seconds above which a statement is logged as slow (default: 1.0)

Usage:
    # From environment (Docker/production):
    config = config_from_env()
    db = SqlDb(config.db_path, config=config)

    # Explicit configuration:
    config = OrmConfig(db_path="/data/app.db", print_sql=True)
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .records import TAG

_TRUE = ("1", "true", "yes")

SLOW_QUERY_SECONDS = 1.0
"""Default latency (seconds) above which a statement is logged as slow."""


@dataclass
class OrmConfig:
    """Settings shared by SqlDb, the row mapper and the SQL log hook.

    Attributes:
        db_path: SQLite path or MySQL URL.
        tag: Field metadata key holding column names.
        strict_mapping: Raise when a result column matches no record field.
        print_sql: Log every statement at INFO level.
        slow_query_seconds: Latency above which a statement is logged as slow.
    """

    db_path: str = ":memory:"
    tag: str = TAG
    strict_mapping: bool = True
    print_sql: bool = False
    slow_query_seconds: float = SLOW_QUERY_SECONDS


def config_from_env() -> OrmConfig:
    """Build OrmConfig from GENRO_ORM_* environment variables."""
    return OrmConfig(
        db_path=os.environ.get("GENRO_ORM_DB", ":memory:"),
        tag=os.environ.get("GENRO_ORM_TAG", TAG),
        strict_mapping=os.environ.get("GENRO_ORM_STRICT", "true").lower() in _TRUE,
        print_sql=os.environ.get("GENRO_ORM_PRINT_SQL", "").lower() in _TRUE,
        slow_query_seconds=float(
            os.environ.get("GENRO_ORM_SLOW_QUERY", str(SLOW_QUERY_SECONDS))
        ),
    )


__all__ = ["OrmConfig", "config_from_env"]
