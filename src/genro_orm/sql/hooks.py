# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""SQL statement logging: slow statements, optional echo, driver errors."""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from ..config import SLOW_QUERY_SECONDS

logger = logging.getLogger(__name__)


class SqlLogHook:
    """Logs statements executed by SqlDb.

    - statements slower than `slow_query_seconds` → WARNING "Sql Exec Slow"
    - every statement when `print_sql` is set → INFO "Sql Exec"
    - driver errors → ERROR "Sql Exec Err"

    Usage:
        hook = SqlLogHook(print_sql=True)
        async with hook.track(query, args):
            await adapter.execute(conn, query, args)
    """

    def __init__(
        self,
        print_sql: bool = False,
        slow_query_seconds: float = SLOW_QUERY_SECONDS,
        log: logging.Logger | None = None,
    ):
        self.print_sql = print_sql
        self.slow_query_seconds = slow_query_seconds
        self.log = log or logger

    @asynccontextmanager
    async def track(self, query: str, args: Any = None) -> AsyncIterator[None]:
        """Time the enclosed statement and log it on exit."""
        start = time.perf_counter()
        try:
            yield
        except Exception as e:
            self.on_error(e, query, args)
            raise
        self.after(query, args, time.perf_counter() - start)

    def after(self, query: str, args: Any, latency: float) -> None:
        """Log a completed statement."""
        latency_ms = int(latency * 1000)
        if latency > self.slow_query_seconds:
            self.log.warning("Sql Exec Slow [%dms] query=%s args=%r", latency_ms, query, args)
        elif self.print_sql:
            self.log.info("Sql Exec [%dms] query=%s args=%r", latency_ms, query, args)

    def on_error(self, err: BaseException, query: str, args: Any) -> None:
        """Log a failed statement."""
        self.log.error("Sql Exec Err: %s query=%s args=%r", err, query, args)


__all__ = ["SqlLogHook", "SLOW_QUERY_SECONDS"]
