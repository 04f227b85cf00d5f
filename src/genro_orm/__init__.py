# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""genro-orm: Reflective ORM layer mapping tagged dataclasses to SQL."""

from .config import OrmConfig, config_from_env
from .errors import (
    ExecutionError,
    InputShapeError,
    NotFoundSignal,
    OrmError,
    SchemaMismatchError,
    SerializationError,
)
from .records import Tabler, column, embedded, struct_to_map
from .serializer import JsonSerializer, Serializer
from .sql import SqlDb

__version__ = "0.1.0"

__all__ = [
    "SqlDb",
    "OrmConfig",
    "config_from_env",
    "column",
    "embedded",
    "struct_to_map",
    "Tabler",
    "Serializer",
    "JsonSerializer",
    "OrmError",
    "InputShapeError",
    "SchemaMismatchError",
    "SerializationError",
    "ExecutionError",
    "NotFoundSignal",
]
