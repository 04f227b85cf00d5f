# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Exception hierarchy for genro-orm.

Builder and mapper errors are raised before (or instead of) touching the
database and always name the table or field involved. Driver failures are
wrapped in ExecutionError with the SQL text that produced them.

Hierarchy:
    OrmError
    ├── InputShapeError
    │   ├── ExpectStructError
    │   ├── EmptyUpdateMapError
    │   ├── FieldsEmptyError
    │   ├── RecordsEmptyError
    │   ├── TagsEmptyError
    │   └── BindArgumentError
    ├── SchemaMismatchError
    │   ├── MissingKeyFieldError
    │   ├── FieldNotFoundError
    │   └── MissingDestinationFieldError
    ├── SerializationError
    ├── ExecutionError
    └── NotFoundSignal
"""

from __future__ import annotations

from typing import Any


class OrmError(Exception):
    """Base class for every error raised by genro-orm."""


# -----------------------------------------------------------------------------
# Input shape
# -----------------------------------------------------------------------------


class InputShapeError(OrmError):
    """Raised when an argument does not have the shape an operation needs."""


class ExpectStructError(InputShapeError):
    """Raised when a record is expected but something else is given."""

    def __init__(self, value: Any):
        self.value = value
        super().__init__(f"Expected a dataclass record, got {type(value).__name__}")


class EmptyUpdateMapError(InputShapeError):
    """Raised when an update has no column to set."""

    def __init__(self, table: str, reason: str = "update map is empty"):
        self.table = table
        super().__init__(f"Cannot update '{table}': {reason}")


class FieldsEmptyError(InputShapeError):
    """Raised when an update is requested without key fields."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"Cannot update '{table}': no key fields given")


class RecordsEmptyError(InputShapeError):
    """Raised when a batch operation receives no record."""

    def __init__(self, table: str | None = None):
        self.table = table
        if table:
            msg = f"No records given for '{table}'"
        else:
            msg = "No records given"
        super().__init__(msg)


class TagsEmptyError(InputShapeError):
    """Raised when a SELECT would have no column."""

    def __init__(self, table: str):
        self.table = table
        super().__init__(f"No columns to select from '{table}'")


class BindArgumentError(InputShapeError):
    """Raised when placeholders and bind arguments cannot be matched."""


# -----------------------------------------------------------------------------
# Schema mismatch
# -----------------------------------------------------------------------------


class SchemaMismatchError(OrmError):
    """Raised when field names and column names do not line up."""


class MissingKeyFieldError(SchemaMismatchError):
    """Raised when a key field is absent from a single-row update map."""

    def __init__(self, table: str, field: str):
        self.table = table
        self.field = field
        super().__init__(f"Key field '{field}' not found in update map for '{table}'")


class FieldNotFoundError(SchemaMismatchError):
    """Raised when a record of a batch update lacks a declared field."""

    def __init__(self, table: str, field: str, index: int):
        self.table = table
        self.field = field
        self.index = index
        super().__init__(f"Field '{field}' not found in record #{index} for '{table}'")


class MissingDestinationFieldError(SchemaMismatchError):
    """Raised when a result column has no field to land in."""

    def __init__(self, column: str, destination: Any):
        self.column = column
        self.destination = destination
        name = getattr(destination, "__name__", repr(destination))
        super().__init__(f"Missing destination name '{column}' in {name}")


# -----------------------------------------------------------------------------
# Serialization / execution / not found
# -----------------------------------------------------------------------------


class SerializationError(OrmError):
    """Raised when a complex value cannot be encoded or decoded."""

    def __init__(self, message: str, target: Any = None):
        self.target = target
        super().__init__(message)


class ExecutionError(OrmError):
    """Raised when the driver fails; the driver error is the __cause__."""

    def __init__(self, query: str, args: Any = None, cause: BaseException | None = None):
        self.query = query
        self.params = args
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"Statement failed, sql: {query}{detail}")


class NotFoundSignal(OrmError):
    """Raised by the row mapper when a single-row read finds no row.

    Read paths of SqlDb turn it into an empty result.
    """

    def __init__(self, query: str | None = None):
        self.query = query
        super().__init__("No rows in result set")


__all__ = [
    "OrmError",
    "InputShapeError",
    "ExpectStructError",
    "EmptyUpdateMapError",
    "FieldsEmptyError",
    "RecordsEmptyError",
    "TagsEmptyError",
    "BindArgumentError",
    "SchemaMismatchError",
    "MissingKeyFieldError",
    "FieldNotFoundError",
    "MissingDestinationFieldError",
    "SerializationError",
    "ExecutionError",
    "NotFoundSignal",
]
