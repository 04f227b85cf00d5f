# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Row mapper: materializes result cursors into records, scalars and dicts.

Destinations are described by type annotations:

- a record type (dataclass with tagged fields): every result column is
  resolved to a field through the SchemaResolver; complex fields are read
  as text and deserialized, the others are converted to the field's
  annotation (SQLite hands back 1 for a bool, text for a datetime);
- any other type is "scannable": the result must have a single column,
  deserialized when the type is complex (e.g. `list[int]`, a dataclass
  without tags), converted like a scalar field otherwise;
- dict destinations skip resolution and map column name -> value.

Every scan function closes the cursor it receives, whatever happens.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, Any, get_args, get_origin

from ..errors import InputShapeError, MissingDestinationFieldError, NotFoundSignal
from ..records import TAG, FieldInfo, build_record, is_complex_type, is_record_type, record_fields

if TYPE_CHECKING:
    from ..serializer import Serializer
    from .adapters.base import Rows


class SchemaResolver:
    """Caches, per record type, the index from column name to field.

    Column names and tag names both go through `name_mapper` before
    matching (str.lower by default, so matching is case-insensitive).
    Assigning a different name_mapper drops the cache; indexes are then
    rebuilt lazily. Safe to share between threads.

    Usage:
        resolver = SchemaResolver()
        fields = resolver.traversals_by_name(User, ["ID", "name"])
    """

    def __init__(self, tag: str = TAG, name_mapper: Callable[[str], str] = str.lower):
        self.tag = tag
        self._name_mapper = name_mapper
        self._lock = threading.Lock()
        self._indexes: dict[type, dict[str, FieldInfo]] = {}

    @property
    def name_mapper(self) -> Callable[[str], str]:
        return self._name_mapper

    @name_mapper.setter
    def name_mapper(self, mapper: Callable[[str], str]) -> None:
        with self._lock:
            if mapper is not self._name_mapper:
                self._name_mapper = mapper
                self._indexes = {}

    def reset(self) -> None:
        """Drop every cached index."""
        with self._lock:
            self._indexes = {}

    def type_map(self, cls: type) -> dict[str, FieldInfo]:
        """Return {mapped column name: FieldInfo} for a record type."""
        with self._lock:
            index = self._indexes.get(cls)
            if index is None:
                mapper = self._name_mapper
                index = {mapper(info.name): info for info in record_fields(cls, self.tag)}
                self._indexes[cls] = index
            return index

    def traversals_by_name(self, cls: type, columns: Sequence[str]) -> list[FieldInfo | None]:
        """Resolve each column to its field (None if unknown)."""
        index = self.type_map(cls)
        mapper = self._name_mapper
        return [index.get(mapper(col)) for col in columns]

    def is_scannable(self, tp: Any) -> bool:
        """True if `tp` is read from a single column instead of field by field."""
        return not is_record_type(tp, self.tag)


def split_destination(dest: Any) -> tuple[bool, Any]:
    """Return (is_sequence, element_type) for a destination annotation.

    `list[X]` (and bare `list`) are sequences of X; anything else is a
    single destination.
    """
    if dest is list:
        return True, Any
    if get_origin(dest) is list:
        args = get_args(dest)
        return True, args[0] if args else Any
    return False, dest


# -----------------------------------------------------------------------------
# Typed scans
# -----------------------------------------------------------------------------


async def scan_any(
    rows: Rows,
    tp: Any,
    resolver: SchemaResolver,
    serializer: Serializer,
    strict: bool = True,
) -> Any:
    """Read exactly one row into a value of type `tp`.

    Raises:
        NotFoundSignal: If the result is empty.
        InputShapeError: If a scannable type receives more than one column.
        MissingDestinationFieldError: If strict and a column has no field.
        SerializationError: If a complex column cannot be decoded.
    """
    async with rows:
        if resolver.is_scannable(tp):
            return await scan_value(rows, tp, serializer)
        fields = _resolve_fields(rows, tp, resolver, strict)
        row = await rows.fetchone()
        if row is None:
            raise NotFoundSignal()
        return _row_to_record(tp, fields, row, serializer)


async def scan_all(
    rows: Rows,
    tp: Any,
    resolver: SchemaResolver,
    serializer: Serializer,
    strict: bool = True,
) -> list[Any]:
    """Read every row into a list of `tp` values (empty list if no row)."""
    result: list[Any] = []
    async with rows:
        if resolver.is_scannable(tp):
            return await scan_values(rows, tp, serializer)
        fields = _resolve_fields(rows, tp, resolver, strict)
        async for row in rows:
            result.append(_row_to_record(tp, fields, row, serializer))
    return result


async def scan_value(rows: Rows, tp: Any, serializer: Serializer) -> Any:
    """Read the single column of the first row as `tp`.

    Record types are not resolved field by field here: the column is
    deserialized into `tp` when it is complex.

    Raises:
        NotFoundSignal: If the result is empty.
        InputShapeError: If the result has more than one column.
    """
    async with rows:
        _check_single_column(rows, tp)
        row = await rows.fetchone()
        if row is None:
            raise NotFoundSignal()
        return _convert_scalar(row[0], tp, serializer)


async def scan_values(rows: Rows, tp: Any, serializer: Serializer) -> list[Any]:
    """Read the single column of every row as `tp`."""
    async with rows:
        _check_single_column(rows, tp)
        return [_convert_scalar(row[0], tp, serializer) async for row in rows]


# -----------------------------------------------------------------------------
# Mapping scans
# -----------------------------------------------------------------------------


async def scan_map_once(rows: Rows) -> dict[str, Any]:
    """Read exactly one row as {column: value}.

    Raises:
        NotFoundSignal: If the result is empty.
    """
    async with rows:
        row = await rows.fetchone()
        if row is None:
            raise NotFoundSignal()
        return dict(zip(rows.columns, row, strict=True))


async def scan_maps(rows: Rows) -> list[dict[str, Any]]:
    """Read every row as {column: value}."""
    async with rows:
        return [dict(zip(rows.columns, row, strict=True)) async for row in rows]


# -----------------------------------------------------------------------------
# Private helpers
# -----------------------------------------------------------------------------


def _check_single_column(rows: Rows, tp: Any) -> None:
    if len(rows.columns) > 1:
        name = getattr(tp, "__name__", repr(tp))
        raise InputShapeError(
            f"Scannable destination {name} with >1 columns ({len(rows.columns)}) in result"
        )


def _resolve_fields(
    rows: Rows, tp: type, resolver: SchemaResolver, strict: bool
) -> list[FieldInfo | None]:
    fields = resolver.traversals_by_name(tp, rows.columns)
    if strict:
        for col, info in zip(rows.columns, fields, strict=True):
            if info is None:
                raise MissingDestinationFieldError(col, tp)
    return fields


def _convert_scalar(value: Any, tp: Any, serializer: Serializer) -> Any:
    if value is None:
        return None
    if is_complex_type(tp):
        return serializer.loads(value, tp)
    return _coerce(value, tp, serializer)


def _coerce(value: Any, tp: Any, serializer: Serializer) -> Any:
    if tp is Any or isinstance(tp, str):
        return value
    if isinstance(tp, type) and isinstance(value, tp):
        return value
    return serializer.convert(value, tp)


def _row_to_record(
    tp: type, fields: list[FieldInfo | None], row: tuple[Any, ...], serializer: Serializer
) -> Any:
    values: dict[tuple[str, ...], Any] = {}
    for info, value in zip(fields, row, strict=True):
        if info is None:
            continue
        if value is None:
            pass
        elif info.complex:
            value = serializer.loads(value, info.type)
        else:
            value = _coerce(value, info.type, serializer)
        values[info.path] = value
    return build_record(tp, values)


__all__ = [
    "SchemaResolver",
    "split_destination",
    "scan_any",
    "scan_all",
    "scan_value",
    "scan_values",
    "scan_map_once",
    "scan_maps",
]
