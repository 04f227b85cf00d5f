# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tagged records: field reflection and complex-type classification.

A record is a dataclass whose fields declare the column they bind to in
their metadata, under a tag key ("db" by default). Fields declared with
embedded() hold another dataclass whose tagged fields are flattened into
the parent, as if they were declared on it.

Example::

    from dataclasses import dataclass
    from genro_orm import column, embedded

    @dataclass
    class Audit:
        created_by: str = column("created_by", default="")

    @dataclass
    class User:
        id: int = column("id")
        name: str = column("name", default="")
        tags: list[str] = column("tags", default_factory=list)
        audit: Audit = embedded(default_factory=Audit)

        @classmethod
        def table_name(cls) -> str:
            return "users"

    struct_to_map(User(id=1, name="a"))
    # {'id': 1, 'name': 'a', 'tags': [], 'created_by': ''}

Name collisions between an embedded record and the outer record are
resolved in favour of the outer field; between two embedded records the
first declared wins.
"""

from __future__ import annotations

import dataclasses
import inspect
import sys
import types
from collections.abc import Mapping, Sequence, Set
from dataclasses import MISSING, dataclass
from typing import (
    Annotated,
    Any,
    Literal,
    Protocol,
    Union,
    get_args,
    get_origin,
    get_type_hints,
    runtime_checkable,
)

from pydantic import BaseModel

from .errors import ExpectStructError, InputShapeError
from .serializer import JsonSerializer, Serializer

TAG = "db"
"""Default metadata key holding the column name."""

EMBEDDED = "embedded"
"""Metadata key marking a field whose dataclass is flattened into the parent."""

_BINARY_TYPES = (bytes, bytearray, memoryview)
_CONTAINER_TYPES = (Mapping, list, tuple, set, frozenset, Sequence, Set)

_default_serializer = JsonSerializer()


@runtime_checkable
class Tabler(Protocol):
    """Capability every record type implements: the table it lives in."""

    @classmethod
    def table_name(cls) -> str: ...


@dataclass(frozen=True)
class FieldInfo:
    """A tagged field resolved on a record type.

    Attributes:
        name: Column name declared by the tag.
        path: Attribute names from the record down to the field
            (longer than one for fields of embedded records).
        type: Resolved annotation of the field.
        complex: True if the value travels as serialized text.
    """

    name: str
    path: tuple[str, ...]
    type: Any
    complex: bool


# -----------------------------------------------------------------------------
# Field declaration helpers
# -----------------------------------------------------------------------------


def column(name: str, *, tag: str = TAG, **kwargs: Any) -> Any:
    """Declare a dataclass field bound to column `name`.

    Accepts every keyword of dataclasses.field().
    """
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[tag] = name
    return dataclasses.field(metadata=metadata, **kwargs)


def embedded(**kwargs: Any) -> Any:
    """Declare a field holding a dataclass flattened into the parent record."""
    metadata = dict(kwargs.pop("metadata", None) or {})
    metadata[EMBEDDED] = True
    return dataclasses.field(metadata=metadata, **kwargs)


# -----------------------------------------------------------------------------
# Complex-type classifier
# -----------------------------------------------------------------------------


def is_complex_type(tp: Any) -> bool:
    """Return True if values of `tp` must be serialized to text.

    Dataclasses, pydantic models, mappings and collections are complex.
    Binary types (bytes, bytearray, memoryview) map to binary columns and
    are scalar, as are strings, numbers, enums, dates and Any.
    """
    if tp is None or tp is Any:
        return False

    origin = get_origin(tp)
    if origin is Annotated:
        return is_complex_type(get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        return any(is_complex_type(arg) for arg in get_args(tp) if arg is not type(None))
    if origin is Literal:
        return False
    if origin is not None:
        tp = origin

    if not isinstance(tp, type):
        return False
    if issubclass(tp, (str, *_BINARY_TYPES)):
        return False
    if dataclasses.is_dataclass(tp) or issubclass(tp, BaseModel):
        return True
    return issubclass(tp, _CONTAINER_TYPES)


def is_complex_value(value: Any) -> bool:
    """Classify a runtime value (None is scalar)."""
    if value is None:
        return False
    return is_complex_type(type(value))


def is_record_type(tp: Any, tag: str = TAG) -> bool:
    """Return True for dataclass types with at least one tagged field."""
    if not (isinstance(tp, type) and dataclasses.is_dataclass(tp)):
        return False
    return bool(record_fields(tp, tag))


# -----------------------------------------------------------------------------
# Reflection
# -----------------------------------------------------------------------------


def record_fields(cls: Any, tag: str = TAG) -> list[FieldInfo]:
    """Return the tagged fields of a record type, embedded ones flattened.

    Raises:
        ExpectStructError: If `cls` is not a dataclass (type or instance).
        TypeError: If the annotation of a tagged or embedded field names
            something that cannot be resolved at runtime (e.g. a type
            imported only under TYPE_CHECKING).
    """
    if not dataclasses.is_dataclass(cls):
        raise ExpectStructError(cls)
    if not isinstance(cls, type):
        cls = type(cls)
    return _collect_fields(cls, tag, ())


def struct_to_map(
    record: Any,
    tag: str = TAG,
    stringify: bool = False,
    serializer: Serializer | None = None,
) -> dict[str, Any]:
    """Turn a record into a column -> value mapping.

    Args:
        record: Dataclass instance.
        tag: Metadata key holding column names.
        stringify: Serialize complex values to text (write statements).
        serializer: Serializer used when stringify is set.

    Raises:
        ExpectStructError: If `record` is not a dataclass instance.
    """
    if record is None or isinstance(record, type) or not dataclasses.is_dataclass(record):
        raise ExpectStructError(record)

    serializer = serializer or _default_serializer
    smap: dict[str, Any] = {}
    for info in _collect_fields(type(record), tag, ()):
        value = _value_at(record, info.path)
        if stringify and info.complex and value is not None:
            value = serializer.dumps(value)
        smap[info.name] = value
    return smap


def build_record(cls: type, values: Mapping[tuple[str, ...], Any]) -> Any:
    """Instantiate `cls` from attribute path -> value pairs.

    Embedded records are built recursively. Required fields with no value
    receive None; fields with a default keep it.
    """
    return _build(cls, values, ())


def table_name_of(record: Any) -> str:
    """Return the table of a record instance or record type.

    Raises:
        InputShapeError: If the record does not implement table_name().
    """
    getter = getattr(record, "table_name", None)
    if not callable(getter):
        name = record.__name__ if isinstance(record, type) else type(record).__name__
        raise InputShapeError(f"{name} does not implement table_name()")
    return getter()


# -----------------------------------------------------------------------------
# Private helpers
# -----------------------------------------------------------------------------


def _type_hints(cls: type) -> dict[str, Any]:
    try:
        return get_type_hints(cls, include_extras=True)
    except NameError:
        return _hints_by_field(cls)


def _hints_by_field(cls: type) -> dict[str, Any]:
    """Resolve annotations one by one, leaving out the unresolvable ones."""
    hints: dict[str, Any] = {}
    for base in reversed(cls.__mro__):
        module = sys.modules.get(base.__module__)
        globalns = dict(vars(module)) if module else {}
        localns = dict(vars(base))
        for name, value in inspect.get_annotations(base).items():
            if isinstance(value, str):
                try:
                    value = eval(value, globalns, localns)
                except (NameError, AttributeError):
                    hints.pop(name, None)
                    continue
            hints[name] = value
    return hints


def _field_type(cls: type, f: dataclasses.Field[Any], hints: dict[str, Any]) -> Any:
    tp = hints.get(f.name, f.type)
    if isinstance(tp, str):
        raise TypeError(f"Cannot resolve annotation '{tp}' of field '{f.name}' in {cls.__name__}")
    return tp


def _unwrap_optional(tp: Any) -> Any:
    origin = get_origin(tp)
    if origin is Annotated:
        return _unwrap_optional(get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        args = [arg for arg in get_args(tp) if arg is not type(None)]
        if len(args) == 1:
            return _unwrap_optional(args[0])
    return tp


def _collect_fields(cls: type, tag: str, prefix: tuple[str, ...]) -> list[FieldInfo]:
    hints = _type_hints(cls)
    fields = [f for f in dataclasses.fields(cls) if not f.name.startswith("_")]
    own = {f.metadata[tag] for f in fields if f.metadata.get(tag) and not f.metadata.get(EMBEDDED)}

    result: list[FieldInfo] = []
    seen: set[str] = set()
    for f in fields:
        path = (*prefix, f.name)

        if f.metadata.get(EMBEDDED):
            inner = _unwrap_optional(_field_type(cls, f, hints))
            if not (isinstance(inner, type) and dataclasses.is_dataclass(inner)):
                raise TypeError(f"Embedded field '{f.name}' of {cls.__name__} must hold a dataclass")
            for info in _collect_fields(inner, tag, path):
                if info.name in own or info.name in seen:
                    continue
                seen.add(info.name)
                result.append(info)
            continue

        name = f.metadata.get(tag)
        if not name or name == "-" or name in seen:
            continue
        seen.add(name)
        tp = _field_type(cls, f, hints)
        result.append(FieldInfo(name=name, path=path, type=tp, complex=is_complex_type(tp)))
    return result


def _value_at(record: Any, path: tuple[str, ...]) -> Any:
    value = record
    for attr in path:
        if value is None:
            return None
        value = getattr(value, attr)
    return value


def _build(cls: type, values: Mapping[tuple[str, ...], Any], prefix: tuple[str, ...]) -> Any:
    hints = _type_hints(cls)
    kwargs: dict[str, Any] = {}
    late: dict[str, Any] = {}

    for f in dataclasses.fields(cls):
        path = (*prefix, f.name)
        if f.metadata.get(EMBEDDED):
            value = _build(_unwrap_optional(_field_type(cls, f, hints)), values, path)
        elif path in values:
            value = values[path]
        elif f.init and f.default is MISSING and f.default_factory is MISSING:
            value = None
        else:
            continue

        if f.init:
            kwargs[f.name] = value
        else:
            late[f.name] = value

    instance = cls(**kwargs)
    for name, value in late.items():
        object.__setattr__(instance, name, value)
    return instance


__all__ = [
    "TAG",
    "EMBEDDED",
    "Tabler",
    "FieldInfo",
    "column",
    "embedded",
    "is_complex_type",
    "is_complex_value",
    "is_record_type",
    "record_fields",
    "struct_to_map",
    "build_record",
    "table_name_of",
]
