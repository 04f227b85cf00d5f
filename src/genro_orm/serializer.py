# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Text serialization of complex column values.

The same Serializer instance is used when building write statements
(struct_to_map with stringify=True) and when the row mapper rebuilds
complex fields from the result set, so both directions always agree on
the wire format.

The default JsonSerializer relies on pydantic: values are dumped with
pydantic_core.to_json (dataclasses, dicts, lists, sets, datetimes...) and
loaded back through a TypeAdapter of the destination annotation, which
rebuilds nested dataclasses and typed containers.
Scalar columns go through convert(), the same TypeAdapter in Python mode,
so a SQLite INTEGER read into a bool field comes back as True/False and a
TEXT timestamp read into a datetime field comes back as a datetime.

Usage::

    serializer = JsonSerializer()
    text = serializer.dumps(Address(city="Rome", zip="00100"))
    address = serializer.loads(text, Address)
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from pydantic import PydanticSchemaGenerationError, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_json

from .errors import SerializationError


@runtime_checkable
class Serializer(Protocol):
    """Strategy used for complex columns in both directions."""

    def dumps(self, value: Any) -> str:
        """Encode a complex value to text."""
        ...

    def loads(self, data: str | bytes, tp: Any) -> Any:
        """Decode text produced by dumps() into an instance of tp."""
        ...

    def convert(self, value: Any, tp: Any) -> Any:
        """Coerce a scalar driver value (e.g. 1, "2024-01-02 03:04:05") to tp."""
        ...


class JsonSerializer:
    """JSON serializer backed by pydantic.

    TypeAdapters are built lazily and kept per destination type.
    """

    def __init__(self) -> None:
        self._adapters: dict[Any, TypeAdapter[Any]] = {}

    def adapter(self, tp: Any) -> TypeAdapter[Any]:
        """Return the (cached) TypeAdapter for an annotation."""
        try:
            return self._adapters[tp]
        except KeyError:
            adapter = self._adapters[tp] = TypeAdapter(tp)
            return adapter
        except TypeError:
            # unhashable annotation
            return TypeAdapter(tp)

    def dumps(self, value: Any) -> str:
        try:
            return to_json(value).decode("utf-8")
        except PydanticSerializationError as e:
            raise SerializationError(
                f"Cannot serialize {type(value).__name__}: {e}", target=type(value)
            ) from e

    def loads(self, data: str | bytes, tp: Any) -> Any:
        if isinstance(data, memoryview):
            data = data.tobytes()
        try:
            return self.adapter(tp).validate_json(data)
        except ValidationError as e:
            name = getattr(tp, "__name__", repr(tp))
            raise SerializationError(
                f"Cannot deserialize column into {name}, check if the type matches: {e}",
                target=tp,
            ) from e

    def convert(self, value: Any, tp: Any) -> Any:
        try:
            adapter = self.adapter(tp)
        except PydanticSchemaGenerationError:
            # no schema for tp: the driver value is kept
            return value
        try:
            return adapter.validate_python(value)
        except ValidationError as e:
            name = getattr(tp, "__name__", repr(tp))
            raise SerializationError(
                f"Cannot convert column value {value!r} into {name}: {e}", target=tp
            ) from e


__all__ = ["Serializer", "JsonSerializer"]
