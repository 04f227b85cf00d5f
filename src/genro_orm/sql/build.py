# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Statement builders: pure functions from table metadata to (SQL, args).

Identifiers are always quoted with backticks, values are always bind
parameters: `?` for positional statements, `:name` for named ones (the
adapter translates them to the driver paramstyle). Nothing here performs
I/O, so every function is safe to call from concurrent tasks.

Example::

    build_insert_query("users", ["id", "name"])
    # 'INSERT INTO `users` (`id`,`name`) VALUES (:id,:name)'

    build_update_query("users", {"id": 7, "name": "b"}, ["id"])
    # ('UPDATE `users` SET `name` = ? WHERE true AND `id` = ?', ['b', 7])
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..errors import (
    BindArgumentError,
    EmptyUpdateMapError,
    FieldNotFoundError,
    FieldsEmptyError,
    MissingKeyFieldError,
    RecordsEmptyError,
    TagsEmptyError,
)


@dataclass(frozen=True)
class Dialect:
    """Statement shapes that differ between backends.

    Attributes:
        name: Dialect name.
        upsert_clause: Text placed between the INSERT and the assignments.
        upsert_assignment: Template of one assignment, `{col}` is the quoted column.
        row_values_prefix: Prefix of a row-value list on the right of IN.
    """

    name: str
    upsert_clause: str
    upsert_assignment: str
    row_values_prefix: str = ""


MYSQL = Dialect(
    name="mysql",
    upsert_clause=" ON DUPLICATE KEY UPDATE ",
    upsert_assignment="{col} = VALUES({col})",
)

SQLITE = Dialect(
    name="sqlite",
    upsert_clause=" ON CONFLICT DO UPDATE SET ",
    upsert_assignment="{col} = excluded.{col}",
    row_values_prefix="VALUES ",
)


def quote(name: str) -> str:
    """Quote an identifier with backticks (each part of a dotted name)."""
    if name.startswith("`"):
        return name
    return ".".join(f"`{part}`" for part in name.split("."))


def _with_where(query: str, where: str) -> str:
    where = where.strip() if where else ""
    return f"{query} {where}" if where else query


# -----------------------------------------------------------------------------
# Read statements
# -----------------------------------------------------------------------------


def build_search_query(tb: str, tags: Sequence[str], where: str = "") -> str:
    """SELECT the given columns.

    Raises:
        TagsEmptyError: If no column is given.
    """
    if not tags:
        raise TagsEmptyError(tb)
    cols = ",".join(quote(tag) for tag in tags)
    return _with_where(f"SELECT {cols} FROM {quote(tb)}", where)


def build_count_query(tb: str, where: str = "") -> str:
    """SELECT COUNT(1) of matching rows."""
    return _with_where(f"SELECT COUNT(1) FROM {quote(tb)}", where)


# -----------------------------------------------------------------------------
# Write statements
# -----------------------------------------------------------------------------


def build_insert_query(tb: str, tags: Sequence[str]) -> str:
    """INSERT template with one named placeholder per column."""
    if not tags:
        raise TagsEmptyError(tb)
    cols = ",".join(quote(tag) for tag in tags)
    names = ",".join(f":{tag}" for tag in tags)
    return f"INSERT INTO {quote(tb)} ({cols}) VALUES ({names})"


def build_upsert_query(tb: str, tags: Sequence[str], dialect: Dialect = MYSQL) -> str:
    """INSERT template that updates every column when the key already exists.

    Requires a primary/unique key on the table: without one the statement
    simply inserts, the database decides.
    """
    insert = build_insert_query(tb, tags)
    assignments = ",".join(dialect.upsert_assignment.format(col=quote(tag)) for tag in tags)
    return f"{insert}{dialect.upsert_clause}{assignments}"


def build_delete_query(tb: str, where: str = "") -> str:
    """DELETE matching rows (all rows if `where` is empty)."""
    return _with_where(f"DELETE FROM {quote(tb)}", where)


def build_update_query(
    tb: str, update_map: Mapping[str, Any], fields: Sequence[str]
) -> tuple[str, list[Any]]:
    """Single-row UPDATE matched on the key `fields`.

    Every column of `update_map` that is not a key field is set; key fields
    go in the WHERE clause in the given order.

    Returns:
        (query, args) with SET values first, then key values.

    Raises:
        EmptyUpdateMapError: If the map is empty or holds only key fields.
        FieldsEmptyError: If no key field is given.
        MissingKeyFieldError: If a key field is missing from the map.
    """
    if not update_map:
        raise EmptyUpdateMapError(tb)
    if not fields:
        raise FieldsEmptyError(tb)
    for field in fields:
        if field not in update_map:
            raise MissingKeyFieldError(tb, field)

    sets: list[str] = []
    args: list[Any] = []
    for tag, value in update_map.items():
        if tag in fields:
            continue
        sets.append(f"{quote(tag)} = ?")
        args.append(value)
    if not sets:
        raise EmptyUpdateMapError(tb, "no column to set besides key fields")

    where = "WHERE true"
    for field in fields:
        where += f" AND {quote(field)} = ?"
        args.append(update_map[field])

    return f"UPDATE {quote(tb)} SET {', '.join(sets)} {where}", args


def build_update_batch_query(
    tb: str,
    map_slice: Sequence[Mapping[str, Any]],
    *fields: str,
    dialect: Dialect = MYSQL,
) -> tuple[str, list[Any]]:
    """Multi-row UPDATE in one statement using CASE WHEN blocks.

    Shape (two key fields, two records)::

        UPDATE `t` SET
        `col` =
            CASE
                WHEN `k1` = ? AND `k2` = ? THEN ?
                WHEN `k1` = ? AND `k2` = ? THEN ?
            END
        WHERE (`k1`,`k2`) IN ((?, ?),(?, ?))

    Update columns are the columns of the first record that are not key
    fields; every record must carry all of them and all key fields.

    Raises:
        RecordsEmptyError: If `map_slice` is empty.
        FieldsEmptyError: If no key field is given.
        FieldNotFoundError: If a record misses a key field or update column.
        EmptyUpdateMapError: If records hold only key fields.
    """
    if not map_slice:
        raise RecordsEmptyError(tb)
    if not fields:
        raise FieldsEmptyError(tb)

    columns = [tag for tag in map_slice[0] if tag not in fields]
    if not columns:
        raise EmptyUpdateMapError(tb, "no column to set besides key fields")

    for index, update_map in enumerate(map_slice):
        for field in (*fields, *columns):
            if field not in update_map:
                raise FieldNotFoundError(tb, field, index)

    updates, args = _update_case_when_then(map_slice, columns, fields)

    key_tuples = [tuple(update_map[field] for field in fields) for update_map in map_slice]
    where, where_args = joint_fields_in(fields, *key_tuples, dialect=dialect)
    where, where_args = expand_in(where, *where_args)
    args.extend(where_args)

    return f"UPDATE {quote(tb)} SET \n{updates} \n{where}", args


def _update_case_when_then(
    map_slice: Sequence[Mapping[str, Any]], columns: Sequence[str], fields: Sequence[str]
) -> tuple[str, list[Any]]:
    condition = " AND ".join(f"{quote(field)} = ?" for field in fields)
    sub_case = f"WHEN {condition} THEN ?"

    args: list[Any] = []
    clauses: list[str] = []
    for col in columns:
        for update_map in map_slice:
            args.extend(update_map[field] for field in fields)
            args.append(update_map[col])
        cases = "\n\t\t".join([sub_case] * len(map_slice))
        clauses.append(f"{quote(col)} = \n\tCASE \n\t\t{cases} \n\tEND")
    return ",\n".join(clauses), args


# -----------------------------------------------------------------------------
# IN clauses
# -----------------------------------------------------------------------------


def joint_fields_in(
    fields: Sequence[str], *args: Any, dialect: Dialect = MYSQL
) -> tuple[str, list[Any]]:
    """WHERE clause matching several columns against a list of value tuples.

    Each accepted tuple becomes one `(?)` group, to be widened by
    expand_in(). Tuples whose length differs from `fields` are skipped; a
    scalar is accepted as a one-element tuple when there is a single field.

    Example::

        joint_fields_in(["a", "b"], (1, 2), (3, 4))
        # ('WHERE (`a`,`b`) IN ((?),(?))', [(1, 2), (3, 4)])
    """
    accepted: list[Any] = []
    for arg in args:
        if _is_bind_sequence(arg):
            if len(arg) != len(fields):
                continue
        elif len(fields) != 1:
            continue
        accepted.append(arg)

    if not accepted:
        return "WHERE 1=0", []

    cols = ",".join(quote(field) for field in fields)
    groups = ",".join(["(?)"] * len(accepted))
    return f"WHERE ({cols}) IN ({dialect.row_values_prefix}{groups})", accepted


def expand_in(query: str, *args: Any) -> tuple[str, list[Any]]:
    """Expand `?` placeholders bound to sequences into `?, ?, ...`.

    Lists, tuples and sets are flattened into the argument list; strings,
    bytes and mappings are bound as they are.

    Example::

        expand_in("WHERE id IN (?) AND kind = ?", [1, 2, 3], "a")
        # ('WHERE id IN (?, ?, ?) AND kind = ?', [1, 2, 3, 'a'])

    Raises:
        BindArgumentError: On an empty sequence or when the number of
            placeholders and arguments differ.
    """
    if not any(_is_bind_sequence(arg) for arg in args):
        return query, list(args)

    parts = query.split("?")
    if len(parts) - 1 != len(args):
        raise BindArgumentError(
            f"Number of placeholders ({len(parts) - 1}) does not match "
            f"number of arguments ({len(args)})"
        )

    chunks = [parts[0]]
    flat: list[Any] = []
    for index, arg in enumerate(args):
        if _is_bind_sequence(arg):
            values = list(arg)
            if not values:
                raise BindArgumentError(f"Empty sequence passed for placeholder #{index + 1}")
            chunks.append(", ".join(["?"] * len(values)))
            flat.extend(values)
        else:
            chunks.append("?")
            flat.append(arg)
        chunks.append(parts[index + 1])
    return "".join(chunks), flat


def _is_bind_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple, set, frozenset))


__all__ = [
    "Dialect",
    "MYSQL",
    "SQLITE",
    "quote",
    "build_search_query",
    "build_count_query",
    "build_insert_query",
    "build_upsert_query",
    "build_delete_query",
    "build_update_query",
    "build_update_batch_query",
    "joint_fields_in",
    "expand_in",
]
