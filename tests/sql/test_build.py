# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for sql.build module - statement builders and IN expansion."""

from __future__ import annotations

import pytest

from genro_orm.errors import (
    BindArgumentError,
    EmptyUpdateMapError,
    FieldNotFoundError,
    FieldsEmptyError,
    MissingKeyFieldError,
    RecordsEmptyError,
    TagsEmptyError,
)
from genro_orm.sql.build import (
    MYSQL,
    SQLITE,
    build_count_query,
    build_delete_query,
    build_insert_query,
    build_search_query,
    build_update_batch_query,
    build_update_query,
    build_upsert_query,
    expand_in,
    joint_fields_in,
    quote,
)

# ---------------------------------------------------------------------------
# Identifiers
# ---------------------------------------------------------------------------


class TestQuote:
    """Tests for quote."""

    def test_plain_name(self):
        assert quote("users") == "`users`"

    def test_dotted_name(self):
        assert quote("app.users") == "`app`.`users`"

    def test_already_quoted(self):
        assert quote("`users`") == "`users`"


# ---------------------------------------------------------------------------
# Read statements
# ---------------------------------------------------------------------------


class TestSearchQuery:
    """Tests for build_search_query and build_count_query."""

    def test_select_columns(self):
        query = build_search_query("users", ["id", "name"])
        assert query == "SELECT `id`,`name` FROM `users`"

    def test_select_with_where(self):
        query = build_search_query("users", ["id"], "WHERE `id` = ?")
        assert query == "SELECT `id` FROM `users` WHERE `id` = ?"

    def test_blank_where_is_dropped(self):
        assert build_search_query("users", ["id"], "   ") == "SELECT `id` FROM `users`"

    def test_empty_tags_raises(self):
        with pytest.raises(TagsEmptyError, match="users"):
            build_search_query("users", [])

    def test_count(self):
        assert build_count_query("users") == "SELECT COUNT(1) FROM `users`"
        assert (
            build_count_query("users", "WHERE `age` > ?")
            == "SELECT COUNT(1) FROM `users` WHERE `age` > ?"
        )


# ---------------------------------------------------------------------------
# Write statements
# ---------------------------------------------------------------------------


class TestInsertQuery:
    """Tests for build_insert_query and build_upsert_query."""

    def test_insert(self):
        query = build_insert_query("users", ["id", "name"])
        assert query == "INSERT INTO `users` (`id`,`name`) VALUES (:id,:name)"

    def test_insert_empty_tags_raises(self):
        with pytest.raises(TagsEmptyError):
            build_insert_query("users", [])

    def test_upsert_mysql(self):
        query = build_upsert_query("users", ["id", "name"])
        assert query == (
            "INSERT INTO `users` (`id`,`name`) VALUES (:id,:name)"
            " ON DUPLICATE KEY UPDATE `id` = VALUES(`id`),`name` = VALUES(`name`)"
        )

    def test_upsert_sqlite(self):
        query = build_upsert_query("users", ["id", "name"], dialect=SQLITE)
        assert query == (
            "INSERT INTO `users` (`id`,`name`) VALUES (:id,:name)"
            " ON CONFLICT DO UPDATE SET `id` = excluded.`id`,`name` = excluded.`name`"
        )


class TestDeleteQuery:
    """Tests for build_delete_query."""

    def test_delete_all(self):
        assert build_delete_query("users") == "DELETE FROM `users`"

    def test_delete_where(self):
        assert build_delete_query("users", "WHERE `id` = ?") == "DELETE FROM `users` WHERE `id` = ?"


class TestUpdateQuery:
    """Tests for build_update_query."""

    def test_single_key(self):
        query, args = build_update_query("users", {"id": 7, "name": "b"}, ["id"])
        assert query == "UPDATE `users` SET `name` = ? WHERE true AND `id` = ?"
        assert args == ["b", 7]

    def test_composite_key_order(self):
        """Key values follow the order of the key fields."""
        query, args = build_update_query(
            "t", {"a": 1, "b": 2, "x": "v", "y": "w"}, ["b", "a"]
        )
        assert query == "UPDATE `t` SET `x` = ?, `y` = ? WHERE true AND `b` = ? AND `a` = ?"
        assert args == ["v", "w", 2, 1]

    def test_empty_map_raises(self):
        with pytest.raises(EmptyUpdateMapError):
            build_update_query("users", {}, ["id"])

    def test_no_fields_raises(self):
        with pytest.raises(FieldsEmptyError):
            build_update_query("users", {"id": 1, "name": "a"}, [])

    def test_missing_key_raises(self):
        with pytest.raises(MissingKeyFieldError) as exc_info:
            build_update_query("users", {"name": "a"}, ["id"])
        assert exc_info.value.field == "id"
        assert exc_info.value.table == "users"

    def test_only_key_fields_raises(self):
        with pytest.raises(EmptyUpdateMapError, match="besides key fields"):
            build_update_query("users", {"id": 1}, ["id"])


class TestUpdateBatchQuery:
    """Tests for build_update_batch_query."""

    RECORDS = [
        {"id": 1, "name": "a", "age": 10},
        {"id": 2, "name": "b", "age": 20},
    ]

    def test_case_when_shape(self):
        query, args = build_update_batch_query("users", self.RECORDS, "id")
        assert query == (
            "UPDATE `users` SET \n"
            "`name` = \n\tCASE \n\t\tWHEN `id` = ? THEN ?\n\t\tWHEN `id` = ? THEN ? \n\tEND,\n"
            "`age` = \n\tCASE \n\t\tWHEN `id` = ? THEN ?\n\t\tWHEN `id` = ? THEN ? \n\tEND \n"
            "WHERE (`id`) IN ((?),(?))"
        )
        assert args == [1, "a", 2, "b", 1, 10, 2, 20, 1, 2]

    def test_composite_key(self):
        records = [
            {"a": 1, "b": 2, "v": "x"},
            {"a": 3, "b": 4, "v": "y"},
        ]
        query, args = build_update_batch_query("t", records, "a", "b")
        assert "WHEN `a` = ? AND `b` = ? THEN ?" in query
        assert query.endswith("WHERE (`a`,`b`) IN ((?, ?),(?, ?))")
        assert args == [1, 2, "x", 3, 4, "y", 1, 2, 3, 4]

    @pytest.mark.parametrize("n_records", [1, 3, 5])
    @pytest.mark.parametrize("n_fields", [1, 2])
    def test_argument_count(self, n_records, n_fields):
        """Args = columns * records * (fields + 1) + records * fields."""
        keys = [f"k{i}" for i in range(n_fields)]
        records = [
            {**{k: r for k in keys}, "c1": r, "c2": r, "c3": r} for r in range(n_records)
        ]
        query, args = build_update_batch_query("t", records, *keys)
        expected = 3 * n_records * (n_fields + 1) + n_records * n_fields
        assert len(args) == expected
        assert query.count("?") == expected

    def test_sqlite_dialect(self):
        query, _ = build_update_batch_query("users", self.RECORDS, "id", dialect=SQLITE)
        assert query.endswith("WHERE (`id`) IN (VALUES (?),(?))")

    def test_empty_records_raises(self):
        with pytest.raises(RecordsEmptyError):
            build_update_batch_query("users", [], "id")

    def test_no_fields_raises(self):
        with pytest.raises(FieldsEmptyError):
            build_update_batch_query("users", self.RECORDS)

    def test_only_key_fields_raises(self):
        with pytest.raises(EmptyUpdateMapError):
            build_update_batch_query("users", [{"id": 1}, {"id": 2}], "id")

    def test_missing_key_reports_index(self):
        records = [{"id": 1, "name": "a"}, {"name": "b"}]
        with pytest.raises(FieldNotFoundError) as exc_info:
            build_update_batch_query("users", records, "id")
        assert exc_info.value.field == "id"
        assert exc_info.value.index == 1

    def test_missing_update_column_raises(self):
        records = [{"id": 1, "name": "a"}, {"id": 2}]
        with pytest.raises(FieldNotFoundError, match="'name'"):
            build_update_batch_query("users", records, "id")


# ---------------------------------------------------------------------------
# IN clauses
# ---------------------------------------------------------------------------


class TestJointFieldsIn:
    """Tests for joint_fields_in."""

    def test_two_fields(self):
        where, args = joint_fields_in(["a", "b"], (1, 2), (3, 4))
        assert where == "WHERE (`a`,`b`) IN ((?),(?))"
        assert args == [(1, 2), (3, 4)]

    def test_expands_to_flat_arguments(self):
        where, args = joint_fields_in(["a", "b"], (1, 2), (3, 4))
        where, args = expand_in(where, *args)
        assert where == "WHERE (`a`,`b`) IN ((?, ?),(?, ?))"
        assert args == [1, 2, 3, 4]

    def test_wrong_length_tuples_skipped(self):
        where, args = joint_fields_in(["a", "b"], (1, 2), (3,), [4, 5, 6])
        assert where == "WHERE (`a`,`b`) IN ((?))"
        assert args == [(1, 2)]

    def test_scalar_single_field(self):
        where, args = joint_fields_in(["id"], 1, 2)
        assert where == "WHERE (`id`) IN ((?),(?))"
        assert args == [1, 2]

    def test_scalar_skipped_for_many_fields(self):
        where, args = joint_fields_in(["a", "b"], 1)
        assert where == "WHERE 1=0"
        assert args == []

    def test_sqlite_row_values(self):
        where, _ = joint_fields_in(["a", "b"], (1, 2), dialect=SQLITE)
        assert where == "WHERE (`a`,`b`) IN (VALUES (?))"

    def test_default_dialect_is_mysql(self):
        assert joint_fields_in(["a"], 1) == joint_fields_in(["a"], 1, dialect=MYSQL)


class TestExpandIn:
    """Tests for expand_in."""

    def test_no_sequence_unchanged(self):
        assert expand_in("WHERE `id` = ?", 1) == ("WHERE `id` = ?", [1])

    def test_expands_list(self):
        query, args = expand_in("WHERE `id` IN (?) AND `kind` = ?", [1, 2, 3], "a")
        assert query == "WHERE `id` IN (?, ?, ?) AND `kind` = ?"
        assert args == [1, 2, 3, "a"]

    def test_strings_and_bytes_are_scalars(self):
        query, args = expand_in("WHERE `a` IN (?) AND `b` = ? AND `c` = ?", [1], "xy", b"z")
        assert query == "WHERE `a` IN (?) AND `b` = ? AND `c` = ?"
        assert args == [1, "xy", b"z"]

    def test_empty_sequence_raises(self):
        with pytest.raises(BindArgumentError, match="Empty sequence"):
            expand_in("WHERE `id` IN (?)", [])

    def test_placeholder_mismatch_raises(self):
        with pytest.raises(BindArgumentError, match="does not match"):
            expand_in("WHERE `id` IN (?) AND `x` = ?", [1, 2])
