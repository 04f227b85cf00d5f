# Copyright 2025 Softwell S.r.l. - SPDX-License-Identifier: Apache-2.0
"""Tests for config module - OrmConfig and environment loading."""

from __future__ import annotations

from genro_orm.config import SLOW_QUERY_SECONDS, OrmConfig, config_from_env


class TestOrmConfig:
    """Tests for OrmConfig defaults."""

    def test_defaults(self):
        config = OrmConfig()
        assert config.db_path == ":memory:"
        assert config.tag == "db"
        assert config.strict_mapping is True
        assert config.print_sql is False
        assert config.slow_query_seconds == SLOW_QUERY_SECONDS


class TestConfigFromEnv:
    """Tests for config_from_env."""

    def test_empty_environment(self, monkeypatch):
        for name in (
            "GENRO_ORM_DB",
            "GENRO_ORM_TAG",
            "GENRO_ORM_STRICT",
            "GENRO_ORM_PRINT_SQL",
            "GENRO_ORM_SLOW_QUERY",
        ):
            monkeypatch.delenv(name, raising=False)
        assert config_from_env() == OrmConfig()

    def test_reads_all_variables(self, monkeypatch):
        monkeypatch.setenv("GENRO_ORM_DB", "/data/app.db")
        monkeypatch.setenv("GENRO_ORM_TAG", "col")
        monkeypatch.setenv("GENRO_ORM_STRICT", "false")
        monkeypatch.setenv("GENRO_ORM_PRINT_SQL", "yes")
        monkeypatch.setenv("GENRO_ORM_SLOW_QUERY", "0.25")

        config = config_from_env()

        assert config.db_path == "/data/app.db"
        assert config.tag == "col"
        assert config.strict_mapping is False
        assert config.print_sql is True
        assert config.slow_query_seconds == 0.25

    def test_boolean_values_case_insensitive(self, monkeypatch):
        monkeypatch.setenv("GENRO_ORM_PRINT_SQL", "TRUE")
        monkeypatch.setenv("GENRO_ORM_STRICT", "1")
        config = config_from_env()
        assert config.print_sql is True
        assert config.strict_mapping is True
