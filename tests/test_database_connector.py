"""Tests for the connector's URL binding and SQLite transaction handling."""

import pytest
from sqlalchemy import inspect, text

from geostore.config import DatabaseSettings
from geostore.persistence.database_connector import engine_url


def _settings(connection_string: str, **overrides) -> DatabaseSettings:
    return DatabaseSettings(connection_string=connection_string, _env_file=None, **overrides)  # type: ignore[call-arg]


class TestEngineURL:
    def test_mssql_binds_to_configured_database(self):
        settings = _settings("mssql+pyodbc://sa:pw@sql.local/master", database_name="GeoStore")
        assert engine_url(settings).database == "GeoStore"

    def test_mssql_without_database_name_keeps_url(self):
        settings = _settings("mssql+pyodbc://sa:pw@sql.local/master")
        assert engine_url(settings).database == "master"

    def test_other_engines_ignore_database_name(self):
        settings = _settings("postgresql://geo@db.local/geostore", database_name="Other")
        assert engine_url(settings).database == "geostore"


class TestSQLiteTransactions:
    def test_ddl_rolls_back(self, db):
        with pytest.raises(RuntimeError):
            with db.session_scope() as session:
                session.execute(text("DROP TABLE gs_usergroup_members"))
                raise RuntimeError("abort")
        assert "gs_usergroup_members" in inspect(db.engine).get_table_names()

    def test_foreign_keys_enforced(self, db):
        with db.session_scope() as session:
            assert session.execute(text("PRAGMA foreign_keys")).scalar_one() == 1
