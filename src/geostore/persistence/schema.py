"""Explicit, ordered creation of the GeoStore schema.

Tables are dropped and created one statement at a time in a declared order
instead of through ``metadata.create_all()``, so the foreign-key dependency
order is visible and identical on every backing engine:

    drop:   members -> security -> stored_data -> attribute -> resource
            -> user_attribute -> user -> usergroup -> category
    create: the exact reverse
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Dialect
from sqlalchemy.orm import Session
from sqlalchemy.schema import CreateTable, DropTable
from sqlalchemy.sql.base import Executable

from geostore.config import DatabaseSettings
from geostore.exceptions import BootstrapError

from .database_connector import DatabaseConnector
from .models import Base, Category, Resource

logger = logging.getLogger(__name__)

DROP_ORDER: tuple[str, ...] = (
    "gs_usergroup_members",
    "gs_security",
    "gs_stored_data",
    "gs_attribute",
    "gs_resource",
    "gs_user_attribute",
    "gs_user",
    "gs_usergroup",
    "gs_category",
)
CREATE_ORDER: tuple[str, ...] = tuple(reversed(DROP_ORDER))

SMOKE_TEST_NAME = "smoke_test"


@dataclass(frozen=True)
class SchemaStatement:
    """One DDL step: the SQL as rendered for logging, and what is executed."""

    sql: str
    executable: Executable


@dataclass
class SchemaScript:
    """Ordered bootstrap DDL for one dialect."""

    database: list[SchemaStatement] = field(default_factory=list)
    prepare: list[SchemaStatement] = field(default_factory=list)
    drop: list[SchemaStatement] = field(default_factory=list)
    create: list[SchemaStatement] = field(default_factory=list)

    def __iter__(self) -> Iterator[SchemaStatement]:
        yield from self.database
        yield from self.prepare
        yield from self.drop
        yield from self.create

    def __len__(self) -> int:
        return len(self.database) + len(self.prepare) + len(self.drop) + len(self.create)


def _raw(sql: str) -> SchemaStatement:
    return SchemaStatement(sql=sql, executable=text(sql))


def _database_statements(dialect_name: str, settings: DatabaseSettings) -> list[SchemaStatement]:
    """Statements creating the configured database, run outside any transaction."""
    if dialect_name == "mssql" and settings.database_name:
        name = settings.database_name
        return [_raw(f"IF NOT EXISTS (SELECT * FROM sys.databases WHERE name = '{name}') CREATE DATABASE {name}")]
    return []


def _prepare_statements(dialect_name: str, settings: DatabaseSettings) -> list[SchemaStatement]:
    """Idempotent statements ensuring the namespace exists."""
    if dialect_name == "mssql":
        schema = settings.schema_name or "dbo"
        return [_raw(f"IF NOT EXISTS (SELECT * FROM sys.schemas WHERE name = '{schema}') EXEC('CREATE SCHEMA {schema}')")]
    if dialect_name == "postgresql" and settings.schema_name:
        return [_raw(f"CREATE SCHEMA IF NOT EXISTS {settings.schema_name}")]
    # SQLite creates the database on connect and has no namespaces; other
    # engines use the database and schema named by the connection URL.
    return []


def build_schema_script(dialect: Dialect, settings: DatabaseSettings) -> SchemaScript:
    """Render the full database / prepare / drop / create sequence for ``dialect``."""
    tables = Base.metadata.tables
    script = SchemaScript(
        database=_database_statements(dialect.name, settings),
        prepare=_prepare_statements(dialect.name, settings),
    )
    for name in DROP_ORDER:
        stmt = DropTable(tables[name], if_exists=True)
        script.drop.append(SchemaStatement(sql=str(stmt.compile(dialect=dialect)).strip(), executable=stmt))
    for name in CREATE_ORDER:
        stmt = CreateTable(tables[name])
        script.create.append(SchemaStatement(sql=str(stmt.compile(dialect=dialect)).strip(), executable=stmt))
    return script


def _smoke_test(session: Session) -> None:
    """Insert, flush and delete a Category/Resource pair inside the open transaction."""
    category = Category(name=f"{SMOKE_TEST_NAME}_category")
    session.add(category)
    resource = Resource(name=f"{SMOKE_TEST_NAME}_resource", creation=datetime.now(), category=category)
    session.add(resource)
    session.flush()

    session.delete(resource)
    session.flush()
    session.delete(category)
    session.flush()


def _create_database(db: DatabaseConnector, statements: list[SchemaStatement]) -> None:
    """Run ``statements`` on an autocommit connection to the configured server URL.

    ``CREATE DATABASE`` cannot run inside a transaction, and the connector's
    own engine is already bound to the database being created.
    """
    if not statements:
        return
    server = create_engine(db.server_url, isolation_level="AUTOCOMMIT")
    current = statements[0]
    try:
        with server.connect() as connection:
            for current in statements:
                logger.debug("Executing: %s", current.sql)
                connection.execute(current.executable)
    except Exception as exc:
        logger.exception("Failed to execute query: %s", current.sql)
        raise BootstrapError(f"Failed to create database schema at: {current.sql}") from exc
    finally:
        server.dispose()


def ensure_schema(db: DatabaseConnector) -> SchemaScript:
    """Drop and recreate every GeoStore table in one transaction.

    Creates the configured database first where the engine needs that, then
    runs the prepare, drop and create statements and (unless disabled in
    the settings) a smoke-test insert/delete, and commits.  Any failure
    rolls the transaction back, logs the failing statement and raises
    ``BootstrapError``.  The session is released on every exit path.
    """
    settings = db.settings
    script = build_schema_script(db.engine.dialect, settings)
    _create_database(db, script.database)
    current: SchemaStatement | None = None

    session = db.get_session()
    try:
        connection = session.connection()
        for statement in [*script.prepare, *script.drop, *script.create]:
            current = statement
            logger.debug("Executing: %s", statement.sql)
            connection.execute(statement.executable)
        current = None

        if settings.smoke_test:
            _smoke_test(session)
        session.commit()
    except Exception as exc:
        session.rollback()
        if current is not None:
            logger.exception("Failed to execute query: %s", current.sql)
            raise BootstrapError(f"Failed to create database schema at: {current.sql}") from exc
        logger.exception("Failed to create database schema")
        raise BootstrapError("Failed to create database schema") from exc
    finally:
        db.remove_session()

    verify_schema(db)
    logger.info("Successfully initialized database schema (%d statements)", len(script))
    return script


def drop_schema(db: DatabaseConnector) -> None:
    """Drop every GeoStore table, children before parents."""
    script = build_schema_script(db.engine.dialect, db.settings)
    session = db.get_session()
    try:
        connection = session.connection()
        for statement in script.drop:
            logger.debug("Executing: %s", statement.sql)
            connection.execute(statement.executable)
        session.commit()
    except Exception as exc:
        session.rollback()
        logger.exception("Failed to drop database schema")
        raise BootstrapError("Failed to drop database schema") from exc
    finally:
        db.remove_session()
    logger.info("All tables dropped")


def verify_schema(db: DatabaseConnector) -> None:
    """Raise ``BootstrapError`` unless every GeoStore table is present."""
    existing = set(inspect(db.engine).get_table_names(schema=db.settings.schema_name))
    missing = [name for name in CREATE_ORDER if name not in existing]
    if missing:
        raise BootstrapError(f"Schema verification failed, missing tables: {', '.join(missing)}")
