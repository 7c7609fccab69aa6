"""Database connection management with scoped sessions."""

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import event
from sqlalchemy.engine import URL, Connection, Engine, create_engine, make_url
from sqlalchemy.orm import Session, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from geostore.config import DatabaseSettings

logger = logging.getLogger(__name__)


def _configure_sqlite_connection(dbapi_connection: Any, connection_record: Any) -> None:
    # Hand transaction control to SQLAlchemy so DDL is transactional too.
    dbapi_connection.isolation_level = None
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _begin_sqlite_transaction(conn: Connection) -> None:
    conn.exec_driver_sql("BEGIN")


def engine_url(settings: DatabaseSettings) -> URL:
    """URL the connector binds to.

    On SQL Server a configured ``database_name`` replaces the database of the
    connection string, so every pooled connection works in that database.
    """
    url = make_url(settings.connection_string)
    if settings.database_name and url.get_backend_name() == "mssql":
        url = url.set(database=settings.database_name)
    return url


class DatabaseConnector:
    """
    Manages the database connection pool and thread-local Sessions.

    This is the persistence context the DAOs and the schema bootstrapper
    share.  Pass a ``DatabaseSettings`` explicitly (tests) or let it load
    from the environment / ``.env`` file.

    SQLite connections get ``PRAGMA foreign_keys=ON`` so that referential
    integrity is enforced the same way as on server databases, and run
    every transaction under an explicit ``BEGIN`` so DDL rolls back with
    it.  An in-memory SQLite URL uses a single shared connection so every
    thread sees the same database.
    """

    def __init__(self, settings: DatabaseSettings | None = None) -> None:
        """Initialize the database engine and session factory."""
        self._settings = settings or DatabaseSettings()

        engine_kwargs: dict = {"future": True, "echo": self._settings.echo}
        if self._settings.is_in_memory:
            engine_kwargs["poolclass"] = StaticPool
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        elif self._settings.is_sqlite:
            # SQLite does not support pool_size / max_overflow arguments.
            engine_kwargs["connect_args"] = {"check_same_thread": False}
        else:
            engine_kwargs["pool_size"] = self._settings.pool_size
            engine_kwargs["max_overflow"] = self._settings.max_overflow
            engine_kwargs["pool_pre_ping"] = True

        self._server_url: URL = make_url(self._settings.connection_string)
        self._base_engine: Engine = create_engine(engine_url(self._settings), **engine_kwargs)
        if self._base_engine.dialect.name == "sqlite":
            event.listen(self._base_engine, "connect", _configure_sqlite_connection)
            event.listen(self._base_engine, "begin", _begin_sqlite_transaction)
        engine = self._base_engine
        if self._settings.schema_name:
            engine = engine.execution_options(schema_translate_map={None: self._settings.schema_name})

        self._engine: Engine = engine
        self._session_factory: sessionmaker[Session] = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        self._scoped_session: scoped_session[Session] = scoped_session(self._session_factory)
        logger.info("Database connector initialised: %s", self._settings.safe_connection_string)

    @property
    def engine(self) -> Engine:
        """Return the SQLAlchemy Engine."""
        return self._engine

    @property
    def settings(self) -> DatabaseSettings:
        return self._settings

    @property
    def server_url(self) -> URL:
        """The configured connection URL, before any ``database_name`` is applied."""
        return self._server_url

    @property
    def dialect_name(self) -> str:
        return self._engine.dialect.name

    def get_session(self) -> Session:
        """Return a scoped (thread-local) Session instance.

        Within a single thread the same session is returned until
        ``remove_session()`` is called.
        """
        return self._scoped_session()

    def remove_session(self) -> None:
        """Remove the current scoped session, releasing the connection back to the pool."""
        self._scoped_session.remove()

    @contextmanager
    def session_scope(self) -> Iterator[Session]:
        """Run a unit of work in one transaction.

        Commits on normal exit, rolls back and re-raises on any exception,
        and always releases the session.
        """
        session = self.get_session()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            self.remove_session()

    def dispose(self) -> None:
        """Dispose of the engine and all connections.  Used for clean shutdown."""
        self._scoped_session.remove()
        self._base_engine.dispose()
        logger.info("Database engine disposed")
