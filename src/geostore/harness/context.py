"""Process-wide harness context, built exactly once.

``get_context()`` wires the database connector and the DAO set and runs the
schema bootstrap the first time it is called.  The whole check-and-build
sequence holds one lock, so concurrent first callers run the bootstrap at
most once and all observe the same fully built context.

A failed build is never published and never retried: the failure is
remembered and every later call raises ``SingletonInitError`` again.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass

from geostore.config import DatabaseSettings
from geostore.exceptions import SingletonInitError
from geostore.persistence.dao import DAORegistry
from geostore.persistence.database_connector import DatabaseConnector
from geostore.persistence.schema import ensure_schema

from .teardown import DEFAULT_PLAN, PurgePlan, TeardownReport, remove_all

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class HarnessContext:
    """Shared persistence context and DAOs, read-only after construction."""

    settings: DatabaseSettings
    connector: DatabaseConnector
    daos: DAORegistry

    def remove_all(self, plan: PurgePlan = DEFAULT_PLAN) -> TeardownReport:
        return remove_all(self.daos, plan)

    def dispose(self) -> None:
        self.connector.dispose()


_lock = threading.Lock()
_context: HarnessContext | None = None
_failure: BaseException | None = None


def build_context(settings: DatabaseSettings | None = None) -> HarnessContext:
    """Build a new context and bootstrap its schema, without touching the singleton."""
    settings = settings or DatabaseSettings()
    connector = DatabaseConnector(settings)
    try:
        daos = DAORegistry.from_connector(connector)
        missing = daos.missing()
        if missing:
            raise SingletonInitError(f"DAOs not wired: {', '.join(missing)}")
        ensure_schema(connector)
    except Exception:
        connector.dispose()
        raise
    return HarnessContext(settings=settings, connector=connector, daos=daos)


def get_context(settings: DatabaseSettings | None = None) -> HarnessContext:
    """Return the process-wide ``HarnessContext``, building it on first use.

    ``settings`` only matters for the call that performs the build.
    """
    global _context, _failure

    with _lock:
        if _context is not None:
            return _context
        if _failure is not None:
            raise SingletonInitError("Harness context initialization failed earlier in this process") from _failure

        logger.info("Initializing harness context")
        try:
            context = build_context(settings)
        except Exception as exc:
            _failure = exc
            logger.critical("Critical error during database initialization", exc_info=True)
            raise SingletonInitError("Failed to initialize database") from exc

        _context = context
        logger.info("Harness context ready")
        return _context


def reset_context() -> None:
    """Dispose and forget the context and any recorded failure.  For tests."""
    global _context, _failure

    with _lock:
        if _context is not None:
            _context.dispose()
        _context = None
        _failure = None
