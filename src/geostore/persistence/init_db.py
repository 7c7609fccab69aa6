"""
Database maintenance commands.

Usage::

    python -m geostore.persistence.init_db init     # drop + create every table
    python -m geostore.persistence.init_db drop     # drop every table
    python -m geostore.persistence.init_db reset    # drop, then init
    python -m geostore.persistence.init_db purge    # delete every row, keep tables
    python -m geostore.persistence.init_db init --dry-run  # print the DDL only

Connection parameters come from ``DB_*`` environment variables or ``.env``.
"""

from __future__ import annotations

import argparse
import logging
import sys

from geostore.config import DatabaseSettings
from geostore.exceptions import GeoStoreError

from .dao import DAORegistry
from .database_connector import DatabaseConnector
from .schema import build_schema_script, drop_schema, ensure_schema

logger = logging.getLogger(__name__)


def initialize_database(settings: DatabaseSettings | None = None) -> None:
    """
    Create all tables in the database.

    Pre-existing GeoStore tables are dropped first, so running it twice
    leaves the same empty schema.
    """
    db = DatabaseConnector(settings)
    try:
        ensure_schema(db)
    finally:
        db.dispose()


def drop_all_tables(settings: DatabaseSettings | None = None) -> None:
    """
    Drop all tables from the database.

    WARNING: This will delete all data! Use with caution.
    """
    db = DatabaseConnector(settings)
    try:
        drop_schema(db)
    finally:
        db.dispose()


def reset_database(settings: DatabaseSettings | None = None) -> None:
    """
    Drop all tables and recreate them.

    WARNING: This will delete all data! Use with caution.
    """
    drop_all_tables(settings)
    initialize_database(settings)
    logger.info("Database reset complete")


def purge_database(settings: DatabaseSettings | None = None) -> dict[str, int]:
    """Delete every row in dependency order and return the per-entity counts."""
    from geostore.harness.teardown import remove_all

    db = DatabaseConnector(settings)
    try:
        report = remove_all(DAORegistry.from_connector(db))
        report.raise_for_error()
        return report.removed
    finally:
        db.dispose()


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Create, drop or purge the GeoStore schema",
        prog="geostore-db",
    )
    parser.add_argument("command", choices=["init", "drop", "reset", "purge"], nargs="?", default="init")
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the ordered DDL (or purge order) instead of running it",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable DEBUG logging",
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    settings = DatabaseSettings()

    if args.dry_run and args.command == "purge":
        from geostore.harness.teardown import DEFAULT_PLAN

        for position, name in enumerate(DEFAULT_PLAN, start=1):
            print(f"{position}. {name}")
        return 0

    if args.dry_run:
        db = DatabaseConnector(settings)
        try:
            script = build_schema_script(db.engine.dialect, settings)
        finally:
            db.dispose()
        statements = script.drop if args.command == "drop" else list(script)
        for statement in statements:
            print(f"{statement.sql};")
        return 0

    try:
        if args.command == "init":
            initialize_database(settings)
        elif args.command == "drop":
            drop_all_tables(settings)
        elif args.command == "reset":
            reset_database(settings)
        else:
            removed = purge_database(settings)
            for name, count in removed.items():
                print(f"{name}: {count} row(s) removed")
    except GeoStoreError as exc:
        logger.error("%s failed: %s", args.command, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
