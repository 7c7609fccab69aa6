"""Ordered, integrity-safe purge of every GeoStore table.

The purge order is derived from a declared dependency table rather than a
hand-written call sequence: each entity lists the entities whose rows must
be gone before its own rows can be deleted (the children holding a foreign
key to it).  Adding an entity means declaring its dependencies here.

Each ``remove`` commits on its own, so the purge is not atomic across
entities.  A failure stops the purge where it happened and is returned in
the ``TeardownReport``; recovering a half-purged database is out of scope.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from graphlib import CycleError, TopologicalSorter
from typing import Any

from sqlalchemy import inspect
from sqlalchemy.exc import SQLAlchemyError

from geostore.exceptions import (
    PurgePlanError,
    TeardownCountInvariantError,
    TeardownError,
    TeardownQueryError,
    TeardownRowError,
)
from geostore.persistence.dao import DAORegistry, EntityDAO

logger = logging.getLogger(__name__)

# entity -> entities that must be purged before it
PURGE_DEPENDENCIES: dict[str, tuple[str, ...]] = {
    "security": (),
    "stored_data": (),
    "attribute": (),
    "resource": ("stored_data", "attribute", "security"),
    "category": ("resource",),
    "user_attribute": (),
    "user": ("user_attribute", "security"),
    "user_group": ("security",),
}


@dataclass(frozen=True)
class PurgePlan:
    """Children-before-parents purge order over named entities."""

    order: tuple[str, ...]

    @classmethod
    def from_dependencies(cls, dependencies: Mapping[str, Sequence[str]]) -> PurgePlan:
        """Topologically sort ``dependencies``.

        Ties are broken by declaration order, so the same table always
        yields the same plan.
        """
        unknown = sorted({dep for deps in dependencies.values() for dep in deps} - set(dependencies))
        if unknown:
            raise PurgePlanError(f"Undeclared entities in purge dependencies: {', '.join(unknown)}")

        sorter: TopologicalSorter[str] = TopologicalSorter()
        for entity, deps in dependencies.items():
            sorter.add(entity, *deps)
        try:
            order = tuple(sorter.static_order())
        except CycleError as exc:
            raise PurgePlanError(f"Cyclic purge dependencies: {' -> '.join(exc.args[1])}") from exc
        return cls(order=order)

    def __iter__(self) -> Iterator[str]:
        return iter(self.order)

    def position(self, entity: str) -> int:
        return self.order.index(entity)


DEFAULT_PLAN = PurgePlan.from_dependencies(PURGE_DEPENDENCIES)


@dataclass
class TeardownReport:
    """Outcome of a purge: per-entity removed counts and the first failure, if any."""

    removed: dict[str, int] = field(default_factory=dict)
    error: TeardownError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def total_removed(self) -> int:
        return sum(self.removed.values())

    def raise_for_error(self) -> None:
        """Raise the recorded failure, if there is one."""
        if self.error is not None:
            raise self.error


def _row_id(entity: Any) -> Any:
    try:
        identity = inspect(type(entity)).primary_key_from_instance(entity)
    except SQLAlchemyError:
        return getattr(entity, "id", None)
    return identity[0] if len(identity) == 1 else tuple(identity)


def purge_entity(name: str, dao: EntityDAO[Any]) -> int:
    """Remove every row of one entity type and check the table is empty.

    Returns the number of rows removed.  Raises ``TeardownQueryError`` when
    the rows cannot be listed or counted, ``TeardownRowError`` on the first
    row that is not removed, and ``TeardownCountInvariantError`` when rows
    remain afterwards.
    """
    try:
        rows = dao.find_all()
    except SQLAlchemyError as exc:
        raise TeardownQueryError(name, "find_all", str(exc)) from exc
    for row in rows:
        row_id = _row_id(row)
        logger.info("Removing %s %s", name, row_id)
        try:
            removed = dao.remove(row)
        except SQLAlchemyError as exc:
            raise TeardownRowError(name, row_id, str(exc)) from exc
        if not removed:
            raise TeardownRowError(name, row_id, "remove() reported nothing deleted")

    try:
        remaining = dao.count(None)
    except SQLAlchemyError as exc:
        raise TeardownQueryError(name, "count", str(exc)) from exc
    if remaining != 0:
        raise TeardownCountInvariantError(name, remaining)
    return len(rows)


def remove_all(daos: DAORegistry | Mapping[str, EntityDAO[Any]], plan: PurgePlan = DEFAULT_PLAN) -> TeardownReport:
    """Empty every table in ``plan`` order.

    ``daos`` is anything indexable by entity name (a ``DAORegistry`` or a
    plain mapping).  The purge stops at the first failure, which is
    returned in the report rather than raised.
    """
    report = TeardownReport()
    for name in plan:
        try:
            report.removed[name] = purge_entity(name, daos[name])
        except TeardownError as exc:
            logger.error("Teardown aborted on %s: %s", name, exc)
            report.error = exc
            break
    else:
        logger.debug("Teardown removed %d row(s): %s", report.total_removed, report.removed)
    return report
