"""Entity-access objects (DAOs) for the GeoStore tables.

Every DAO exposes the uniform ``find_all`` / ``count`` / ``remove`` contract
the teardown engine relies on, plus the small CRUD surface tests use to seed
data.  Each mutating call runs in its own transaction and commits on its own.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, fields
from typing import Any, Generic, Protocol, TypeVar

from sqlalchemy import func, inspect, select
from sqlalchemy.orm import DeclarativeBase

from .database_connector import DatabaseConnector
from .models import Attribute, Category, Resource, Security, StoredData, User, UserAttribute, UserGroup

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=DeclarativeBase)
E_co = TypeVar("E_co", covariant=True)


class EntityDAO(Protocol[E_co]):
    """Minimal capability set every entity-access object must provide."""

    def find_all(self) -> list[E_co]: ...

    def count(self, criteria: Mapping[str, Any] | None = None) -> int: ...

    def remove(self, entity: Any) -> bool: ...


class SQLAlchemyDAO(Generic[E]):
    """Generic DAO for one mapped entity type."""

    model: type[E]

    def __init__(self, db: DatabaseConnector) -> None:
        self.db = db

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def persist(self, entity: E) -> E:
        """Insert a new entity and return it with its generated id loaded."""
        session = self.db.get_session()
        try:
            session.add(entity)
            session.commit()
            session.refresh(entity)
        except Exception:
            session.rollback()
            raise
        finally:
            self.db.remove_session()
        return entity

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def find(self, entity_id: Any) -> E | None:
        session = self.db.get_session()
        try:
            result: E | None = session.get(self.model, entity_id)
            return result
        finally:
            self.db.remove_session()

    def find_all(self) -> list[E]:
        """Return every row, ordered by primary key."""
        session = self.db.get_session()
        try:
            stmt = select(self.model).order_by(*inspect(self.model).primary_key)
            return list(session.execute(stmt).scalars().all())
        finally:
            self.db.remove_session()

    def search(self, **criteria: Any) -> list[E]:
        """Return rows whose columns equal the given values."""
        session = self.db.get_session()
        try:
            stmt = select(self.model).where(*self._where(criteria)).order_by(*inspect(self.model).primary_key)
            return list(session.execute(stmt).scalars().all())
        finally:
            self.db.remove_session()

    def count(self, criteria: Mapping[str, Any] | None = None) -> int:
        """Count rows matching ``criteria``; ``None`` counts the whole table."""
        session = self.db.get_session()
        try:
            stmt = select(func.count()).select_from(self.model)
            if criteria:
                stmt = stmt.where(*self._where(criteria))
            return int(session.execute(stmt).scalar_one())
        finally:
            self.db.remove_session()

    # ------------------------------------------------------------------
    # Delete
    # ------------------------------------------------------------------

    def remove(self, entity: E) -> bool:
        """Delete ``entity``. Returns True if something was deleted."""
        identity = inspect(self.model).primary_key_from_instance(entity)
        if any(part is None for part in identity):
            return False
        return self.remove_by_id(identity[0] if len(identity) == 1 else tuple(identity))

    def remove_by_id(self, entity_id: Any) -> bool:
        session = self.db.get_session()
        try:
            obj = session.get(self.model, entity_id)
            if obj is None:
                return False
            session.delete(obj)
            session.commit()
            return True
        except Exception:
            session.rollback()
            raise
        finally:
            self.db.remove_session()

    def _where(self, criteria: Mapping[str, Any]) -> list[Any]:
        columns = inspect(self.model).columns
        clauses = []
        for key, value in criteria.items():
            if key not in columns:
                raise ValueError(f"{self.entity_name} has no column {key!r}")
            clauses.append(columns[key] == value)
        return clauses


class CategoryDAO(SQLAlchemyDAO[Category]):
    model = Category

    def find_by_name(self, name: str) -> Category | None:
        rows = self.search(name=name)
        return rows[0] if rows else None


class ResourceDAO(SQLAlchemyDAO[Resource]):
    model = Resource

    def find_by_category(self, category_id: int) -> list[Resource]:
        return self.search(category_id=category_id)


class StoredDataDAO(SQLAlchemyDAO[StoredData]):
    model = StoredData


class AttributeDAO(SQLAlchemyDAO[Attribute]):
    model = Attribute


class UserDAO(SQLAlchemyDAO[User]):
    model = User

    def find_by_name(self, name: str) -> User | None:
        rows = self.search(name=name)
        return rows[0] if rows else None


class UserAttributeDAO(SQLAlchemyDAO[UserAttribute]):
    model = UserAttribute


class UserGroupDAO(SQLAlchemyDAO[UserGroup]):
    model = UserGroup

    def find_by_name(self, group_name: str) -> UserGroup | None:
        rows = self.search(group_name=group_name)
        return rows[0] if rows else None

    def add_member(self, group: UserGroup, user: User) -> bool:
        """Add ``user`` to ``group``. Returns False if either row is missing."""
        session = self.db.get_session()
        try:
            db_group = session.get(UserGroup, group.id)
            db_user = session.get(User, user.id)
            if db_group is None or db_user is None:
                return False
            if db_user not in db_group.users:
                db_group.users.append(db_user)
            session.commit()
            return True
        except Exception:
            session.rollback()
            raise
        finally:
            self.db.remove_session()

    def count_members(self, group: UserGroup) -> int:
        session = self.db.get_session()
        try:
            db_group = session.get(UserGroup, group.id)
            return 0 if db_group is None else len(db_group.users)
        finally:
            self.db.remove_session()


class SecurityDAO(SQLAlchemyDAO[Security]):
    model = Security


@dataclass(frozen=True)
class DAORegistry:
    """The full set of DAOs sharing one persistence context."""

    category: CategoryDAO
    resource: ResourceDAO
    stored_data: StoredDataDAO
    attribute: AttributeDAO
    user: UserDAO
    user_attribute: UserAttributeDAO
    user_group: UserGroupDAO
    security: SecurityDAO

    @classmethod
    def from_connector(cls, db: DatabaseConnector) -> DAORegistry:
        return cls(
            category=CategoryDAO(db),
            resource=ResourceDAO(db),
            stored_data=StoredDataDAO(db),
            attribute=AttributeDAO(db),
            user=UserDAO(db),
            user_attribute=UserAttributeDAO(db),
            user_group=UserGroupDAO(db),
            security=SecurityDAO(db),
        )

    def __getitem__(self, name: str) -> SQLAlchemyDAO[Any]:
        if name not in self.names():
            raise KeyError(name)
        dao: SQLAlchemyDAO[Any] = getattr(self, name)
        return dao

    def __iter__(self) -> Iterator[str]:
        return iter(self.names())

    def names(self) -> list[str]:
        return [f.name for f in fields(self)]

    def missing(self) -> list[str]:
        """Names of DAOs that were not wired."""
        return [name for name in self.names() if getattr(self, name) is None]
