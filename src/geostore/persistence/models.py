"""SQLAlchemy ORM models for the GeoStore persistence layer.

Hierarchy (parent -> children holding the foreign key):
    Category -> Resource -> StoredData, Attribute, Security
    User -> UserAttribute, Security, membership
    UserGroup -> Security, membership

Relationships are declared from the child side only.  A parent never
cascades its delete onto children, so deleting a parent that is still
referenced is a foreign-key violation.
"""

import enum
from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.sql import func

# SQLite only autoincrements INTEGER PRIMARY KEY columns.
Identifier = BigInteger().with_variant(Integer, "sqlite")


class Base(DeclarativeBase):
    pass


class DataType(str, enum.Enum):
    """Type of an attribute value."""

    STRING = "STRING"
    NUMBER = "NUMBER"
    DATE = "DATE"


class Role(str, enum.Enum):
    """Role granted to a user."""

    ADMIN = "ADMIN"
    USER = "USER"
    GUEST = "GUEST"


usergroup_members = Table(
    "gs_usergroup_members",
    Base.metadata,
    Column("user_id", Identifier, ForeignKey("gs_user.id", ondelete="CASCADE"), primary_key=True),
    Column("group_id", Identifier, ForeignKey("gs_usergroup.id", ondelete="CASCADE"), primary_key=True),
)


class Category(Base):
    __tablename__ = "gs_category"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class Resource(Base):
    __tablename__ = "gs_resource"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(10000), nullable=True)
    creation: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())
    last_update: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    # "metadata" is reserved on declarative classes.
    resource_metadata: Mapped[str | None] = mapped_column("metadata", String(30000), nullable=True)
    creator: Mapped[str | None] = mapped_column(String(255), nullable=True)
    editor: Mapped[str | None] = mapped_column(String(255), nullable=True)
    advertised: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    category_id: Mapped[int] = mapped_column(Identifier, ForeignKey("gs_category.id"), nullable=False)

    category: Mapped[Category] = relationship()


class StoredData(Base):
    __tablename__ = "gs_stored_data"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    data: Mapped[str | None] = mapped_column(Text, nullable=True)
    resource_id: Mapped[int] = mapped_column(Identifier, ForeignKey("gs_resource.id"), nullable=False)

    resource: Mapped[Resource] = relationship()


class Attribute(Base):
    __tablename__ = "gs_attribute"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[DataType] = mapped_column(Enum(DataType), nullable=False, default=DataType.STRING)
    value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    resource_id: Mapped[int] = mapped_column(Identifier, ForeignKey("gs_resource.id"), nullable=False)

    resource: Mapped[Resource] = relationship()


class User(Base):
    __tablename__ = "gs_user"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str | None] = mapped_column(String(255), nullable=True)
    role: Mapped[Role] = mapped_column(Enum(Role), nullable=False, default=Role.USER)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    groups: Mapped[list["UserGroup"]] = relationship(secondary=usergroup_members, back_populates="users")


class UserAttribute(Base):
    __tablename__ = "gs_user_attribute"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[DataType] = mapped_column(Enum(DataType), nullable=False, default=DataType.STRING)
    value: Mapped[str | None] = mapped_column(String(255), nullable=True)
    user_id: Mapped[int] = mapped_column(Identifier, ForeignKey("gs_user.id"), nullable=False)

    user: Mapped[User] = relationship()


class UserGroup(Base):
    __tablename__ = "gs_usergroup"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    group_name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    enabled: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    users: Mapped[list["User"]] = relationship(secondary=usergroup_members, back_populates="groups")


class Security(Base):
    """Permission rule on a resource, granted to a user, a group, or neither."""

    __tablename__ = "gs_security"

    id: Mapped[int] = mapped_column(Identifier, primary_key=True, autoincrement=True)
    can_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    can_write: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    resource_id: Mapped[int] = mapped_column(Identifier, ForeignKey("gs_resource.id"), nullable=False)
    user_id: Mapped[int | None] = mapped_column(Identifier, ForeignKey("gs_user.id"), nullable=True)
    group_id: Mapped[int | None] = mapped_column(Identifier, ForeignKey("gs_usergroup.id"), nullable=True)

    resource: Mapped[Resource] = relationship()
    user: Mapped[User | None] = relationship()
    group: Mapped[UserGroup | None] = relationship()
