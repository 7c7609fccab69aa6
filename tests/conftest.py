"""Shared test fixtures.

Provides a fresh in-memory SQLite database with the GeoStore schema for
every test that asks for ``db``, and wires the harness pytest plugin whose
session-wide context also runs on in-memory SQLite.
"""

import os
from datetime import datetime

import pytest

# Force an in-memory SQLite URL for the whole test run, before any
# DatabaseConnector is instantiated.
os.environ.setdefault("DB_CONNECTION_STRING", "sqlite:///:memory:")

from geostore.config import DatabaseSettings  # noqa: E402
from geostore.persistence import (  # noqa: E402
    Attribute,
    Category,
    DAORegistry,
    DatabaseConnector,
    DataType,
    Resource,
    Role,
    Security,
    StoredData,
    User,
    UserAttribute,
    UserGroup,
    ensure_schema,
)

pytest_plugins = ["geostore.harness.pytest_plugin"]


@pytest.fixture
def settings() -> DatabaseSettings:
    return DatabaseSettings(connection_string="sqlite:///:memory:", _env_file=None)  # type: ignore[call-arg]


@pytest.fixture
def db(settings):
    """A connector on its own in-memory database with the schema created."""
    connector = DatabaseConnector(settings)
    ensure_schema(connector)
    yield connector
    connector.dispose()


@pytest.fixture
def registry(db) -> DAORegistry:
    return DAORegistry.from_connector(db)


@pytest.fixture
def seeded(registry) -> dict:
    """One row per entity type, every foreign key populated."""
    category = registry.category.persist(Category(name="c1"))
    resource = registry.resource.persist(Resource(name="r1", creation=datetime.now(), category_id=category.id))
    data = registry.stored_data.persist(StoredData(data="payload", resource_id=resource.id))
    attribute = registry.attribute.persist(Attribute(name="a1", type=DataType.STRING, value="v", resource_id=resource.id))
    user = registry.user.persist(User(name="u1", password="secret", role=Role.USER))
    user_attribute = registry.user_attribute.persist(UserAttribute(name="email", value="u1@example.com", user_id=user.id))
    group = registry.user_group.persist(UserGroup(group_name="g1"))
    registry.user_group.add_member(group, user)
    user_rule = registry.security.persist(Security(can_read=True, can_write=False, resource_id=resource.id, user_id=user.id))
    group_rule = registry.security.persist(Security(can_read=True, can_write=True, resource_id=resource.id, group_id=group.id))
    return {
        "category": category,
        "resource": resource,
        "stored_data": data,
        "attribute": attribute,
        "user": user,
        "user_attribute": user_attribute,
        "user_group": group,
        "security": [user_rule, group_rule],
    }
