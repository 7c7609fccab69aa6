from .dao import (
    AttributeDAO,
    CategoryDAO,
    DAORegistry,
    EntityDAO,
    ResourceDAO,
    SecurityDAO,
    SQLAlchemyDAO,
    StoredDataDAO,
    UserAttributeDAO,
    UserDAO,
    UserGroupDAO,
)
from .database_connector import DatabaseConnector
from .init_db import drop_all_tables, initialize_database, purge_database, reset_database
from .models import (
    Attribute,
    Base,
    Category,
    DataType,
    Resource,
    Role,
    Security,
    StoredData,
    User,
    UserAttribute,
    UserGroup,
    usergroup_members,
)
from .schema import CREATE_ORDER, DROP_ORDER, build_schema_script, drop_schema, ensure_schema, verify_schema

__all__ = [
    "DatabaseConnector",
    "initialize_database",
    "drop_all_tables",
    "reset_database",
    "purge_database",
    "ensure_schema",
    "drop_schema",
    "verify_schema",
    "build_schema_script",
    "CREATE_ORDER",
    "DROP_ORDER",
    "Base",
    "Category",
    "Resource",
    "StoredData",
    "Attribute",
    "User",
    "UserAttribute",
    "UserGroup",
    "Security",
    "usergroup_members",
    "DataType",
    "Role",
    "EntityDAO",
    "SQLAlchemyDAO",
    "CategoryDAO",
    "ResourceDAO",
    "StoredDataDAO",
    "AttributeDAO",
    "UserDAO",
    "UserAttributeDAO",
    "UserGroupDAO",
    "SecurityDAO",
    "DAORegistry",
]
