import re

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


class DatabaseSettings(BaseSettings):
    """Configuration for the database connection and schema bootstrap."""

    connection_string: str = Field(
        default="sqlite:///./geostore.db",
        description="SQLAlchemy connection string for the database.",
    )
    pool_size: int = Field(default=10, ge=1, description="Database connection pool size.")
    max_overflow: int = Field(
        default=20,
        ge=0,
        description="Maximum number of connections to create beyond pool_size.",
    )
    database_name: str | None = Field(
        default=None,
        description="Database to create and switch to before building the schema (SQL Server only).",
    )
    schema_name: str | None = Field(
        default=None,
        description="Namespace holding the GeoStore tables. None uses the connection default.",
    )
    echo: bool = Field(default=False, description="Log every SQL statement emitted by the engine.")
    smoke_test: bool = Field(
        default=True,
        description="Insert and delete a Category/Resource pair after creating the schema.",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="db_",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("database_name", "schema_name")
    @classmethod
    def _check_identifier(cls, value: str | None) -> str | None:
        # These names are interpolated into DDL, so only plain identifiers are allowed.
        if value is not None and not _IDENTIFIER.match(value):
            raise ValueError(f"not a valid SQL identifier: {value!r}")
        return value

    @property
    def is_sqlite(self) -> bool:
        return self.connection_string.startswith("sqlite")

    @property
    def is_in_memory(self) -> bool:
        return self.is_sqlite and (":memory:" in self.connection_string or self.connection_string.rstrip("/") == "sqlite:")

    @property
    def safe_connection_string(self) -> str:
        """Connection string with credentials stripped, for logging."""
        return self.connection_string.split("@")[-1] if "@" in self.connection_string else self.connection_string
