from .config import DatabaseSettings
from .exceptions import (
    BootstrapError,
    GeoStoreError,
    PurgePlanError,
    SingletonInitError,
    TeardownCountInvariantError,
    TeardownError,
    TeardownQueryError,
    TeardownRowError,
)

__all__ = [
    "DatabaseSettings",
    "GeoStoreError",
    "BootstrapError",
    "SingletonInitError",
    "PurgePlanError",
    "TeardownError",
    "TeardownRowError",
    "TeardownQueryError",
    "TeardownCountInvariantError",
]
