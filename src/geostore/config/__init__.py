from .database_settings import DatabaseSettings

__all__ = [
    "DatabaseSettings",
]
