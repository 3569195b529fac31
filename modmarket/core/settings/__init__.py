from .db_providers import AbstractDBProvider, PostgresProvider, SQLiteProvider, db_provider_factory
from .settings import AppSettings, app_settings_constructor

__all__ = [
    "AbstractDBProvider",
    "AppSettings",
    "PostgresProvider",
    "SQLiteProvider",
    "app_settings_constructor",
    "db_provider_factory",
]
