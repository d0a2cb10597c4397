"""Configuration module for the importer.

This module provides:
- Settings management with environment variables
- SurrealDB connection utilities
"""

from .settings import IndexSetting, Settings, get_settings
from .surrealdb import (
    get_surrealdb_connection,
    SurrealDBConnectionError,
)

__all__ = [
    # Settings
    "IndexSetting",
    "Settings",
    "get_settings",
    # SurrealDB
    "get_surrealdb_connection",
    "SurrealDBConnectionError",
]
