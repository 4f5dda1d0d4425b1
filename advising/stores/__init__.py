"""
Stores Module

Persistence access for the early alert engine: abstract interfaces plus
their SQLAlchemy implementations.
"""

from .base import (
    EarlyAlertStore,
    PersonStore,
    RoutingStore,
    WatcherStore,
    ReferenceStore,
    CourseCatalog,
    ConfigStore,
    Stores,
)
from .sql import build_sql_stores

__all__ = [
    "EarlyAlertStore",
    "PersonStore",
    "RoutingStore",
    "WatcherStore",
    "ReferenceStore",
    "CourseCatalog",
    "ConfigStore",
    "Stores",
    "build_sql_stores",
]
