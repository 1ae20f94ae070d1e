"""
Record Store Package

In-memory tables with secondary indexes, change dispatch and optional
JSON snapshot persistence.
"""

from yosan.store.interface import (
    CATEGORIES_TABLE,
    EXPENSES_TABLE,
    PROJECTS_TABLE,
    SCHEMA,
    SCHEMA_VERSION,
    SETTINGS_TABLE,
    TASKS_TABLE,
    InvalidRangeError,
    NotFoundError,
    PersistenceError,
    SchemaVersionError,
    SnapshotStorageInterface,
    StoreError,
    TableSchema,
)
from yosan.store.table import Table
from yosan.store.database import ChangeListener, Database
from yosan.store.persistence import JsonSnapshotStorage, MemorySnapshotStorage

__all__ = [
    # Schema
    "CATEGORIES_TABLE",
    "EXPENSES_TABLE",
    "PROJECTS_TABLE",
    "SCHEMA",
    "SCHEMA_VERSION",
    "SETTINGS_TABLE",
    "TASKS_TABLE",
    "TableSchema",
    # Exceptions
    "InvalidRangeError",
    "NotFoundError",
    "PersistenceError",
    "SchemaVersionError",
    "StoreError",
    # Implementation
    "ChangeListener",
    "Database",
    "Table",
    # Persistence
    "JsonSnapshotStorage",
    "MemorySnapshotStorage",
    "SnapshotStorageInterface",
]
