"""
Store Schema, Storage Interface and Errors

DESIGN DECISION: The in-memory tables are the source of truth; a
snapshot storage backend only mirrors them. We define an abstract
interface for that backend so we can:
1. Run purely in memory for tests
2. Write JSON snapshots on a desktop or server host
3. Swap in another backend later without touching the tables

The interface is intentionally simple - we're not building a database.
One schema version, five tables, integer keys.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Optional

from yosan.models.entities import (
    AppSettings,
    BudgetCategory,
    Expense,
    Project,
    Record,
    Task,
)


SCHEMA_VERSION = 1


@dataclass(frozen=True)
class TableSchema:
    """
    Declares a table: its name, row model and secondary indexes.

    Only indexed fields may be used for equality and range lookups.
    """
    name: str
    model: type[Record]
    indexes: tuple[str, ...] = ()


SETTINGS_TABLE = TableSchema("settings", AppSettings)
CATEGORIES_TABLE = TableSchema("categories", BudgetCategory, ("name", "created_at"))
EXPENSES_TABLE = TableSchema("expenses", Expense, ("category_id", "date", "created_at"))
PROJECTS_TABLE = TableSchema("projects", Project, ("name", "status", "priority", "created_at"))
TASKS_TABLE = TableSchema(
    "tasks",
    Task,
    ("project_id", "completed", "due_date", "order", "created_at"),
)

SCHEMA: tuple[TableSchema, ...] = (
    SETTINGS_TABLE,
    CATEGORIES_TABLE,
    EXPENSES_TABLE,
    PROJECTS_TABLE,
    TASKS_TABLE,
)


class SnapshotStorageInterface(ABC):
    """
    Abstract interface for persisting whole-store snapshots.

    A snapshot is a JSON-compatible dict:
        {"schema_version": 1,
         "tables": {name: {"next_id": int, "rows": [row_dict, ...]}}}
    """

    @abstractmethod
    def load(self) -> Optional[dict[str, Any]]:
        """
        Read the last saved snapshot.

        Returns:
            The snapshot, or None if nothing has been saved yet

        Raises:
            PersistenceError: If the snapshot exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, snapshot: dict[str, Any]) -> None:
        """
        Replace the saved snapshot.

        Raises:
            PersistenceError: If the write fails after retries
        """
        pass


class StoreError(Exception):
    """Base exception for store operations."""
    pass


class NotFoundError(StoreError):
    """Row not found in table."""

    def __init__(self, table: str, entity_id: Any):
        self.table = table
        self.entity_id = entity_id
        super().__init__(f"{table} row {entity_id!r} not found")


class InvalidRangeError(StoreError, ValueError):
    """A date-window parameter outside its domain (e.g. month start day 0 or 32)."""
    pass


class SchemaVersionError(StoreError):
    """Snapshot was written by a different schema version."""
    pass


class PersistenceError(StoreError):
    """Could not read or write the snapshot backend."""
    pass
