"""
The Yosan Database

Owns the five tables, the clock, change dispatch and optional snapshot
persistence. It is the only authoritative copy of the data; services,
live queries and analytics all receive it explicitly rather than
reaching for a global.

Change dispatch:
- Each committed write produces a ChangeEvent.
- Outside a batch, events are dispatched to listeners immediately,
  before the write call returns.
- Inside `with db.batch():` events are held until the outermost batch
  exits and then dispatched together (one notification for a rebalance
  that rewrites every category).
- If a snapshot storage is attached, the snapshot is saved before
  listeners run, so a listener never observes unsaved state.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Any, Callable, Iterator, Optional

from yosan.audit import get_logger
from yosan.models.entities import AppSettings, BudgetCategory, Expense, Project, Task
from yosan.models.events import ChangeEvent
from yosan.store.interface import (
    CATEGORIES_TABLE,
    EXPENSES_TABLE,
    PROJECTS_TABLE,
    SCHEMA,
    SCHEMA_VERSION,
    SETTINGS_TABLE,
    TASKS_TABLE,
    PersistenceError,
    SchemaVersionError,
    SnapshotStorageInterface,
    StoreError,
)
from yosan.store.table import Table

ChangeListener = Callable[[list[ChangeEvent]], None]


class Database:
    """
    Process-local store for settings, categories, expenses, projects and tasks.

    Usage:
        db = Database()
        with db.batch():
            db.categories.add(BudgetCategory(name="Food", percentage=50))
            db.categories.add(BudgetCategory(name="Rent", percentage=50))
    """

    def __init__(
        self,
        storage: Optional[SnapshotStorageInterface] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self._clock = clock or datetime.now
        self._storage = storage
        self._listeners: list[ChangeListener] = []
        self._pending: list[ChangeEvent] = []
        self._batch_depth = 0
        self._read_trackers: list[set[str]] = []
        self._logger = get_logger("yosan.store")

        self._tables: dict[str, Table[Any]] = {
            schema.name: Table(
                schema,
                clock=self.now,
                on_change=self._record_change,
                on_read=self._record_read,
            )
            for schema in SCHEMA
        }
        self.settings: Table[AppSettings] = self._tables[SETTINGS_TABLE.name]
        self.categories: Table[BudgetCategory] = self._tables[CATEGORIES_TABLE.name]
        self.expenses: Table[Expense] = self._tables[EXPENSES_TABLE.name]
        self.projects: Table[Project] = self._tables[PROJECTS_TABLE.name]
        self.tasks: Table[Task] = self._tables[TASKS_TABLE.name]

    @classmethod
    def open(
        cls,
        storage: SnapshotStorageInterface,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> "Database":
        """
        Create a database backed by `storage`, restoring its last snapshot.

        Raises:
            SchemaVersionError: If the snapshot has another schema version
            PersistenceError: If the snapshot cannot be read
        """
        db = cls(clock=clock)
        snapshot = storage.load()
        if snapshot is not None:
            db.restore(snapshot)
        db._storage = storage
        return db

    # ------------------------------------------------------------------
    # Clock and tables
    # ------------------------------------------------------------------

    def now(self) -> datetime:
        """Current time according to the database clock."""
        return self._clock()

    def table(self, name: str) -> Table[Any]:
        try:
            return self._tables[name]
        except KeyError:
            raise StoreError(f"Unknown table: {name}") from None

    @property
    def table_names(self) -> list[str]:
        return list(self._tables)

    @property
    def storage(self) -> Optional[SnapshotStorageInterface]:
        return self._storage

    # ------------------------------------------------------------------
    # Change dispatch
    # ------------------------------------------------------------------

    def add_change_listener(self, listener: ChangeListener) -> Callable[[], None]:
        """
        Register a callback receiving lists of committed ChangeEvents.

        Returns a function that removes the listener.
        """
        self._listeners.append(listener)

        def remove() -> None:
            self.remove_change_listener(listener)

        return remove

    def remove_change_listener(self, listener: ChangeListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    @contextmanager
    def batch(self) -> Iterator["Database"]:
        """
        Defer change dispatch until the outermost batch exits.

        Writes inside the batch are still committed one by one; if the
        block raises, rows written before the error stay written and
        their events are still dispatched.
        """
        self._batch_depth += 1
        try:
            yield self
        finally:
            self._batch_depth -= 1
            if self._batch_depth == 0:
                self._flush()

    @property
    def in_batch(self) -> bool:
        return self._batch_depth > 0

    @contextmanager
    def track_reads(self) -> Iterator[set[str]]:
        """Collect the names of tables read inside the block."""
        tables: set[str] = set()
        self._read_trackers.append(tables)
        try:
            yield tables
        finally:
            self._read_trackers.remove(tables)

    def _record_read(self, table: str) -> None:
        for tracker in self._read_trackers:
            tracker.add(table)

    def _record_change(self, event: ChangeEvent) -> None:
        self._pending.append(event)
        if self._batch_depth == 0:
            self._flush()

    def _flush(self) -> None:
        if not self._pending:
            return
        events, self._pending = self._pending, []
        self._persist()
        for listener in list(self._listeners):
            try:
                listener(events)
            except Exception:
                self._logger.exception(
                    "change_listener_failed",
                    listener=getattr(listener, "__qualname__", repr(listener)),
                )

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def snapshot(self) -> dict[str, Any]:
        """Serialise every table to one JSON-compatible document."""
        return {
            "schema_version": SCHEMA_VERSION,
            "tables": {name: table.dump() for name, table in self._tables.items()},
        }

    def restore(self, snapshot: dict[str, Any]) -> None:
        """
        Replace all tables from a snapshot.

        Tables missing from the snapshot are left empty. Every table is
        validated before any is replaced, so a bad snapshot changes nothing.
        """
        version = snapshot.get("schema_version")
        if version != SCHEMA_VERSION:
            raise SchemaVersionError(
                f"Snapshot schema version {version!r} does not match {SCHEMA_VERSION}"
            )
        tables = snapshot.get("tables", {})
        unknown = set(tables) - set(self._tables)
        if unknown:
            raise SchemaVersionError(f"Snapshot has unknown tables: {sorted(unknown)}")
        prepared = {
            name: table.prepare_restore(tables.get(name, {"next_id": 1, "rows": []}))
            for name, table in self._tables.items()
        }
        with self.batch():
            for name, table in self._tables.items():
                table.apply_restore(*prepared[name])

    def _persist(self) -> None:
        if self._storage is None:
            return
        try:
            self._storage.save(self.snapshot())
        except PersistenceError as e:
            # Rows are committed in memory; the next successful save catches up
            self._logger.error("snapshot_save_failed", error=str(e))
