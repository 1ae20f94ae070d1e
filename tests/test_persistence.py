"""
Tests for snapshot persistence.
"""

import json
from datetime import datetime

import pytest

from yosan.models import BudgetCategory, Expense
from yosan.store import (
    Database,
    JsonSnapshotStorage,
    MemorySnapshotStorage,
    PersistenceError,
    SchemaVersionError,
)


class TestJsonSnapshotStorage:
    """Tests for the JSON file backend."""

    def test_missing_file_loads_none(self, tmp_path):
        storage = JsonSnapshotStorage(tmp_path / "yosan.json")
        assert storage.load() is None

    def test_save_then_load(self, tmp_path):
        storage = JsonSnapshotStorage(tmp_path / "nested" / "yosan.json")
        storage.save({"schema_version": 1, "tables": {}})
        assert storage.load() == {"schema_version": 1, "tables": {}}
        # No temp files left behind
        assert [p.name for p in storage.path.parent.iterdir()] == ["yosan.json"]

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "yosan.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonSnapshotStorage(path).load()

    def test_non_object_raises(self, tmp_path):
        path = tmp_path / "yosan.json"
        path.write_text("[1, 2]", encoding="utf-8")
        with pytest.raises(PersistenceError):
            JsonSnapshotStorage(path).load()

    def test_database_survives_reopen(self, tmp_path, clock):
        """Test rows written through one Database are restored by the next."""
        path = tmp_path / "yosan.json"
        db = Database.open(JsonSnapshotStorage(path), clock=clock)
        category_id = db.categories.add(BudgetCategory(name="Food", percentage=100))
        db.expenses.add(Expense(category_id=category_id, amount=120.5, date=datetime(2026, 10, 2)))

        reopened = Database.open(JsonSnapshotStorage(path), clock=clock)
        assert [c.name for c in reopened.categories.list()] == ["Food"]
        expense = reopened.expenses.list()[0]
        assert expense.amount == 120.5
        assert expense.date == datetime(2026, 10, 2)
        assert expense.created_at == clock.now

    def test_file_is_readable_json(self, tmp_path, clock):
        path = tmp_path / "yosan.json"
        db = Database.open(JsonSnapshotStorage(path), clock=clock)
        db.categories.add(BudgetCategory(name="Rent", percentage=100))
        data = json.loads(path.read_text(encoding="utf-8"))
        assert data["schema_version"] == 1
        assert data["tables"]["categories"]["rows"][0]["name"] == "Rent"


class TestMemorySnapshotStorage:
    """Tests for the in-memory backend and save timing."""

    def test_saves_once_per_batch(self, clock):
        storage = MemorySnapshotStorage()
        db = Database.open(storage, clock=clock)
        with db.batch():
            db.categories.add(BudgetCategory(name="A", percentage=50))
            db.categories.add(BudgetCategory(name="B", percentage=50))
        assert storage.save_count == 1

    def test_saved_before_listeners_run(self, clock):
        storage = MemorySnapshotStorage()
        db = Database.open(storage, clock=clock)
        seen = []
        db.add_change_listener(
            lambda events: seen.append(len(storage.load()["tables"]["categories"]["rows"]))
        )
        db.categories.add(BudgetCategory(name="A", percentage=100))
        assert seen == [1]

    def test_open_rejects_foreign_snapshot(self, clock):
        storage = MemorySnapshotStorage({"schema_version": 2, "tables": {}})
        with pytest.raises(SchemaVersionError):
            Database.open(storage, clock=clock)

    def test_restore_does_not_resave(self, clock):
        source = Database(clock=clock)
        source.categories.add(BudgetCategory(name="A", percentage=100))
        storage = MemorySnapshotStorage(source.snapshot())
        Database.open(storage, clock=clock)
        assert storage.save_count == 0
