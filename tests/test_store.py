"""
Tests for the record store: tables, indexes, batching and change dispatch.
"""

from datetime import datetime

import pytest
from pydantic import ValidationError

from yosan.models import BudgetCategory, ChangeType, Expense, Project, Task
from yosan.store import Database, NotFoundError, SchemaVersionError, StoreError


def _expense(category_id=1, amount=100.0, day=1, **kwargs):
    return Expense(category_id=category_id, amount=amount, date=datetime(2026, 10, day, 12, 0), **kwargs)


class TestTableWrites:
    """Tests for add / update / delete."""

    def test_add_assigns_sequential_ids(self, db):
        """Test ids are positive and increase."""
        first = db.categories.add(BudgetCategory(name="Food", percentage=50))
        second = db.categories.add(BudgetCategory(name="Rent", percentage=50))
        assert first == 1
        assert second == 2

    def test_add_stamps_timestamps(self, db, clock):
        entity_id = db.projects.add(Project(name="Home"))
        project = db.projects.get(entity_id)
        assert project.created_at == clock.now
        assert project.updated_at == clock.now

    def test_add_accepts_dict(self, db):
        entity_id = db.tasks.add({"title": "Call bank", "priority": "high"})
        assert db.tasks.get(entity_id).title == "Call bank"

    def test_add_rejects_invalid_row(self, db):
        with pytest.raises(ValidationError):
            db.categories.add({"name": "", "percentage": 10})
        assert db.categories.count() == 0

    def test_add_rejects_wrong_model(self, db):
        with pytest.raises(StoreError):
            db.categories.add(Project(name="Home"))

    def test_ids_never_reused(self, db):
        """Test deleted ids are not handed out again."""
        first = db.expenses.add(_expense())
        db.expenses.delete(first)
        second = db.expenses.add(_expense())
        assert second > first

    def test_ids_not_reused_after_clear(self, db):
        db.expenses.add(_expense())
        db.expenses.add(_expense())
        db.expenses.clear()
        assert db.expenses.add(_expense()) == 3

    def test_explicit_id_must_be_free(self, db):
        db.projects.add(Project(id=5, name="A"))
        with pytest.raises(StoreError):
            db.projects.add(Project(id=5, name="B"))
        assert db.projects.add(Project(name="C")) == 6

    def test_update_merges_and_stamps(self, db, clock):
        entity_id = db.expenses.add(_expense(amount=50))
        clock.advance(hours=1)
        updated = db.expenses.update(entity_id, {"amount": 75, "note": "lunch"})
        assert updated.amount == 75
        assert updated.note == "lunch"
        assert updated.category_id == 1
        assert updated.updated_at == clock.now
        assert updated.created_at < updated.updated_at

    def test_update_missing_row_raises(self, db):
        with pytest.raises(NotFoundError) as exc_info:
            db.tasks.update(99, {"title": "x"})
        assert exc_info.value.table == "tasks"
        assert exc_info.value.entity_id == 99

    def test_update_protects_store_fields(self, db):
        entity_id = db.projects.add(Project(name="Home"))
        with pytest.raises(StoreError):
            db.projects.update(entity_id, {"id": 10})

    def test_failed_update_leaves_row_untouched(self, db):
        """Test single-row atomicity."""
        entity_id = db.categories.add(BudgetCategory(name="Food", percentage=50))
        with pytest.raises(ValidationError):
            db.categories.update(entity_id, {"percentage": 500})
        assert db.categories.get(entity_id).percentage == 50

    def test_delete_missing_is_noop(self, db):
        assert db.tasks.delete(42) is False

    def test_delete_where_uses_index(self, db):
        db.tasks.add(Task(title="a", project_id=1))
        db.tasks.add(Task(title="b", project_id=1))
        db.tasks.add(Task(title="c", project_id=2))
        assert db.tasks.delete_where("project_id", 1) == 2
        assert [t.title for t in db.tasks.list()] == ["c"]


class TestTableReads:
    """Tests for get / list / ordering."""

    def test_returned_rows_are_copies(self, db):
        """Test mutating a returned row does not change the store."""
        entity_id = db.categories.add(BudgetCategory(name="Food", percentage=50))
        row = db.categories.get(entity_id)
        row.percentage = 99
        assert db.categories.get(entity_id).percentage == 50

    def test_get_missing_returns_none(self, db):
        assert db.expenses.get(1) is None

    def test_list_where(self, db):
        db.expenses.add(_expense(category_id=1))
        db.expenses.add(_expense(category_id=2))
        db.expenses.add(_expense(category_id=1))
        rows = db.expenses.list(where={"category_id": 1})
        assert [e.id for e in rows] == [1, 3]

    def test_list_between_inclusive(self, db):
        for day in (1, 5, 10, 15):
            db.expenses.add(_expense(day=day))
        rows = db.expenses.list(
            between=("date", datetime(2026, 10, 5, 12, 0), datetime(2026, 10, 10, 12, 0)),
        )
        assert [e.date.day for e in rows] == [5, 10]

    def test_list_between_exclusive_upper(self, db):
        for day in (1, 5, 10):
            db.expenses.add(_expense(day=day))
        rows = db.expenses.list(
            between=("date", datetime(2026, 10, 1, 12, 0), datetime(2026, 10, 10, 12, 0)),
            include_upper=False,
        )
        assert [e.date.day for e in rows] == [1, 5]

    def test_order_by_descending(self, db):
        for day in (5, 1, 10):
            db.expenses.add(_expense(day=day))
        rows = db.expenses.list(order_by="date", descending=True)
        assert [e.date.day for e in rows] == [10, 5, 1]

    def test_order_by_puts_nulls_last(self, db):
        db.tasks.add(Task(title="no date"))
        db.tasks.add(Task(title="later", due_date=datetime(2026, 10, 30)))
        db.tasks.add(Task(title="sooner", due_date=datetime(2026, 10, 20)))
        rows = db.tasks.list(order_by="due_date")
        assert [t.title for t in rows] == ["sooner", "later", "no date"]

    def test_unindexed_field_rejected(self, db):
        with pytest.raises(StoreError):
            db.expenses.list(where={"note": "x"})
        with pytest.raises(StoreError):
            db.expenses.list(order_by="amount")

    def test_index_follows_updates(self, db):
        entity_id = db.expenses.add(_expense(category_id=1))
        db.expenses.update(entity_id, {"category_id": 2})
        assert db.expenses.list(where={"category_id": 1}) == []
        assert [e.id for e in db.expenses.list(where={"category_id": 2})] == [entity_id]

    def test_last_by_order(self, db):
        db.tasks.add(Task(title="a", order=3))
        db.tasks.add(Task(title="b", order=7))
        assert db.tasks.last("order").title == "b"

    def test_first_is_lowest_id(self, db):
        db.projects.add(Project(name="first"))
        db.projects.add(Project(name="second"))
        assert db.projects.first().name == "first"

    def test_limit(self, db):
        for day in (1, 2, 3):
            db.expenses.add(_expense(day=day))
        assert len(db.expenses.list(limit=2)) == 2


class TestChangeDispatch:
    """Tests for change events, batching and read tracking."""

    def test_write_notifies_listeners(self, db):
        received = []
        db.add_change_listener(received.append)
        entity_id = db.projects.add(Project(name="Home"))
        assert len(received) == 1
        event = received[0][0]
        assert event.change_type == ChangeType.CREATED
        assert event.table == "projects"
        assert event.entity_id == entity_id

    def test_update_event_lists_changed_fields(self, db):
        entity_id = db.expenses.add(_expense())
        received = []
        db.add_change_listener(received.append)
        db.expenses.update(entity_id, {"note": "x", "amount": 5})
        assert received[0][0].changed_fields == ["amount", "note"]

    def test_remove_listener(self, db):
        received = []
        remove = db.add_change_listener(received.append)
        remove()
        db.projects.add(Project(name="Home"))
        assert received == []

    def test_batch_coalesces_notifications(self, db):
        """Test a batch produces one dispatch with every event."""
        received = []
        db.add_change_listener(received.append)
        with db.batch():
            db.categories.add(BudgetCategory(name="Food", percentage=50))
            db.categories.add(BudgetCategory(name="Rent", percentage=50))
            assert received == []
        assert len(received) == 1
        assert len(received[0]) == 2

    def test_nested_batches_flush_once(self, db):
        received = []
        db.add_change_listener(received.append)
        with db.batch():
            with db.batch():
                db.projects.add(Project(name="A"))
            assert received == []
            db.projects.add(Project(name="B"))
        assert len(received) == 1

    def test_batch_keeps_writes_before_error(self, db):
        """Test there is no rollback: earlier writes survive."""
        with pytest.raises(RuntimeError):
            with db.batch():
                db.projects.add(Project(name="kept"))
                raise RuntimeError("boom")
        assert [p.name for p in db.projects.list()] == ["kept"]

    def test_failing_listener_does_not_block_others(self, db):
        received = []

        def broken(events):
            raise ValueError("listener bug")

        db.add_change_listener(broken)
        db.add_change_listener(received.append)
        db.projects.add(Project(name="Home"))
        assert len(received) == 1

    def test_track_reads(self, db):
        with db.track_reads() as tables:
            db.expenses.list()
            db.settings.first()
        assert tables == {"expenses", "settings"}

    def test_unknown_table(self, db):
        with pytest.raises(StoreError):
            db.table("invoices")


class TestSnapshots:
    """Tests for snapshot and restore."""

    def test_snapshot_roundtrip_keeps_ids_and_sequence(self, db, clock):
        db.projects.add(Project(name="A"))
        gone = db.projects.add(Project(name="B"))
        db.projects.delete(gone)
        snapshot = db.snapshot()

        other = Database(clock=clock)
        other.restore(snapshot)
        assert [p.name for p in other.projects.list()] == ["A"]
        assert other.projects.add(Project(name="C")) == 3

    def test_restore_rejects_other_schema_version(self, db):
        with pytest.raises(SchemaVersionError):
            db.restore({"schema_version": 999, "tables": {}})

    def test_restore_rejects_unknown_tables(self, db):
        snapshot = db.snapshot()
        snapshot["tables"]["invoices"] = {"next_id": 1, "rows": []}
        with pytest.raises(SchemaVersionError):
            db.restore(snapshot)

    def test_restore_notifies_once(self, db):
        snapshot = db.snapshot()
        received = []
        db.add_change_listener(received.append)
        db.restore(snapshot)
        assert len(received) == 1
        assert {e.table for e in received[0]} == set(db.table_names)

    def test_restore_with_id_less_row_keeps_existing_data(self, db):
        db.projects.add(Project(name="kept"))
        db.tasks.add(Task(title="kept task"))
        snapshot = db.snapshot()
        snapshot["tables"]["projects"]["rows"] = []
        snapshot["tables"]["tasks"]["rows"].append({"title": "no id"})
        received = []
        db.add_change_listener(received.append)

        with pytest.raises(StoreError):
            db.restore(snapshot)

        assert [p.name for p in db.projects.list()] == ["kept"]
        assert [t.title for t in db.tasks.list()] == ["kept task"]
        assert received == []

    def test_table_restore_with_id_less_row_keeps_rows(self, db):
        db.projects.add(Project(name="kept"))
        with pytest.raises(StoreError):
            db.projects.restore({"next_id": 5, "rows": [{"name": "no id"}]})
        assert [p.name for p in db.projects.list()] == ["kept"]
        assert db.projects.add(Project(name="next")) == 2
