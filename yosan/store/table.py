"""
In-Memory Table

One Table per entity type. A table:
- owns its rows and hands out copies only
- assigns monotonically increasing integer ids (never reused)
- stamps created_at / updated_at from the database clock
- keeps hash indexes for its declared secondary fields
- reports every committed write as a ChangeEvent and every read to the
  read tracker, so live queries know what to re-run

Writes are single-row atomic: a row is validated completely before it
replaces the stored version, so a failed update leaves the row untouched.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Generic, Iterable, Mapping, Optional, TypeVar

from yosan.models.entities import Record
from yosan.models.events import ChangeEvent, ChangeType
from yosan.store.interface import NotFoundError, StoreError, TableSchema

R = TypeVar("R", bound=Record)

# Fields owned by the store; callers may not write them through update()
_PROTECTED_FIELDS = frozenset({"id", "created_at"})


def _noop_read(table: str) -> None:
    return None


def _noop_change(event: ChangeEvent) -> None:
    return None


class Table(Generic[R]):
    """
    A typed, schema-defined table of records.

    Usage:
        expense_id = db.expenses.add(Expense(category_id=1, amount=50, date=today))
        db.expenses.update(expense_id, {"amount": 60})
        db.expenses.list(where={"category_id": 1}, order_by="date", descending=True)
    """

    def __init__(
        self,
        schema: TableSchema,
        clock: Callable[[], datetime],
        on_change: Callable[[ChangeEvent], None] = _noop_change,
        on_read: Callable[[str], None] = _noop_read,
    ):
        self.schema = schema
        self._clock = clock
        self._on_change = on_change
        self._on_read = on_read
        self._rows: dict[int, R] = {}
        self._next_id = 1
        self._indexes: dict[str, dict[Any, set[int]]] = {
            field: {} for field in schema.indexes
        }

    @property
    def name(self) -> str:
        return self.schema.name

    @property
    def model(self) -> type[R]:
        return self.schema.model  # type: ignore[return-value]

    def __len__(self) -> int:
        return len(self._rows)

    def __repr__(self) -> str:
        return f"Table({self.name!r}, rows={len(self._rows)})"

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def add(self, entity: R | Mapping[str, Any]) -> int:
        """
        Insert a row and return its new id.

        Accepts a model instance or a plain dict of fields. An explicit id
        is honoured if it is free; otherwise the next id is assigned.
        """
        record = self._coerce(entity)
        if record.id is not None:
            if record.id in self._rows:
                raise StoreError(f"{self.name} row {record.id} already exists")
            new_id = record.id
        else:
            new_id = self._next_id
        self._next_id = max(self._next_id, new_id + 1)

        now = self._clock()
        stored = record.model_copy(
            update={"id": new_id, "created_at": now, "updated_at": now},
            deep=True,
        )
        self._rows[new_id] = stored
        self._index_row(stored)
        self._emit(ChangeType.CREATED, new_id)
        return new_id

    def bulk_add(self, entities: Iterable[R | Mapping[str, Any]]) -> list[int]:
        """Insert several rows; returns their ids in input order."""
        return [self.add(entity) for entity in entities]

    def update(self, entity_id: int, changes: Mapping[str, Any]) -> R:
        """
        Merge `changes` into an existing row and stamp updated_at.

        Raises:
            NotFoundError: If no row has this id
            StoreError: If changes try to rewrite id or created_at
            pydantic.ValidationError: If the merged row is invalid
        """
        current = self._rows.get(entity_id)
        if current is None:
            raise NotFoundError(self.name, entity_id)

        protected = _PROTECTED_FIELDS.intersection(changes)
        if protected:
            raise StoreError(
                f"Cannot update store-owned field(s) {sorted(protected)} on {self.name}"
            )

        data = current.model_dump()
        data.update(changes)
        data["updated_at"] = self._clock()
        updated = self.model.model_validate(data)

        self._unindex_row(current)
        self._rows[entity_id] = updated
        self._index_row(updated)
        self._emit(ChangeType.UPDATED, entity_id, changed_fields=sorted(changes))
        return updated.model_copy(deep=True)

    def delete(self, entity_id: int) -> bool:
        """
        Remove a row. Deleting a missing id is a no-op.

        Returns True if a row was removed.
        """
        current = self._rows.pop(entity_id, None)
        if current is None:
            return False
        self._unindex_row(current)
        self._emit(ChangeType.DELETED, entity_id)
        return True

    def delete_where(self, field: str, value: Any) -> int:
        """Delete every row whose indexed `field` equals `value`. Returns the count."""
        ids = sorted(self._ids_equal(field, value))
        for entity_id in ids:
            self.delete(entity_id)
        return len(ids)

    def clear(self) -> None:
        """Remove all rows. The id sequence is kept so ids are never reused."""
        if not self._rows:
            return
        self._rows.clear()
        for index in self._indexes.values():
            index.clear()
        self._emit(ChangeType.CLEARED, None)

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get(self, entity_id: int) -> Optional[R]:
        """Return a copy of the row, or None."""
        self._on_read(self.name)
        row = self._rows.get(entity_id)
        return row.model_copy(deep=True) if row is not None else None

    def count(self) -> int:
        self._on_read(self.name)
        return len(self._rows)

    def first(self) -> Optional[R]:
        """Row with the lowest id."""
        self._on_read(self.name)
        if not self._rows:
            return None
        return self._rows[min(self._rows)].model_copy(deep=True)

    def last(self, order_by: str) -> Optional[R]:
        """Row with the highest non-null value of an indexed field."""
        rows = self.list(order_by=order_by, descending=True)
        if not rows or getattr(rows[0], order_by) is None:
            return None
        return rows[0]

    def list(
        self,
        where: Optional[Mapping[str, Any]] = None,
        between: Optional[tuple[str, Any, Any]] = None,
        *,
        include_lower: bool = True,
        include_upper: bool = True,
        predicate: Optional[Callable[[R], bool]] = None,
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> list[R]:
        """
        Query rows.

        Args:
            where: Exact matches on indexed fields, ANDed together
            between: (field, lower, upper) range on an indexed field;
                rows with a null value never match
            include_lower / include_upper: Range bound inclusivity
            predicate: Arbitrary filter applied after index lookups
            order_by: Indexed field to sort by (nulls last); default is id order
            descending: Reverse the sort
            limit: Maximum number of rows

        Returns:
            Copies of the matching rows
        """
        self._on_read(self.name)

        candidate_ids: Optional[set[int]] = None
        for field, value in (where or {}).items():
            ids = self._ids_equal(field, value)
            candidate_ids = ids if candidate_ids is None else candidate_ids & ids
        if candidate_ids is None:
            candidate_ids = set(self._rows)

        rows = [self._rows[i] for i in candidate_ids]

        if between is not None:
            field, lower, upper = between
            self._require_index(field)
            rows = [
                row for row in rows
                if _in_range(getattr(row, field), lower, upper, include_lower, include_upper)
            ]

        if predicate is not None:
            rows = [row for row in rows if predicate(row)]

        if order_by is not None:
            rows = _sort_rows(rows, self._require_index(order_by), descending)
        else:
            rows.sort(key=lambda row: row.id, reverse=descending)

        if limit is not None:
            rows = rows[: max(0, limit)]
        return [row.model_copy(deep=True) for row in rows]

    # ------------------------------------------------------------------
    # Snapshots
    # ------------------------------------------------------------------

    def dump(self) -> dict[str, Any]:
        """Serialise rows and the id sequence to JSON-compatible data."""
        return {
            "next_id": self._next_id,
            "rows": [self._rows[i].model_dump(mode="json") for i in sorted(self._rows)],
        }

    def prepare_restore(self, data: Mapping[str, Any]) -> tuple[dict[int, R], int]:
        """
        Validate dump() output without touching the table.

        Rows are validated through the model; timestamps are kept as saved.

        Raises:
            StoreError: If a row has no id
        """
        rows: dict[int, R] = {}
        for raw in data.get("rows", []):
            row = self.model.model_validate(raw)
            if row.id is None:
                raise StoreError(f"Snapshot row in {self.name} has no id")
            rows[row.id] = row
        highest = max(rows, default=0)
        return rows, max(int(data.get("next_id", 1)), highest + 1)

    def apply_restore(self, rows: dict[int, R], next_id: int) -> None:
        """Swap in rows returned by prepare_restore()."""
        self._rows = dict(rows)
        for index in self._indexes.values():
            index.clear()
        for row in self._rows.values():
            self._index_row(row)
        self._next_id = next_id
        self._emit(ChangeType.RESTORED, None)

    def restore(self, data: Mapping[str, Any]) -> None:
        """Replace the table contents from dump() output; a bad row leaves it untouched."""
        self.apply_restore(*self.prepare_restore(data))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _coerce(self, entity: R | Mapping[str, Any]) -> R:
        if isinstance(entity, self.model):
            return entity
        if isinstance(entity, Record):
            raise StoreError(
                f"{self.name} stores {self.model.__name__}, got {type(entity).__name__}"
            )
        return self.model.model_validate(dict(entity))

    def _require_index(self, field: str) -> str:
        if field != "id" and field not in self._indexes:
            raise StoreError(f"{self.name}.{field} is not indexed")
        return field

    def _ids_equal(self, field: str, value: Any) -> set[int]:
        self._require_index(field)
        if field == "id":
            return {value} if value in self._rows else set()
        return set(self._indexes[field].get(value, ()))

    def _index_row(self, row: R) -> None:
        for field, index in self._indexes.items():
            index.setdefault(getattr(row, field), set()).add(row.id)

    def _unindex_row(self, row: R) -> None:
        for field, index in self._indexes.items():
            key = getattr(row, field)
            bucket = index.get(key)
            if bucket is None:
                continue
            bucket.discard(row.id)
            if not bucket:
                del index[key]

    def _emit(
        self,
        change_type: ChangeType,
        entity_id: Optional[int],
        changed_fields: Optional[list[str]] = None,
    ) -> None:
        self._on_change(ChangeEvent(
            timestamp=self._clock(),
            change_type=change_type,
            table=self.name,
            entity_id=entity_id,
            changed_fields=changed_fields or [],
        ))


def _in_range(value: Any, lower: Any, upper: Any, include_lower: bool, include_upper: bool) -> bool:
    if value is None:
        return False
    if lower is not None and (value < lower or (value == lower and not include_lower)):
        return False
    if upper is not None and (value > upper or (value == upper and not include_upper)):
        return False
    return True


def _sort_rows(rows: list[R], field: str, descending: bool) -> list[R]:
    """Sort by field with ties broken by id; null values always go last."""
    present = [row for row in rows if getattr(row, field) is not None]
    missing = [row for row in rows if getattr(row, field) is None]
    present.sort(key=lambda row: (getattr(row, field), row.id), reverse=descending)
    missing.sort(key=lambda row: row.id)
    return present + missing
