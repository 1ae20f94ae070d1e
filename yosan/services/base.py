"""
Entity Service Base

Shared CRUD plumbing for the per-entity services. Services are the public
mutation surface: ids from callers are coerced to the canonical int form,
and writes that target a missing row are logged and reported through the
return value instead of raising.
"""

from typing import Any, Generic, Mapping, Optional, TypeVar

from yosan.analytics.views import coerce_id
from yosan.audit import ChangeAuditLogger
from yosan.models.entities import Record
from yosan.store import Database, Table

R = TypeVar("R", bound=Record)


class EntityService(Generic[R]):
    """CRUD operations over one table."""

    table_name: str = ""

    def __init__(self, db: Database, audit_logger: Optional[ChangeAuditLogger] = None):
        self.db = db
        self.audit_logger = audit_logger or ChangeAuditLogger()

    @property
    def table(self) -> Table[R]:
        return self.db.table(self.table_name)

    def add(self, entity: R | Mapping[str, Any]) -> int:
        """
        Insert a new row and return its id.

        Raises:
            pydantic.ValidationError: If the fields are invalid
        """
        return self.table.add(entity)

    def get(self, entity_id: Any) -> Optional[R]:
        key = coerce_id(entity_id)
        if key is None:
            return None
        return self.table.get(key)

    def update(self, entity_id: Any, **changes: Any) -> Optional[R]:
        """
        Merge changes into a row.

        Returns the updated row, or None if the id does not exist.
        """
        key = self._existing_id(entity_id, "update")
        if key is None:
            return None
        return self.table.update(key, changes)

    def delete(self, entity_id: Any) -> bool:
        """Remove a row. Returns False if there was nothing to remove."""
        key = coerce_id(entity_id)
        if key is None:
            return False
        return self.table.delete(key)

    def _existing_id(self, entity_id: Any, operation: str) -> Optional[int]:
        key = coerce_id(entity_id)
        if key is None or self.table.get(key) is None:
            self.audit_logger.log_not_found(self.table_name, entity_id, operation)
            return None
        return key
