"""
Change Event Models for Yosan

Every committed write to the store produces a ChangeEvent.
Events drive:
1. Live query invalidation (which tables changed)
2. Snapshot persistence (when to write the file)
3. The structured change log

DESIGN DECISION: Events describe WHAT changed (table, row, operation),
never the row contents. Subscribers re-read the store to get fresh rows,
so an event can never carry stale data.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class ChangeType(str, Enum):
    """Kinds of row-level writes."""
    CREATED = "created"
    UPDATED = "updated"
    DELETED = "deleted"
    CLEARED = "cleared"
    RESTORED = "restored"


class ChangeEvent(BaseModel):
    """
    A single committed write.

    `entity_id` is None for table-wide operations (clear, restore).
    """

    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        ...,
        description="Store clock time of the write"
    )
    change_type: ChangeType
    table: str = Field(
        ...,
        min_length=1,
        description="Name of the table that was written"
    )
    entity_id: Optional[int] = Field(
        default=None,
        description="Row the write applied to"
    )
    changed_fields: list[str] = Field(
        default_factory=list,
        description="Fields touched by an update"
    )

    def to_log_dict(self) -> dict[str, Any]:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "change_type": self.change_type.value,
            "table": self.table,
            "entity_id": self.entity_id,
            "changed_fields": list(self.changed_fields),
        }
