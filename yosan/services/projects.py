"""Project service."""

from typing import Any

from yosan.analytics.views import coerce_id
from yosan.models.entities import Project
from yosan.services.base import EntityService
from yosan.store import PROJECTS_TABLE


class ProjectService(EntityService[Project]):
    table_name = PROJECTS_TABLE.name

    def list(self) -> list[Project]:
        """Projects, most recently created first."""
        return self.table.list(order_by="created_at", descending=True)

    def delete(self, entity_id: Any) -> bool:
        """
        Delete a project and every task that belongs to it.

        The two deletes are independent writes in one batch; if the
        project row is already gone its leftover tasks are still removed.
        Returns True if the project row existed.
        """
        key = coerce_id(entity_id)
        if key is None:
            return False
        with self.db.batch():
            removed_tasks = self.db.tasks.delete_where("project_id", key)
            removed = self.table.delete(key)
        if removed_tasks:
            self.audit_logger.log_cascade(self.table_name, key, self.db.tasks.name, removed_tasks)
        return removed
