"""Task service."""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from yosan.analytics.views import get_overdue_tasks, get_today_tasks
from yosan.models.entities import Task
from yosan.queries.catalog import query_tasks
from yosan.services.base import EntityService
from yosan.store import TASKS_TABLE


class TaskService(EntityService[Task]):
    table_name = TASKS_TABLE.name

    def add(self, entity: Task | Mapping[str, Any]) -> int:
        """
        Append a task after every existing one.

        Its order is one past the highest order in the table (0 for the
        first task); any order supplied by the caller is ignored.
        """
        last = self.table.last("order")
        order = last.order + 1 if last is not None else 0
        if isinstance(entity, Task):
            task = entity.model_copy(update={"order": order})
        else:
            task = Task.model_validate({**entity, "order": order})
        return self.table.add(task)

    def toggle(self, entity_id: Any) -> Task | None:
        """
        Flip a task's completion state.

        completed_at is set to now when completing and cleared when
        reopening. Returns None for a missing id.
        """
        key = self._existing_id(entity_id, "toggle")
        if key is None:
            return None
        task = self.table.get(key)
        completed = not task.completed
        return self.table.update(key, {
            "completed": completed,
            "completed_at": self.db.now() if completed else None,
        })

    def reorder(self, task_ids: Iterable[Any]) -> int:
        """
        Give each listed task its position as its new order.

        Runs as one batch. Ids that no longer exist are skipped; the
        remaining tasks keep the position they have in the given list.
        Returns how many tasks were updated.
        """
        updated = 0
        with self.db.batch():
            for position, entity_id in enumerate(task_ids):
                key = self._existing_id(entity_id, "reorder")
                if key is None:
                    continue
                self.table.update(key, {"order": position})
                updated += 1
        return updated

    def list(self, project_id: Any = None) -> list[Task]:
        """Tasks in manual order, optionally for one project."""
        return query_tasks(self.db, project_id)

    def list_all(self) -> list[Task]:
        return self.table.list()

    def list_today(self) -> list[Task]:
        """Tasks due today by the database clock."""
        return get_today_tasks(self.list_all(), self.db.now())

    def list_overdue(self) -> list[Task]:
        """Incomplete tasks due before today by the database clock."""
        return get_overdue_tasks(self.list_all(), self.db.now())
