"""
Entity Services Package

One service per entity; together they are the mutation surface of the
app. Each receives the Database explicitly.
"""

from yosan.services.base import EntityService
from yosan.services.categories import CategoryService
from yosan.services.expenses import ExpenseService
from yosan.services.projects import ProjectService
from yosan.services.settings import SettingsService
from yosan.services.tasks import TaskService

__all__ = [
    "CategoryService",
    "EntityService",
    "ExpenseService",
    "ProjectService",
    "SettingsService",
    "TaskService",
]
