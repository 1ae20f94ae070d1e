"""
Composition Root for Yosan

This module wires the components together:
1. Database (optionally restored from a snapshot file)
2. Change audit logging
3. Live query manager and the query catalog
4. Entity services
5. First-run default data

DESIGN DECISION: Everything receives the Database explicitly. There is no
module-level store, so tests and hosts can run several independent
instances side by side.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Optional

from yosan.audit import ChangeAuditLogger, configure_logging, get_logger
from yosan.config import YosanSettings, get_settings
from yosan.models.entities import (
    AppSettings,
    BudgetCategory,
    Priority,
    Project,
    ProjectStatus,
    Task,
)
from yosan.queries import LiveQueries, LiveQueryManager
from yosan.services import (
    CategoryService,
    ExpenseService,
    ProjectService,
    SettingsService,
    TaskService,
)
from yosan.store import Database, JsonSnapshotStorage, SnapshotStorageInterface
from yosan.validation import BudgetValidator

logger = get_logger(__name__)

# (name, icon, color, percentage)
DEFAULT_CATEGORIES = [
    ("Food", "🍔", "#84cc16", 30),
    ("Dates", "💝", "#f472b6", 10),
    ("Accessories", "🎧", "#60a5fa", 10),
    ("Savings", "💰", "#a3e635", 40),
    ("Misc", "📦", "#a78bfa", 10),
]


@dataclass
class AppComponents:
    """Everything a host needs to drive the app."""

    config: YosanSettings
    db: Database
    audit_logger: ChangeAuditLogger
    live_queries: LiveQueryManager
    queries: LiveQueries
    settings: SettingsService
    categories: CategoryService
    expenses: ExpenseService
    projects: ProjectService
    tasks: TaskService
    validator: BudgetValidator

    def close(self) -> None:
        """Cancel every live query and stop auditing changes."""
        self.live_queries.close()
        self.db.remove_change_listener(self.audit_logger)


def create_app_components(
    storage: Optional[SnapshotStorageInterface] = None,
    settings: Optional[YosanSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> AppComponents:
    """
    Factory function to create all application components.

    Args:
        storage: Snapshot storage to restore from and save to. Defaults to
                 a JSON file at settings.data_path, or none (memory only).
        settings: Configuration; defaults to get_settings().
        clock: Time source for timestamps and "today"; defaults to datetime.now.

    Returns:
        AppComponents sharing one Database
    """
    config = settings or get_settings()
    configure_logging(config.log_level, config.json_logs)

    if storage is None and config.data_path is not None:
        storage = JsonSnapshotStorage(config.data_path)

    if storage is not None:
        db = Database.open(storage, clock=clock)
    else:
        db = Database(clock=clock)

    audit_logger = ChangeAuditLogger()
    db.add_change_listener(audit_logger)
    manager = LiveQueryManager(
        db,
        audit_logger=audit_logger,
        max_notification_rounds=config.max_notification_rounds,
    )

    logger.info(
        "app_components_created",
        environment=config.app_environment,
        persistent=storage is not None,
    )
    return AppComponents(
        config=config,
        db=db,
        audit_logger=audit_logger,
        live_queries=manager,
        queries=LiveQueries(manager),
        settings=SettingsService(db, audit_logger),
        categories=CategoryService(db, audit_logger),
        expenses=ExpenseService(db, audit_logger),
        projects=ProjectService(db, audit_logger),
        tasks=TaskService(db, audit_logger),
        validator=BudgetValidator(clock=db.now),
    )


def initialize_default_data(app: AppComponents) -> bool:
    """
    Seed a fresh store with settings, categories and a sample project.

    Does nothing if a settings row already exists. Everything is written
    in one batch, so live queries see a single change.

    Returns:
        True if data was seeded
    """
    db = app.db
    if db.settings.count() > 0:
        return False

    config = app.config
    total_budget = config.default_total_budget
    now = db.now()

    with db.batch():
        db.settings.add(AppSettings(
            total_budget=total_budget,
            currency=config.default_currency,
            currency_symbol=config.default_currency_symbol,
            month_start_day=config.default_month_start_day,
        ))

        db.categories.bulk_add(
            BudgetCategory(
                name=name,
                icon=icon,
                color=color,
                percentage=percentage,
                allocated=percentage * total_budget / 100,
            )
            for name, icon, color, percentage in DEFAULT_CATEGORIES
        )

        project_id = db.projects.add(Project(
            name="Personal Goals",
            description="Track personal development goals",
            color="#84cc16",
            priority=Priority.HIGH,
            status=ProjectStatus.ACTIVE,
        ))

        db.tasks.bulk_add([
            Task(
                project_id=project_id,
                title="Review monthly budget",
                description="Check spending patterns",
                priority=Priority.HIGH,
                due_date=now,
                order=0,
            ),
            Task(
                project_id=project_id,
                title="Set savings goal",
                description="Define target for next month",
                priority=Priority.MEDIUM,
                due_date=now + timedelta(days=7),
                order=1,
            ),
        ])

    logger.info("default_data_seeded", categories=len(DEFAULT_CATEGORIES))
    return True


def bootstrap(
    storage: Optional[SnapshotStorageInterface] = None,
    settings: Optional[YosanSettings] = None,
    clock: Optional[Callable[[], datetime]] = None,
) -> AppComponents:
    """Create the components and seed defaults when configured to."""
    app = create_app_components(storage=storage, settings=settings, clock=clock)
    if app.config.seed_default_data:
        initialize_default_data(app)
    return app
