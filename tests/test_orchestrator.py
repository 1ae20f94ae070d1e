"""
Tests for the composition root and first-run seeding.
"""

from datetime import timedelta

from yosan.config import YosanSettings
from yosan.models import Priority, ProjectStatus
from yosan.orchestrator import bootstrap, create_app_components, initialize_default_data
from yosan.store import MemorySnapshotStorage


class TestDefaultData:
    """Tests for initialize_default_data."""

    def test_seeds_settings(self, app):
        assert initialize_default_data(app) is True
        settings = app.settings.current()
        assert settings.total_budget == 50000
        assert settings.currency == "INR"
        assert settings.currency_symbol == "₹"
        assert settings.month_start_day == 1

    def test_seeds_categories(self, app):
        initialize_default_data(app)
        categories = app.categories.list()
        assert [(c.name, c.icon, c.percentage, c.allocated) for c in categories] == [
            ("Food", "🍔", 30, 15000),
            ("Dates", "💝", 10, 5000),
            ("Accessories", "🎧", 10, 5000),
            ("Savings", "💰", 40, 20000),
            ("Misc", "📦", 10, 5000),
        ]
        assert app.validator.validate_store(app.db).issues == []

    def test_seeds_project_and_tasks(self, app, clock):
        initialize_default_data(app)
        (project,) = app.projects.list()
        assert project.name == "Personal Goals"
        assert project.priority == Priority.HIGH
        assert project.status == ProjectStatus.ACTIVE

        tasks = app.tasks.list(project.id)
        assert [(t.title, t.order, t.priority) for t in tasks] == [
            ("Review monthly budget", 0, Priority.HIGH),
            ("Set savings goal", 1, Priority.MEDIUM),
        ]
        assert tasks[0].due_date == clock.now
        assert tasks[1].due_date == clock.now + timedelta(days=7)
        assert not any(t.completed for t in tasks)

    def test_seeding_is_one_notification(self, app):
        received = []
        app.db.add_change_listener(received.append)
        initialize_default_data(app)
        assert len(received) == 1

    def test_existing_settings_skip_seeding(self, app):
        app.settings.ensure(total_budget=123)
        assert initialize_default_data(app) is False
        assert app.categories.list() == []
        assert app.settings.current().total_budget == 123

    def test_seeding_twice_does_not_duplicate(self, app):
        initialize_default_data(app)
        initialize_default_data(app)
        assert len(app.categories.list()) == 5
        assert app.db.settings.count() == 1


class TestComponents:
    """Tests for create_app_components and bootstrap."""

    def test_components_share_one_database(self, app):
        assert app.categories.db is app.db
        assert app.tasks.db is app.db
        assert app.live_queries.db is app.db

    def test_changes_are_audited(self, app):
        initialize_default_data(app)
        # settings + 5 categories + project + 2 tasks
        assert app.audit_logger.event_count == 9

    def test_bootstrap_seeds_when_enabled(self, clock):
        config = YosanSettings(_env_file=None, seed_default_data=True, json_logs=False)
        app = bootstrap(settings=config, clock=clock)
        assert len(app.categories.list()) == 5
        app.close()

    def test_bootstrap_respects_seed_flag(self, config, clock):
        app = bootstrap(settings=config, clock=clock)
        assert app.settings.current() is None
        app.close()

    def test_data_path_persists_between_runs(self, tmp_path, clock):
        config = YosanSettings(
            _env_file=None,
            data_path=tmp_path / "yosan.json",
            seed_default_data=True,
            json_logs=False,
        )
        first = bootstrap(settings=config, clock=clock)
        first.expenses.add({"category_id": 1, "amount": 250, "date": clock.now})
        first.close()

        second = bootstrap(settings=config, clock=clock)
        assert len(second.categories.list()) == 5
        assert [e.amount for e in second.expenses.list_all()] == [250]
        second.close()

    def test_explicit_storage(self, config, clock):
        storage = MemorySnapshotStorage()
        app = create_app_components(storage=storage, settings=config, clock=clock)
        initialize_default_data(app)
        assert storage.save_count == 1
        app.close()

    def test_live_analytics_after_seed(self, app):
        initialize_default_data(app)
        sub = app.queries.analytics()
        summary = sub.current
        assert summary.total_budget == 50000
        assert summary.total_spent == 0
        assert summary.productivity_score == 0
        assert summary.pending_tasks == 2

        food = app.categories.list()[0]
        app.expenses.add({"category_id": food.id, "amount": 1500, "date": app.db.now()})
        summary = sub.current
        assert summary.total_spent == 1500
        assert summary.savings_rate == 97
        assert summary.category_breakdown[0].spent == 1500
