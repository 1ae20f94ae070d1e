"""
Tests for the live query catalog.
"""

from datetime import date, datetime

from yosan.models import AppSettings, BudgetCategory, Expense, Project, Task


def _expense(amount, when, category_id=1):
    return Expense(category_id=category_id, amount=amount, date=when)


class TestLiveQueries:
    """Tests for each LiveQueries entry point."""

    def test_settings_absent_then_present(self, db, live):
        received = []
        sub = live.settings(listener=received.append)
        assert sub.current is None
        db.settings.add(AppSettings(total_budget=100))
        assert sub.current.total_budget == 100
        assert len(received) == 1

    def test_categories_default_is_empty_list(self, live):
        assert live.categories().current == []

    def test_expenses_in_range_update_deps(self, db, live):
        db.expenses.add(_expense(10, datetime(2026, 10, 1, 9, 0)))
        db.expenses.add(_expense(20, datetime(2026, 10, 10, 9, 0)))
        sub = live.expenses_in_range(date(2026, 10, 1), date(2026, 10, 5))
        assert [e.amount for e in sub.current] == [10]
        sub.update_deps(date(2026, 10, 5), date(2026, 10, 31))
        assert [e.amount for e in sub.current] == [20]

    def test_month_expenses_follow_settings(self, db, live):
        """Test changing the month start day re-runs the month query."""
        settings_id = db.settings.add(AppSettings(total_budget=100, month_start_day=1))
        db.expenses.add(_expense(10, datetime(2026, 9, 28, 9, 0)))
        db.expenses.add(_expense(20, datetime(2026, 10, 5, 9, 0)))
        sub = live.month_expenses()
        assert [e.amount for e in sub.current] == [20]

        db.settings.update(settings_id, {"month_start_day": 25})
        assert [e.amount for e in sub.current] == [20, 10]

    def test_all_expenses_newest_first(self, db, live):
        sub = live.all_expenses()
        db.expenses.add(_expense(10, datetime(2026, 10, 1)))
        db.expenses.add(_expense(20, datetime(2026, 10, 3)))
        assert [e.amount for e in sub.current] == [20, 10]

    def test_projects_newest_first(self, db, live, clock):
        sub = live.projects()
        db.projects.add(Project(name="old"))
        clock.advance(days=1)
        db.projects.add(Project(name="new"))
        assert [p.name for p in sub.current] == ["new", "old"]

    def test_tasks_by_project_in_order(self, db, live):
        db.tasks.add(Task(title="second", project_id=1, order=2))
        db.tasks.add(Task(title="first", project_id=1, order=1))
        db.tasks.add(Task(title="elsewhere", project_id=2, order=0))
        assert [t.title for t in live.tasks(1).current] == ["first", "second"]
        assert [t.title for t in live.tasks().current] == ["elsewhere", "first", "second"]
        assert live.tasks("nope").current == []

    def test_all_tasks(self, db, live):
        sub = live.all_tasks()
        db.tasks.add(Task(title="a"))
        assert [t.title for t in sub.current] == ["a"]

    def test_analytics_reacts_to_every_table(self, db, live):
        sub = live.analytics()
        assert sub.current.total_budget == 0
        assert sub.tables >= {"settings", "categories", "expenses", "tasks"}

        db.settings.add(AppSettings(total_budget=1000))
        category_id = db.categories.add(BudgetCategory(name="Food", percentage=100, allocated=1000))
        db.expenses.add(_expense(100, datetime(2026, 10, 18, 9, 0), category_id))
        db.tasks.add(Task(title="a", completed=True))

        summary = sub.current
        assert summary.total_budget == 1000
        assert summary.total_spent == 100
        assert summary.savings_rate == 90
        assert summary.productivity_score == 100
        assert summary.month_window.start == date(2026, 10, 1)

    def test_analytics_for_fixed_day(self, db, live):
        db.expenses.add(_expense(100, datetime(2026, 9, 15, 9, 0)))
        sub = live.analytics(today=date(2026, 9, 20))
        assert sub.current.total_spent == 100
        assert sub.current.month_window.end == date(2026, 9, 30)
