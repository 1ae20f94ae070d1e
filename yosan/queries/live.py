"""
Live Query Engine

DESIGN DECISION: Live queries are observer/publish-subscribe, not polling.
- A query is a pure function `query_fn(db, *deps)`.
- While it runs, the database records which tables it reads.
- After any committed write, every subscription that read a touched table
  re-runs; if its result changed by value, the new result is pushed.

GUARANTEES:
- Read-after-write: a re-evaluation always sees every write committed
  before it started (evaluation is synchronous, in-process).
- No stale errors: a failing query moves to "no data yet" (result None),
  and `current` hands out the caller's empty default.
- Cancellation is immediate: an unsubscribed query is never evaluated
  again, even if a write is already being dispatched.
- Reentrancy: writes made by listeners are queued and handled in the
  next notification round instead of recursing; a cap on rounds stops
  runaway feedback loops.
"""

from typing import Any, Callable, Generic, Optional, TypeVar

from yosan.audit import ChangeAuditLogger
from yosan.config import get_settings
from yosan.models.events import ChangeEvent
from yosan.store import Database

T = TypeVar("T")

QueryFn = Callable[..., T]
Listener = Callable[[Optional[T]], None]


class Subscription(Generic[T]):
    """
    A live query registration.

    `result` is None while there is no data (not yet evaluated, query
    failed, or the query itself returned None). `current` substitutes the
    default for that state so callers can always iterate.
    """

    def __init__(
        self,
        manager: "LiveQueryManager",
        query_fn: QueryFn,
        deps: tuple[Any, ...] = (),
        default_factory: Optional[Callable[[], T]] = None,
        name: Optional[str] = None,
    ):
        self._manager = manager
        self._query_fn = query_fn
        self._deps = tuple(deps)
        self._default_factory = default_factory
        self.name = name or getattr(query_fn, "__name__", repr(query_fn))
        self._listeners: list[Listener] = []
        self._result: Optional[T] = None
        self._tables: frozenset[str] = frozenset()
        self._active = True
        self._evaluations = 0

    def __repr__(self) -> str:
        state = "active" if self._active else "closed"
        return f"Subscription({self.name!r}, {state}, tables={sorted(self._tables)})"

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def result(self) -> Optional[T]:
        """Latest delivered result, None meaning 'no data yet'."""
        return self._result

    @property
    def current(self) -> Optional[T]:
        """Latest result, or the default when there is no data."""
        if self._result is None and self._default_factory is not None:
            return self._default_factory()
        return self._result

    @property
    def has_data(self) -> bool:
        return self._result is not None

    @property
    def active(self) -> bool:
        return self._active

    @property
    def tables(self) -> frozenset[str]:
        """Tables read by the last evaluation."""
        return self._tables

    @property
    def deps(self) -> tuple[Any, ...]:
        return self._deps

    @property
    def evaluations(self) -> int:
        """How many times the query function has run."""
        return self._evaluations

    # ------------------------------------------------------------------
    # Control
    # ------------------------------------------------------------------

    def add_listener(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def update_deps(self, *deps: Any) -> None:
        """Re-run the query with new dependencies (e.g. a new date range)."""
        if not self._active:
            return
        if tuple(deps) == self._deps:
            return
        self._deps = tuple(deps)
        self.refresh()

    def unsubscribe(self) -> None:
        """Stop receiving results. Safe to call more than once."""
        if not self._active:
            return
        self._active = False
        self._listeners.clear()
        self._manager._discard(self)

    def __enter__(self) -> "Subscription[T]":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()

    # ------------------------------------------------------------------
    # Evaluation
    # ------------------------------------------------------------------

    def refresh(self) -> bool:
        """
        Re-run the query now.

        Returns True if a changed result was delivered to listeners.
        """
        if not self._active:
            return False

        db = self._manager.db
        failed = False
        with db.track_reads() as tables:
            try:
                value = self._query_fn(db, *self._deps)
            except Exception as e:
                self._manager.audit_logger.log_query_failed(self.name, e)
                value = None
                failed = True
        self._evaluations += 1

        # A query that failed before reading anything keeps its old
        # tables so a later write can still revive it
        self._tables = frozenset(tables) | (self._tables if failed else frozenset())

        if not self._active or value == self._result:
            return False
        self._result = value
        self._deliver(value)
        return True

    def _deliver(self, value: Optional[T]) -> None:
        for listener in list(self._listeners):
            if not self._active:
                return
            try:
                listener(value)
            except Exception as e:
                self._manager.audit_logger.log_listener_failed(self.name, e)


class LiveQueryManager:
    """
    Keeps live queries in sync with one database.

    Usage:
        manager = LiveQueryManager(db)
        sub = manager.subscribe(lambda db: db.expenses.list(), listener=render)
        ...
        sub.unsubscribe()
    """

    def __init__(
        self,
        db: Database,
        audit_logger: Optional[ChangeAuditLogger] = None,
        max_notification_rounds: Optional[int] = None,
    ):
        self.db = db
        self.audit_logger = audit_logger or ChangeAuditLogger()
        self._max_rounds = max_notification_rounds or get_settings().max_notification_rounds
        self._subscriptions: list[Subscription[Any]] = []
        self._dirty: set[str] = set()
        self._notifying = False
        self._detach = db.add_change_listener(self._on_change)

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def subscribe(
        self,
        query_fn: QueryFn,
        deps: tuple[Any, ...] = (),
        listener: Optional[Listener] = None,
        default_factory: Optional[Callable[[], T]] = None,
        name: Optional[str] = None,
    ) -> Subscription[T]:
        """
        Register a live query and evaluate it immediately.

        The listener (if any) receives the initial result and every later
        changed result. Returns the subscription; read `.current` for the
        latest snapshot.
        """
        subscription: Subscription[T] = Subscription(
            self,
            query_fn,
            deps=deps,
            default_factory=default_factory,
            name=name,
        )
        if listener is not None:
            subscription.add_listener(listener)
        self._subscriptions.append(subscription)
        subscription.refresh()
        return subscription

    def close(self) -> None:
        """Cancel every subscription and detach from the database."""
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()
        self._detach()

    def _discard(self, subscription: Subscription[Any]) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _on_change(self, events: list[ChangeEvent]) -> None:
        self._dirty.update(event.table for event in events)
        if self._notifying:
            # A listener wrote to the store; the running loop picks it up
            return

        self._notifying = True
        try:
            rounds = 0
            while self._dirty:
                if rounds >= self._max_rounds:
                    self.audit_logger.log_notification_overflow(rounds, list(self._dirty))
                    self._dirty.clear()
                    break
                rounds += 1
                touched, self._dirty = self._dirty, set()
                for subscription in list(self._subscriptions):
                    if subscription.active and subscription.tables & touched:
                        subscription.refresh()
        finally:
            self._notifying = False
