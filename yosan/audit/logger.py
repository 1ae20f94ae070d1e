"""
Structured Logging and Change Audit

DESIGN DECISION: Every committed write to the store is logged.
This provides:
1. Complete traceability of mutations
2. Debugging capability for live-query refreshes
3. Visibility into tolerated failures (missing rows, failing queries)

The audit logger:
- Never raises (logging must not break a write)
- Logs expected failures at warning level, never as exceptions
- Shares one structlog configuration across the package
"""

import logging
import sys
from typing import Any, Optional

import structlog

from yosan.config import get_settings
from yosan.models.events import ChangeEvent

_CONFIGURED = False


def configure_logging(
    level: Optional[str] = None,
    json_logs: Optional[bool] = None,
    force: bool = False,
) -> None:
    """
    Configure structlog over stdlib logging.

    Runs once per process unless `force` is set. Level and renderer default
    to the YOSAN_LOG_LEVEL / YOSAN_JSON_LOGS settings.
    """
    global _CONFIGURED
    if _CONFIGURED and not force:
        return

    settings = get_settings()
    level_name = (level or settings.log_level).upper()
    use_json = settings.json_logs if json_logs is None else json_logs

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, level_name, logging.INFO),
        force=force,
    )
    logging.getLogger("yosan").setLevel(getattr(logging, level_name, logging.INFO))

    renderer = (
        structlog.processors.JSONRenderer()
        if use_json
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    _CONFIGURED = True


def get_logger(name: Optional[str] = None, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, configuring logging on first use."""
    configure_logging()
    return structlog.get_logger(name, **initial_values)


class ChangeAuditLogger:
    """
    Central change logging service.

    Receives every ChangeEvent the database commits and records the
    failures the public surface tolerates instead of raising.
    """

    def __init__(self, logger: Optional[structlog.stdlib.BoundLogger] = None):
        self._logger = logger or get_logger("yosan.audit")
        self._event_count = 0

    @property
    def event_count(self) -> int:
        """Number of change events seen since creation."""
        return self._event_count

    def log_change(self, event: ChangeEvent) -> None:
        """Record one committed write."""
        self._event_count += 1
        self._logger.debug("store_change", **event.to_log_dict())

    def __call__(self, events: list[ChangeEvent]) -> None:
        # Registered directly as a database change listener
        for event in events:
            self.log_change(event)

    def log_not_found(self, table: str, entity_id: Any, operation: str) -> None:
        """Record a write that targeted a missing row."""
        self._logger.warning(
            "row_not_found",
            table=table,
            entity_id=entity_id,
            operation=operation,
        )

    def log_cascade(self, table: str, entity_id: Any, child_table: str, removed: int) -> None:
        """Record dependent rows removed along with a parent."""
        self._logger.info(
            "cascade_delete",
            table=table,
            entity_id=entity_id,
            child_table=child_table,
            removed=removed,
        )

    def log_query_failed(self, query_name: str, error: BaseException) -> None:
        """Record a live query that could not be evaluated."""
        self._logger.warning(
            "live_query_failed",
            query=query_name,
            error_type=type(error).__name__,
            error=str(error),
        )

    def log_listener_failed(self, query_name: str, error: BaseException) -> None:
        """Record a subscriber callback that raised."""
        self._logger.error(
            "live_query_listener_failed",
            query=query_name,
            error_type=type(error).__name__,
            error=str(error),
        )

    def log_notification_overflow(self, rounds: int, pending_tables: list[str]) -> None:
        """Record a feedback loop that was cut off."""
        self._logger.error(
            "notification_rounds_exceeded",
            rounds=rounds,
            pending_tables=sorted(pending_tables),
        )
