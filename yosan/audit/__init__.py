"""Audit logging package."""

from yosan.audit.logger import ChangeAuditLogger, configure_logging, get_logger

__all__ = ["ChangeAuditLogger", "configure_logging", "get_logger"]
