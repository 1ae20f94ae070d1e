"""Settings service: the single app-wide settings row."""

from typing import Any, Optional

from yosan.config import get_settings
from yosan.models.entities import AppSettings
from yosan.services.base import EntityService
from yosan.store import SETTINGS_TABLE


class SettingsService(EntityService[AppSettings]):
    """
    Reads and writes the settings row.

    There is at most one row; the store does not enforce this, the
    service does by only ever touching the first one.
    """

    table_name = SETTINGS_TABLE.name

    def current(self) -> Optional[AppSettings]:
        return self.table.first()

    def update(self, entity_id: Any = None, **changes: Any) -> Optional[AppSettings]:
        """
        Merge changes into the settings row.

        With no row yet this is a logged no-op returning None.
        """
        if entity_id is None:
            settings = self.current()
            if settings is None:
                self.audit_logger.log_not_found(self.table_name, None, "update")
                return None
            entity_id = settings.id
        return super().update(entity_id, **changes)

    def ensure(self, **defaults: Any) -> AppSettings:
        """Return the settings row, creating it from config defaults if missing."""
        settings = self.current()
        if settings is not None:
            return settings

        config = get_settings()
        fields = {
            "total_budget": config.default_total_budget,
            "currency": config.default_currency,
            "currency_symbol": config.default_currency_symbol,
            "month_start_day": config.default_month_start_day,
        }
        fields.update(defaults)
        self.table.add(AppSettings(**fields))
        return self.current()
