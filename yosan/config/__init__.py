"""Configuration package."""

from yosan.config.settings import YosanSettings, get_settings

__all__ = [
    "YosanSettings",
    "get_settings",
]
