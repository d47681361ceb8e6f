"""Configuration module for backend services."""

from opsdesk.config.settings import (
    DEFAULT_TIMEZONE,
    DeskSettings,
)

__all__ = [
    "DEFAULT_TIMEZONE",
    "DeskSettings",
]
