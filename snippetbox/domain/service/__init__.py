"""Domain services."""

from .base import Service
from .settings_service import SettingsService

__all__ = [
    "Service",
    "SettingsService",
]
