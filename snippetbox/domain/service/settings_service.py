"""System settings domain service."""

from datetime import timedelta
from typing import Any

import logfire

from snippetbox.domain.model import SystemSettings
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.model.settings import SettingsSection
from snippetbox.domain.repository import (
    SettingsHistoryRepository,
    SystemSettingsRepository,
)
from snippetbox.domain.value import SettingType

from .base import Service


class SettingsService(Service):
    """Domain service for the singleton system settings.

    The settings row is created on first read, so callers never observe a
    missing configuration.
    """

    def __init__(
        self,
        settings_repository: SystemSettingsRepository,
        history_repository: SettingsHistoryRepository,
        retention_days: int = 90,
    ) -> None:
        """Initialize settings service.

        Args:
            settings_repository: System settings repository
            history_repository: Settings history repository
            retention_days: Age after which history records are purged
        """
        self.settings_repository = settings_repository
        self.history_repository = history_repository
        self.retention_days = retention_days

    async def get_settings(self) -> SystemSettings:
        """Current settings, inserting the defaults on first access."""
        settings = await self.settings_repository.get_settings()
        if settings is not None:
            return settings

        logfire.info("No settings row found, initializing defaults")
        return await self.settings_repository.initialize_defaults()

    async def get_section(self, setting_type: SettingType) -> SettingsSection:
        settings = await self.get_settings()
        return settings.section(setting_type)

    async def update_section(
        self,
        setting_type: SettingType,
        section: SettingsSection,
        changed_by: str,
        **kwargs: Any,
    ) -> SystemSettings:
        """Replace one settings section and record the change.

        Raises:
            ValidationError: If ``section`` is not the model of ``setting_type``
        """
        with logfire.span(
            "settings_service.update_section",
            setting_type=setting_type.value,
            changed_by=changed_by,
        ):
            return await self.settings_repository.update_section(
                setting_type, section, changed_by, **kwargs
            )

    async def purge_expired_history(self) -> int:
        """Delete history records older than the retention period.

        Returns:
            Number of records deleted
        """
        cutoff = utc_now() - timedelta(days=self.retention_days)
        with logfire.span(
            "settings_service.purge_expired_history", retention_days=self.retention_days
        ):
            return await self.history_repository.clean_expired(cutoff)
