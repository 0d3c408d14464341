"""Domain layer DI providers."""

from dishka import Scope, provide

from snippetbox.config import Settings
from snippetbox.domain.repository import (
    SettingsHistoryRepository,
    SystemSettingsRepository,
)
from snippetbox.domain.service import SettingsService
from snippetbox.util.di.base import ProviderBase


class ProdDomainProvider(ProviderBase):
    """Production domain services provider - concrete, no mocks needed.

    Domain services are REQUEST-scoped to align with repository/session lifecycle.
    """

    scope = Scope.REQUEST

    @provide
    def get_settings_service(
        self,
        settings_repository: SystemSettingsRepository,
        history_repository: SettingsHistoryRepository,
        settings: Settings,
    ) -> SettingsService:
        """Provide system settings domain service."""
        return SettingsService(
            settings_repository=settings_repository,
            history_repository=history_repository,
            retention_days=settings.settings_history.retention_days,
        )
