"""System settings and settings history repository interfaces."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from snippetbox.domain.model import (
    EmailSettings,
    FeatureSettings,
    Page,
    SecuritySettings,
    SettingsHistory,
    SettingsHistoryFilter,
    SettingsHistoryStats,
    SiteSettings,
    SystemSettings,
)
from snippetbox.domain.model.settings import SettingsSection
from snippetbox.domain.value import (
    ChangeCategory,
    SettingsHistoryId,
    SettingType,
    UserId,
)


class SystemSettingsRepository(ABC):
    """Repository for the singleton SystemSettings row."""

    @abstractmethod
    async def get_settings(self) -> Optional[SystemSettings]:
        """The settings row, or None if it was never initialized."""
        pass

    @abstractmethod
    async def save_settings(self, settings: SystemSettings) -> SystemSettings:
        """Insert the settings row if absent, otherwise update it in place."""
        pass

    @abstractmethod
    async def initialize_defaults(self, updated_by: str = "system") -> SystemSettings:
        """Insert default settings unless a row exists.

        Concurrent callers are serialized by the store; the loser reads
        back the winner's row.
        """
        pass

    @abstractmethod
    async def settings_exist(self) -> bool:
        pass

    @abstractmethod
    async def update_section(
        self,
        setting_type: SettingType,
        section: SettingsSection,
        changed_by: str,
        *,
        changed_by_id: Optional[UserId] = None,
        change_reason: Optional[str] = None,
        change_category: ChangeCategory = ChangeCategory.SYSTEM,
        client_ip: Optional[str] = None,
        user_agent: Optional[str] = None,
        is_important: bool = False,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> SystemSettings:
        """Replace one settings section and record the change.

        Exactly one history record is written per call: status SUCCESS with
        the old and new serialized section when the update applies, or
        status FAILED with the error message when it raises. The error is
        re-raised.
        """
        pass

    async def update_site_settings(
        self, site: SiteSettings, changed_by: str, **kwargs: Any
    ) -> SystemSettings:
        return await self.update_section(SettingType.SITE, site, changed_by, **kwargs)

    async def update_security_settings(
        self, security: SecuritySettings, changed_by: str, **kwargs: Any
    ) -> SystemSettings:
        kwargs.setdefault("change_category", ChangeCategory.SECURITY)
        kwargs.setdefault("is_important", True)
        return await self.update_section(
            SettingType.SECURITY, security, changed_by, **kwargs
        )

    async def update_feature_settings(
        self, feature: FeatureSettings, changed_by: str, **kwargs: Any
    ) -> SystemSettings:
        return await self.update_section(
            SettingType.FEATURE, feature, changed_by, **kwargs
        )

    async def update_email_settings(
        self, email: EmailSettings, changed_by: str, **kwargs: Any
    ) -> SystemSettings:
        return await self.update_section(SettingType.EMAIL, email, changed_by, **kwargs)


class SettingsHistoryRepository(ABC):
    """Repository for the append-only SettingsHistory log."""

    @abstractmethod
    async def create(self, entry: SettingsHistory) -> SettingsHistory:
        pass

    @abstractmethod
    async def get_by_id(self, history_id: SettingsHistoryId) -> Optional[SettingsHistory]:
        pass

    @abstractmethod
    async def get_paged(
        self, history_filter: SettingsHistoryFilter
    ) -> Page[SettingsHistory]:
        pass

    @abstractmethod
    async def get_statistics(self) -> SettingsHistoryStats:
        pass

    @abstractmethod
    async def get_recent_changes(self, count: int = 10) -> List[SettingsHistory]:
        pass

    @abstractmethod
    async def get_by_setting_type(
        self, setting_type: SettingType, limit: int = 50
    ) -> List[SettingsHistory]:
        pass

    @abstractmethod
    async def get_by_changed_by(
        self, changed_by: str, limit: int = 50
    ) -> List[SettingsHistory]:
        pass

    @abstractmethod
    async def get_important_changes(self, limit: int = 50) -> List[SettingsHistory]:
        pass

    @abstractmethod
    async def get_failed_changes(self, limit: int = 50) -> List[SettingsHistory]:
        pass

    @abstractmethod
    async def delete(self, history_id: SettingsHistoryId) -> bool:
        pass

    @abstractmethod
    async def batch_delete(self, history_ids: Sequence[SettingsHistoryId]) -> int:
        pass

    @abstractmethod
    async def clean_expired(self, older_than: datetime) -> int:
        pass
