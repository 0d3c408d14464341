"""System settings and settings change history.

The settings row is a singleton holding four independently serialized
sections. Every change to a section is recorded in the history log.
"""

from datetime import datetime
from typing import Any, Optional, Union
from uuid import uuid4

from pydantic import BaseModel, Field

from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.value import (
    ChangeCategory,
    ChangeStatus,
    SettingsHistoryId,
    SettingsId,
    SettingType,
    UserId,
)


class SiteSettings(BaseModel):
    site_name: str = "Code Snippet Manager"
    site_description: str = "Professional code snippet management platform"
    logo_url: str = "/logo.png"
    theme: str = "light"
    language: str = "en-US"
    page_size: int = Field(default=20, ge=1, le=100)
    allow_registration: bool = True
    announcement: str = ""
    custom_css: str = ""
    custom_js: str = ""


class SecuritySettings(BaseModel):
    min_password_length: int = Field(default=8, ge=6, le=128)
    require_uppercase: bool = True
    require_lowercase: bool = True
    require_numbers: bool = True
    require_special_chars: bool = True
    max_login_attempts: int = Field(default=5, ge=1)
    account_lockout_duration: int = 30  # minutes
    session_timeout: int = 120  # minutes
    enable_two_factor_auth: bool = False
    enable_cors: bool = True
    allowed_cors_origins: list[str] = Field(default_factory=list)
    enable_https_redirection: bool = True
    api_rate_limit: int = 100  # requests per minute
    enable_login_logging: bool = True
    enable_action_logging: bool = True


class FeatureSettings(BaseModel):
    enable_code_snippets: bool = True
    enable_sharing: bool = True
    enable_tags: bool = True
    enable_comments: bool = True
    enable_favorites: bool = True
    enable_search: bool = True
    enable_export: bool = True
    enable_import: bool = True
    enable_api: bool = True
    enable_webhooks: bool = False
    enable_file_upload: bool = True
    max_file_size: int = 10  # MB
    allowed_file_types: list[str] = Field(
        default_factory=lambda: [".txt", ".md", ".json", ".xml", ".csv"]
    )
    enable_real_time_notifications: bool = True
    enable_analytics: bool = False


class EmailSettings(BaseModel):
    smtp_host: str = ""
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str = ""
    smtp_password: str = ""
    from_email: str = ""
    from_name: str = ""
    enable_ssl: bool = True
    enable_tls: bool = True
    template_path: str = "/templates/emails"
    enable_email_queue: bool = True
    max_retry_attempts: int = 3
    email_timeout: int = 30  # seconds
    enable_email_logging: bool = True
    test_email_recipient: str = ""


SettingsSection = Union[SiteSettings, SecuritySettings, FeatureSettings, EmailSettings]

SECTION_TYPES: dict[SettingType, type[BaseModel]] = {
    SettingType.SITE: SiteSettings,
    SettingType.SECURITY: SecuritySettings,
    SettingType.FEATURE: FeatureSettings,
    SettingType.EMAIL: EmailSettings,
}


class SystemSettings(DomainModel):
    """Singleton system configuration."""

    id: SettingsId = Field(default_factory=lambda: SettingsId(uuid4()))
    site: SiteSettings = Field(default_factory=SiteSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    feature: FeatureSettings = Field(default_factory=FeatureSettings)
    email: EmailSettings = Field(default_factory=EmailSettings)
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    updated_by: str = ""

    def section(self, setting_type: SettingType) -> SettingsSection:
        return getattr(self, setting_type.value)

    def with_section(
        self,
        setting_type: SettingType,
        section: SettingsSection,
        updated_by: str,
    ) -> "SystemSettings":
        """Copy of these settings with one section replaced."""
        return self.model_copy(
            update={
                setting_type.value: section,
                "updated_by": updated_by,
                "updated_at": utc_now(),
            }
        )


class SettingsHistory(DomainModel):
    """One recorded change to a settings section."""

    id: SettingsHistoryId = Field(default_factory=lambda: SettingsHistoryId(uuid4()))
    created_at: datetime = Field(default_factory=utc_now)
    setting_type: SettingType
    setting_key: str = Field(max_length=100)
    old_value: Optional[str] = None
    new_value: Optional[str] = None
    changed_by: str = Field(max_length=100)
    changed_by_id: Optional[UserId] = None
    change_reason: Optional[str] = None
    change_category: ChangeCategory = ChangeCategory.SYSTEM
    client_ip: Optional[str] = None
    user_agent: Optional[str] = None
    is_important: bool = False
    status: ChangeStatus = ChangeStatus.SUCCESS
    error_message: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None


class SettingsHistoryStats(DomainModel):
    """Aggregate figures over the settings history log."""

    total_changes: int = 0
    today_changes: int = 0
    week_changes: int = 0
    month_changes: int = 0
    important_changes: int = 0
    failed_changes: int = 0
    last_change_at: Optional[datetime] = None
    changes_by_type: dict[str, int] = Field(default_factory=dict)
    changes_by_category: dict[str, int] = Field(default_factory=dict)
    top_users: dict[str, int] = Field(default_factory=dict)
