"""Integration tests for system settings and settings history."""

from datetime import timedelta

import pytest

from snippetbox.domain.error import ValidationError
from snippetbox.domain.model import (
    EmailSettings,
    SecuritySettings,
    SettingsHistory,
    SettingsHistoryFilter,
    SiteSettings,
)
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.repository import (
    SettingsHistoryRepository,
    SystemSettingsRepository,
)
from snippetbox.domain.service import SettingsService
from snippetbox.domain.value import ChangeCategory, ChangeStatus, SettingType
from tests.harness import create_env_fixture

sqlite_env = create_env_fixture()


class TestSystemSettings:
    @pytest.mark.asyncio
    async def test_first_read_initializes_defaults(self, sqlite_env):
        """The settings row is created lazily on first access."""
        # Arrange
        repo = await sqlite_env.get(SystemSettingsRepository)
        service = await sqlite_env.get(SettingsService)
        assert await repo.settings_exist() is False

        # Act
        settings = await service.get_settings()

        # Assert
        assert settings.site == SiteSettings()
        assert await repo.settings_exist() is True
        assert (await repo.get_settings()).id == settings.id

    @pytest.mark.asyncio
    async def test_initialize_defaults_is_idempotent(self, sqlite_env):
        repo = await sqlite_env.get(SystemSettingsRepository)

        first = await repo.initialize_defaults()
        second = await repo.initialize_defaults()

        assert first.id == second.id

    @pytest.mark.asyncio
    async def test_save_settings_upserts_the_single_row(self, sqlite_env):
        # Arrange
        repo = await sqlite_env.get(SystemSettingsRepository)
        current = await repo.initialize_defaults()

        # Act
        saved = await repo.save_settings(
            current.model_copy(
                update={"site": SiteSettings(site_name="Snippets"), "updated_by": "ops"}
            )
        )

        # Assert
        assert saved.id == current.id
        assert saved.site.site_name == "Snippets"
        assert saved.updated_by == "ops"

    @pytest.mark.asyncio
    async def test_update_section_records_success(self, sqlite_env):
        # Arrange
        service = await sqlite_env.get(SettingsService)
        history = await sqlite_env.get(SettingsHistoryRepository)
        await service.get_settings()

        # Act
        updated = await service.update_section(
            SettingType.SITE,
            SiteSettings(site_name="Code Vault", page_size=50),
            "admin",
            change_reason="rebrand",
        )

        # Assert
        assert updated.site.site_name == "Code Vault"
        assert (await service.get_section(SettingType.SITE)).page_size == 50
        [record] = await history.get_recent_changes()
        assert record.status is ChangeStatus.SUCCESS
        assert record.setting_key == "site_settings"
        assert record.change_reason == "rebrand"
        assert '"site_name":"Code Snippet Manager"' in record.old_value
        assert '"site_name":"Code Vault"' in record.new_value

    @pytest.mark.asyncio
    async def test_update_without_existing_row_initializes_first(self, sqlite_env):
        repo = await sqlite_env.get(SystemSettingsRepository)

        updated = await repo.update_email_settings(
            EmailSettings(smtp_host="smtp.example.com"), "admin"
        )

        assert updated.email.smtp_host == "smtp.example.com"
        assert (await repo.get_settings()).email.smtp_host == "smtp.example.com"

    @pytest.mark.asyncio
    async def test_security_updates_are_important(self, sqlite_env):
        repo = await sqlite_env.get(SystemSettingsRepository)
        history = await sqlite_env.get(SettingsHistoryRepository)

        await repo.update_security_settings(
            SecuritySettings(min_password_length=12), "admin"
        )

        [record] = await history.get_important_changes()
        assert record.change_category is ChangeCategory.SECURITY
        assert record.setting_type is SettingType.SECURITY

    @pytest.mark.asyncio
    async def test_mismatched_section_records_failure(self, sqlite_env):
        """A failed update leaves the row intact and logs a FAILED record."""
        # Arrange
        repo = await sqlite_env.get(SystemSettingsRepository)
        history = await sqlite_env.get(SettingsHistoryRepository)
        before = await repo.initialize_defaults()

        # Act
        with pytest.raises(ValidationError):
            await repo.update_section(
                SettingType.SITE, EmailSettings(smtp_host="wrong"), "admin"
            )

        # Assert
        [record] = await history.get_failed_changes()
        assert record.status is ChangeStatus.FAILED
        assert "SiteSettings" in record.error_message
        assert (await repo.get_settings()).site == before.site
        assert (await history.get_statistics()).total_changes == 1


async def add_history(history, **overrides) -> SettingsHistory:
    data = {
        "setting_type": SettingType.SITE,
        "setting_key": "site_settings",
        "changed_by": "admin",
    }
    data.update(overrides)
    return await history.create(SettingsHistory(**data))


class TestSettingsHistory:
    @pytest.mark.asyncio
    async def test_statistics(self, sqlite_env):
        # Arrange
        history = await sqlite_env.get(SettingsHistoryRepository)
        await add_history(history)
        await add_history(history, changed_by="ops", is_important=True)
        await add_history(
            history,
            setting_type=SettingType.EMAIL,
            setting_key="email_settings",
            change_category=ChangeCategory.USER,
            status=ChangeStatus.FAILED,
        )
        await add_history(history, created_at=utc_now() - timedelta(days=400))

        # Act
        stats = await history.get_statistics()

        # Assert
        assert stats.total_changes == 4
        assert stats.today_changes == 3
        assert stats.week_changes == 3
        assert stats.month_changes == 3
        assert stats.important_changes == 1
        assert stats.failed_changes == 1
        assert stats.changes_by_type == {"site": 3, "email": 1}
        assert stats.changes_by_category == {"system": 3, "user": 1}
        assert stats.top_users == {"admin": 3, "ops": 1}
        assert stats.last_change_at is not None

    @pytest.mark.asyncio
    async def test_empty_statistics(self, sqlite_env):
        history = await sqlite_env.get(SettingsHistoryRepository)

        stats = await history.get_statistics()

        assert stats.total_changes == 0
        assert stats.last_change_at is None
        assert stats.top_users == {}

    @pytest.mark.asyncio
    async def test_paged_filters(self, sqlite_env):
        # Arrange
        history = await sqlite_env.get(SettingsHistoryRepository)
        await add_history(history, changed_by="alice.admin")
        await add_history(history, changed_by="bob", status=ChangeStatus.FAILED)
        await add_history(
            history,
            setting_type=SettingType.FEATURE,
            setting_key="feature_settings",
            changed_by="alice.admin",
        )

        # Act
        by_user = await history.get_paged(SettingsHistoryFilter(changed_by="alice"))
        by_type = await history.get_paged(
            SettingsHistoryFilter(setting_type=SettingType.FEATURE)
        )
        failed = await history.get_paged(
            SettingsHistoryFilter(status=ChangeStatus.FAILED)
        )
        by_key = await history.get_paged(SettingsHistoryFilter(setting_key="feature"))

        # Assert
        assert by_user.total_count == 2
        assert [h.setting_type for h in by_type.items] == [SettingType.FEATURE]
        assert [h.changed_by for h in failed.items] == ["bob"]
        assert by_key.total_count == 1

    @pytest.mark.asyncio
    async def test_metadata_round_trip(self, sqlite_env):
        history = await sqlite_env.get(SettingsHistoryRepository)
        entry = await add_history(history, metadata={"source": "api", "fields": [1, 2]})

        stored = await history.get_by_id(entry.id)

        assert stored.metadata == {"source": "api", "fields": [1, 2]}

    @pytest.mark.asyncio
    async def test_purge_expired_history(self, sqlite_env):
        # Arrange
        history = await sqlite_env.get(SettingsHistoryRepository)
        service = await sqlite_env.get(SettingsService)
        recent = await add_history(history)
        await add_history(history, created_at=utc_now() - timedelta(days=120))

        # Act
        removed = await service.purge_expired_history()

        # Assert
        assert removed == 1
        assert [h.id for h in await history.get_recent_changes()] == [recent.id]

    @pytest.mark.asyncio
    async def test_delete_and_batch_delete(self, sqlite_env):
        history = await sqlite_env.get(SettingsHistoryRepository)
        entries = [await add_history(history) for _ in range(3)]

        assert await history.delete(entries[0].id) is True
        assert await history.batch_delete([e.id for e in entries]) == 2
        assert await history.get_recent_changes() == []
