"""SQL implementation of SystemSettings and SettingsHistory repositories."""

from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Sequence

import logfire
from sqlalchemy import case, delete, desc, exists, func, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.error import DomainError, ValidationError
from snippetbox.domain.model import (
    Page,
    SettingsHistory,
    SettingsHistoryFilter,
    SettingsHistoryStats,
    SystemSettings,
)
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.model.settings import SECTION_TYPES, SettingsSection
from snippetbox.domain.repository import (
    SettingsHistoryRepository,
    SystemSettingsRepository,
)
from snippetbox.domain.value import (
    ChangeCategory,
    ChangeStatus,
    SettingsHistoryId,
    SettingsHistorySort,
    SettingType,
    UserId,
)
from snippetbox.persistence.decoder import RowDecoder, decode_int
from snippetbox.persistence.filters import FilterClauseBuilder
from snippetbox.persistence.mappers import (
    SECTION_COLUMNS,
    row_to_settings_history,
    row_to_system_settings,
    settings_history_to_dict,
    system_settings_to_dict,
)
from snippetbox.persistence.pagination import PaginatedQueryExecutor
from snippetbox.persistence.tables import settings_history_table, system_settings_table

SINGLETON = system_settings_table.c.slot == 1

SORT_ORDER = {
    SettingsHistorySort.CREATED_AT_DESC: [desc(settings_history_table.c.created_at)],
    SettingsHistorySort.CREATED_AT_ASC: [settings_history_table.c.created_at],
    SettingsHistorySort.SETTING_TYPE: [
        settings_history_table.c.setting_type,
        desc(settings_history_table.c.created_at),
    ],
    SettingsHistorySort.CHANGED_BY: [
        settings_history_table.c.changed_by,
        desc(settings_history_table.c.created_at),
    ],
    SettingsHistorySort.CHANGE_CATEGORY: [
        settings_history_table.c.change_category,
        desc(settings_history_table.c.created_at),
    ],
}


class SqlSettingsHistoryRepository(SettingsHistoryRepository):
    """SQL implementation of SettingsHistoryRepository."""

    def __init__(
        self,
        session: AsyncSession,
        max_page_size: int = 100,
        top_users: int = 10,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            max_page_size: Largest page accepted by paged queries
            top_users: Number of most active users reported in statistics
        """
        self.session = session
        self.top_users = top_users
        self.pages = PaginatedQueryExecutor(session, max_page_size=max_page_size)

    async def _find(self, *conditions, limit: Optional[int] = None) -> List[SettingsHistory]:
        stmt = (
            select(settings_history_table)
            .where(*conditions)
            .order_by(
                desc(settings_history_table.c.created_at), settings_history_table.c.id
            )
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [row_to_settings_history(row._mapping) for row in result.fetchall()]

    async def create(self, entry: SettingsHistory) -> SettingsHistory:
        await self.session.execute(
            settings_history_table.insert().values(**settings_history_to_dict(entry))
        )
        await self.session.flush()
        return entry

    async def get_by_id(self, history_id: SettingsHistoryId) -> Optional[SettingsHistory]:
        entries = await self._find(settings_history_table.c.id == history_id)
        return entries[0] if entries else None

    async def get_paged(
        self, history_filter: SettingsHistoryFilter
    ) -> Page[SettingsHistory]:
        with logfire.span(
            "settings_history_repository.get_paged",
            page=history_filter.page,
            page_size=history_filter.page_size,
            sort=history_filter.sort.value,
        ):
            builder = FilterClauseBuilder()
            if history_filter.setting_type is not None:
                builder.equals(
                    settings_history_table.c.setting_type,
                    history_filter.setting_type.value,
                )
            if history_filter.change_category is not None:
                builder.equals(
                    settings_history_table.c.change_category,
                    history_filter.change_category.value,
                )
            if history_filter.status is not None:
                builder.equals(
                    settings_history_table.c.status, history_filter.status.value
                )
            builder.search(
                [settings_history_table.c.changed_by],
                history_filter.changed_by,
                name="changed_by",
            )
            builder.search(
                [settings_history_table.c.setting_key],
                history_filter.setting_key,
                name="setting_key",
            )
            builder.at_least(
                settings_history_table.c.created_at,
                history_filter.start_date,
                "start_date",
            )
            builder.at_most(
                settings_history_table.c.created_at,
                history_filter.end_date,
                "end_date",
            )
            builder.equals(
                settings_history_table.c.is_important, history_filter.is_important
            )

            return await self.pages.fetch_page(
                source=settings_history_table,
                columns=list(settings_history_table.c),
                key=settings_history_table.c.id,
                where=builder.clause,
                order_by=SORT_ORDER[history_filter.sort],
                page=history_filter.page,
                page_size=history_filter.page_size,
                mapper=lambda rows: [row_to_settings_history(row) for row in rows],
            )

    async def _grouped_counts(self, column, limit: Optional[int] = None) -> Dict[str, int]:
        change_count = func.count().label("change_count")
        stmt = (
            select(column.label("group_key"), change_count)
            .group_by(column)
            .order_by(desc(change_count), column)
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return {
            row.group_key: decode_int(row.change_count) for row in result.fetchall()
        }

    async def get_statistics(self) -> SettingsHistoryStats:
        with logfire.span("settings_history_repository.get_statistics"):
            now = utc_now()
            today = now.replace(hour=0, minute=0, second=0, microsecond=0)
            week_start = today - timedelta(days=today.weekday())
            month_start = today.replace(day=1)
            created_at = settings_history_table.c.created_at

            def since(start: datetime):
                return func.coalesce(func.sum(case((created_at >= start, 1), else_=0)), 0)

            stmt = select(
                func.count().label("total_changes"),
                since(today).label("today_changes"),
                since(week_start).label("week_changes"),
                since(month_start).label("month_changes"),
                func.coalesce(
                    func.sum(
                        case(
                            (settings_history_table.c.is_important.is_(True), 1),
                            else_=0,
                        )
                    ),
                    0,
                ).label("important_changes"),
                func.coalesce(
                    func.sum(
                        case(
                            (
                                settings_history_table.c.status
                                == ChangeStatus.FAILED.value,
                                1,
                            ),
                            else_=0,
                        )
                    ),
                    0,
                ).label("failed_changes"),
                func.max(created_at).label("last_change_at"),
            ).select_from(settings_history_table)
            d = RowDecoder(
                (await self.session.execute(stmt)).one()._mapping, "SettingsHistoryStats"
            )

            return SettingsHistoryStats(
                total_changes=d.integer("total_changes"),
                today_changes=d.integer("today_changes"),
                week_changes=d.integer("week_changes"),
                month_changes=d.integer("month_changes"),
                important_changes=d.integer("important_changes"),
                failed_changes=d.integer("failed_changes"),
                last_change_at=d.optional_timestamp("last_change_at"),
                changes_by_type=await self._grouped_counts(
                    settings_history_table.c.setting_type
                ),
                changes_by_category=await self._grouped_counts(
                    settings_history_table.c.change_category
                ),
                top_users=await self._grouped_counts(
                    settings_history_table.c.changed_by, limit=self.top_users
                ),
            )

    async def get_recent_changes(self, count: int = 10) -> List[SettingsHistory]:
        return await self._find(limit=count)

    async def get_by_setting_type(
        self, setting_type: SettingType, limit: int = 50
    ) -> List[SettingsHistory]:
        return await self._find(
            settings_history_table.c.setting_type == setting_type.value, limit=limit
        )

    async def get_by_changed_by(
        self, changed_by: str, limit: int = 50
    ) -> List[SettingsHistory]:
        return await self._find(
            settings_history_table.c.changed_by == changed_by, limit=limit
        )

    async def get_important_changes(self, limit: int = 50) -> List[SettingsHistory]:
        return await self._find(
            settings_history_table.c.is_important.is_(True), limit=limit
        )

    async def get_failed_changes(self, limit: int = 50) -> List[SettingsHistory]:
        return await self._find(
            settings_history_table.c.status == ChangeStatus.FAILED.value, limit=limit
        )

    async def delete(self, history_id: SettingsHistoryId) -> bool:
        result = await self.session.execute(
            delete(settings_history_table).where(
                settings_history_table.c.id == history_id
            )
        )
        await self.session.flush()
        return result.rowcount > 0

    async def batch_delete(self, history_ids: Sequence[SettingsHistoryId]) -> int:
        if not history_ids:
            return 0
        result = await self.session.execute(
            delete(settings_history_table).where(
                settings_history_table.c.id.in_(list(history_ids))
            )
        )
        await self.session.flush()
        return result.rowcount

    async def clean_expired(self, older_than: datetime) -> int:
        with logfire.span("settings_history_repository.clean_expired"):
            result = await self.session.execute(
                delete(settings_history_table).where(
                    settings_history_table.c.created_at < older_than
                )
            )
            await self.session.flush()
            logfire.info("Expired settings history removed", count=result.rowcount)
            return result.rowcount


class SqlSystemSettingsRepository(SystemSettingsRepository):
    """SQL implementation of SystemSettingsRepository.

    The table holds at most one row, pinned by its unique ``slot`` column.
    """

    def __init__(
        self, session: AsyncSession, history: SettingsHistoryRepository
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            history: Log receiving one record per section update
        """
        self.session = session
        self.history = history

    async def get_settings(self) -> Optional[SystemSettings]:
        result = await self.session.execute(select(system_settings_table).where(SINGLETON))
        row = result.fetchone()
        return row_to_system_settings(row._mapping) if row else None

    async def settings_exist(self) -> bool:
        result = await self.session.execute(select(exists().where(SINGLETON)))
        return bool(result.scalar())

    async def save_settings(self, settings: SystemSettings) -> SystemSettings:
        with logfire.span("settings_repository.save_settings"):
            if await self.settings_exist():
                values = system_settings_to_dict(settings)
                del values["id"], values["created_at"]
                values["updated_at"] = utc_now()
                await self.session.execute(
                    update(system_settings_table).where(SINGLETON).values(**values)
                )
            else:
                await self.session.execute(
                    system_settings_table.insert().values(
                        slot=1, **system_settings_to_dict(settings)
                    )
                )
            await self.session.flush()
            return await self.get_settings() or settings

    async def initialize_defaults(self, updated_by: str = "system") -> SystemSettings:
        existing = await self.get_settings()
        if existing is not None:
            return existing

        defaults = SystemSettings(updated_by=updated_by)
        try:
            async with self.session.begin_nested():
                await self.session.execute(
                    system_settings_table.insert().values(
                        slot=1, **system_settings_to_dict(defaults)
                    )
                )
        except IntegrityError:
            # Another caller inserted the row first
            current = await self.get_settings()
            if current is None:
                raise
            logfire.info("Settings initialized concurrently, using stored row")
            return current

        logfire.info("Default settings initialized", updated_by=updated_by)
        return defaults

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
        with logfire.span(
            "settings_repository.update_section",
            setting_type=setting_type.value,
            changed_by=changed_by,
        ):
            record = SettingsHistory(
                setting_type=setting_type,
                setting_key=SECTION_COLUMNS[setting_type].removesuffix("_json"),
                new_value=section.model_dump_json(),
                changed_by=changed_by,
                changed_by_id=changed_by_id,
                change_reason=change_reason,
                change_category=change_category,
                client_ip=client_ip,
                user_agent=user_agent,
                is_important=is_important,
                metadata=metadata,
            )

            try:
                async with self.session.begin_nested():
                    expected = SECTION_TYPES[setting_type]
                    if not isinstance(section, expected):
                        raise ValidationError(
                            f"{setting_type.value} settings require "
                            f"{expected.__name__}, got {type(section).__name__}"
                        )
                    current = await self.initialize_defaults(changed_by)
                    record = record.model_copy(
                        update={
                            "old_value": current.section(setting_type).model_dump_json()
                        }
                    )
                    updated = current.with_section(setting_type, section, changed_by)
                    await self.session.execute(
                        update(system_settings_table)
                        .where(SINGLETON)
                        .values(
                            {
                                SECTION_COLUMNS[setting_type]: record.new_value,
                                "updated_at": updated.updated_at,
                                "updated_by": changed_by,
                            }
                        )
                    )
            except (SQLAlchemyError, DomainError) as e:
                logfire.error(
                    "Settings update failed",
                    setting_type=setting_type.value,
                    changed_by=changed_by,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                await self.history.create(
                    record.model_copy(
                        update={"status": ChangeStatus.FAILED, "error_message": str(e)}
                    )
                )
                raise

            await self.history.create(record)
            logfire.info(
                "Settings section updated",
                setting_type=setting_type.value,
                changed_by=changed_by,
                is_important=is_important,
            )
            return updated
