"""SQL implementation of ShareToken repository."""

from datetime import datetime
from typing import List, Optional

import logfire
from sqlalchemy import (
    ColumnElement,
    case,
    delete,
    desc,
    func,
    or_,
    select,
    update,
)
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import (
    Page,
    ShareSystemStats,
    ShareToken,
    ShareTokenFilter,
    ShareTokenStats,
)
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.repository import ShareTokenRepository
from snippetbox.domain.value import SharePermission, ShareTokenId, SnippetId, UserId
from snippetbox.persistence.decoder import RowDecoder, decode_enum, decode_int
from snippetbox.persistence.filters import FilterClauseBuilder
from snippetbox.persistence.mappers import row_to_share_token, share_token_to_dict
from snippetbox.persistence.pagination import PaginatedQueryExecutor
from snippetbox.persistence.tables import (
    share_tokens_table,
    snippets_table,
    users_table,
)

TOKEN_COLUMNS = [
    *share_tokens_table.c,
    users_table.c.username.label("creator_name"),
    snippets_table.c.title.label("snippet_title"),
    snippets_table.c.language.label("snippet_language"),
]

WITH_DETAILS = share_tokens_table.outerjoin(
    users_table, users_table.c.id == share_tokens_table.c.created_by
).outerjoin(snippets_table, snippets_table.c.id == share_tokens_table.c.snippet_id)


def _expired(now) -> ColumnElement[bool]:
    return share_tokens_table.c.expires_at.is_not(None) & (
        share_tokens_table.c.expires_at <= now
    )


def _not_expired(now) -> ColumnElement[bool]:
    return or_(
        share_tokens_table.c.expires_at.is_(None),
        share_tokens_table.c.expires_at > now,
    )


class SqlShareTokenRepository(ShareTokenRepository):
    """SQL implementation of ShareTokenRepository."""

    def __init__(self, session: AsyncSession, max_page_size: int = 100) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            max_page_size: Largest page accepted by paged queries
        """
        self.session = session
        self.pages = PaginatedQueryExecutor(session, max_page_size=max_page_size)

    async def _find(self, *conditions) -> List[ShareToken]:
        stmt = (
            select(*TOKEN_COLUMNS)
            .select_from(WITH_DETAILS)
            .where(*conditions)
            .order_by(desc(share_tokens_table.c.created_at), share_tokens_table.c.id)
        )
        result = await self.session.execute(stmt)
        return [row_to_share_token(row._mapping) for row in result.fetchall()]

    async def _set(self, token_id: ShareTokenId, **values) -> bool:
        result = await self.session.execute(
            update(share_tokens_table)
            .where(share_tokens_table.c.id == token_id)
            .values(**values)
        )
        await self.session.flush()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, token_id: ShareTokenId) -> Optional[ShareToken]:
        tokens = await self._find(share_tokens_table.c.id == token_id)
        return tokens[0] if tokens else None

    async def get_by_token(self, token: str) -> Optional[ShareToken]:
        tokens = await self._find(share_tokens_table.c.token == token)
        return tokens[0] if tokens else None

    async def get_by_snippet_id(self, snippet_id: SnippetId) -> List[ShareToken]:
        return await self._find(share_tokens_table.c.snippet_id == snippet_id)

    async def get_by_user_id(self, user_id: UserId) -> List[ShareToken]:
        return await self._find(share_tokens_table.c.created_by == user_id)

    async def get_paged(self, token_filter: ShareTokenFilter) -> Page[ShareToken]:
        with logfire.span(
            "share_token_repository.get_paged",
            page=token_filter.page,
            page_size=token_filter.page_size,
        ):
            builder = FilterClauseBuilder()
            builder.search(
                [
                    share_tokens_table.c.token,
                    share_tokens_table.c.description,
                    snippets_table.c.title,
                ],
                token_filter.search,
            )
            builder.equals(share_tokens_table.c.snippet_id, token_filter.snippet_id)
            builder.equals(share_tokens_table.c.created_by, token_filter.created_by)
            builder.equals(share_tokens_table.c.is_active, token_filter.is_active)
            builder.equals(share_tokens_table.c.permission, token_filter.permission)
            if token_filter.is_expired is not None:
                now = builder.bind(
                    "now", utc_now(), share_tokens_table.c.expires_at.type
                )
                builder.add(
                    _expired(now) if token_filter.is_expired else _not_expired(now)
                )

            return await self.pages.fetch_page(
                source=WITH_DETAILS,
                columns=TOKEN_COLUMNS,
                key=share_tokens_table.c.id,
                where=builder.clause,
                order_by=[desc(share_tokens_table.c.created_at)],
                page=token_filter.page,
                page_size=token_filter.page_size,
                mapper=lambda rows: [row_to_share_token(row) for row in rows],
            )

    async def get_active_tokens(self) -> List[ShareToken]:
        return await self._find(
            share_tokens_table.c.is_active.is_(True), _not_expired(utc_now())
        )

    async def get_expired_tokens(self) -> List[ShareToken]:
        return await self._find(_expired(utc_now()))

    async def get_share_stats(self, token_id: ShareTokenId) -> Optional[ShareTokenStats]:
        token = await self.get_by_id(token_id)
        if token is None:
            return None
        return ShareTokenStats(
            token_id=token.id,
            access_count=token.access_count,
            max_access_count=token.max_access_count,
            remaining_accesses=token.remaining_accesses,
            is_active=token.is_active,
            is_expired=token.is_expired(),
            is_access_limit_reached=token.is_access_limit_reached,
            created_at=token.created_at,
            expires_at=token.expires_at,
            last_accessed_at=token.last_accessed_at,
        )

    async def get_system_share_stats(self) -> ShareSystemStats:
        with logfire.span("share_token_repository.get_system_share_stats"):
            now = utc_now()
            today = now.replace(hour=0, minute=0, second=0, microsecond=0)
            totals_stmt = select(
                func.count().label("total_tokens"),
                func.coalesce(
                    func.sum(
                        case(
                            (
                                share_tokens_table.c.is_active.is_(True)
                                & _not_expired(now),
                                1,
                            ),
                            else_=0,
                        )
                    ),
                    0,
                ).label("active_tokens"),
                func.coalesce(
                    func.sum(case((_expired(now), 1), else_=0)), 0
                ).label("expired_tokens"),
                func.coalesce(func.sum(share_tokens_table.c.access_count), 0).label(
                    "total_accesses"
                ),
                func.coalesce(
                    func.sum(
                        case((share_tokens_table.c.created_at >= today, 1), else_=0)
                    ),
                    0,
                ).label("tokens_created_today"),
            ).select_from(share_tokens_table)
            totals = RowDecoder(
                (await self.session.execute(totals_stmt)).one()._mapping,
                "ShareSystemStats",
            )

            permission_stmt = select(
                share_tokens_table.c.permission, func.count().label("token_count")
            ).group_by(share_tokens_table.c.permission)
            permission_counts = {
                decode_enum(row.permission, SharePermission): decode_int(row.token_count)
                for row in (await self.session.execute(permission_stmt)).fetchall()
            }

            language_stmt = (
                select(snippets_table.c.language, func.count().label("token_count"))
                .select_from(
                    share_tokens_table.join(
                        snippets_table,
                        snippets_table.c.id == share_tokens_table.c.snippet_id,
                    )
                )
                .group_by(snippets_table.c.language)
                .order_by(desc("token_count"), snippets_table.c.language)
            )
            language_counts = {
                row.language: decode_int(row.token_count)
                for row in (await self.session.execute(language_stmt)).fetchall()
            }

            return ShareSystemStats(
                total_tokens=totals.integer("total_tokens"),
                active_tokens=totals.integer("active_tokens"),
                expired_tokens=totals.integer("expired_tokens"),
                total_accesses=totals.integer("total_accesses"),
                tokens_created_today=totals.integer("tokens_created_today"),
                permission_counts=permission_counts,
                language_counts=language_counts,
            )

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, token: ShareToken) -> ShareToken:
        with logfire.span(
            "share_token_repository.create", snippet_id=str(token.snippet_id)
        ):
            await self.session.execute(
                share_tokens_table.insert().values(**share_token_to_dict(token))
            )
            await self.session.flush()
            logfire.info(
                "Share token created",
                token_id=str(token.id),
                snippet_id=str(token.snippet_id),
                permission=token.permission.name,
            )
            return await self.get_by_id(token.id) or token

    async def update(self, token: ShareToken) -> ShareToken:
        with logfire.span("share_token_repository.update", token_id=str(token.id)):
            updated = await self._set(
                token.id,
                expires_at=token.expires_at,
                is_active=token.is_active,
                max_access_count=token.max_access_count,
                permission=int(token.permission),
                description=token.description,
                password=token.password,
                allow_download=token.allow_download,
                allow_copy=token.allow_copy,
                updated_at=utc_now(),
            )
            if not updated:
                return token
            return await self.get_by_id(token.id) or token

    async def delete(self, token_id: ShareTokenId) -> bool:
        with logfire.span("share_token_repository.delete", token_id=str(token_id)):
            result = await self.session.execute(
                delete(share_tokens_table).where(share_tokens_table.c.id == token_id)
            )
            await self.session.flush()
            return result.rowcount > 0

    async def increment_access_count(self, token: str) -> bool:
        now = utc_now()
        result = await self.session.execute(
            update(share_tokens_table)
            .where(
                share_tokens_table.c.token == token,
                share_tokens_table.c.is_active.is_(True),
                _not_expired(now),
                or_(
                    share_tokens_table.c.max_access_count <= 0,
                    share_tokens_table.c.access_count
                    < share_tokens_table.c.max_access_count,
                ),
            )
            .values(
                access_count=share_tokens_table.c.access_count + 1,
                last_accessed_at=now,
            )
        )
        await self.session.flush()
        counted = result.rowcount > 0
        if not counted:
            logfire.debug("Share token access refused")
        return counted

    async def update_last_access_time(self, token_id: ShareTokenId) -> bool:
        return await self._set(token_id, last_accessed_at=utc_now())

    async def activate(self, token_id: ShareTokenId) -> bool:
        return await self._set(token_id, is_active=True, updated_at=utc_now())

    async def deactivate(self, token_id: ShareTokenId) -> bool:
        return await self._set(token_id, is_active=False, updated_at=utc_now())

    async def delete_expired_tokens(self) -> int:
        with logfire.span("share_token_repository.delete_expired_tokens"):
            result = await self.session.execute(
                delete(share_tokens_table).where(_expired(utc_now()))
            )
            await self.session.flush()
            logfire.info("Expired share tokens removed", count=result.rowcount)
            return result.rowcount

    async def deactivate_inactive_tokens(self, threshold: datetime) -> int:
        # Never-used tokens count from their creation
        last_seen = func.coalesce(
            share_tokens_table.c.last_accessed_at, share_tokens_table.c.created_at
        )
        result = await self.session.execute(
            update(share_tokens_table)
            .where(share_tokens_table.c.is_active.is_(True), last_seen < threshold)
            .values(is_active=False, updated_at=utc_now())
        )
        await self.session.flush()
        logfire.info("Inactive share tokens deactivated", count=result.rowcount)
        return result.rowcount

    async def extend_expiration(
        self, token_id: ShareTokenId, expires_at: datetime
    ) -> bool:
        return await self._set(token_id, expires_at=expires_at, updated_at=utc_now())
