"""SQL implementation of Comment repository."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import logfire
from sqlalchemy import (
    case,
    delete,
    desc,
    distinct,
    exists,
    func,
    insert,
    select,
    update,
)
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.error import NotFoundError
from snippetbox.domain.model import (
    Comment,
    CommentFilter,
    CommentStats,
    Page,
    UserCommentStats,
)
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.repository import CommentRepository
from snippetbox.domain.value import (
    CommentId,
    CommentSort,
    CommentStatus,
    SnippetId,
    UserId,
)
from snippetbox.persistence.decoder import RowDecoder, decode_int
from snippetbox.persistence.filters import FilterClauseBuilder
from snippetbox.persistence.mappers import (
    comment_to_dict,
    row_to_comment,
    rows_to_comments_with_likes,
)
from snippetbox.persistence.pagination import PaginatedQueryExecutor
from snippetbox.persistence.tables import (
    comment_likes_table,
    comments_table,
    users_table,
)
from snippetbox.persistence.tree import (
    build_ancestor_chain,
    build_forest,
    build_reply_tree,
)

COMMENT_COLUMNS = [
    *comments_table.c,
    users_table.c.username.label("user_name"),
]

WITH_AUTHOR = comments_table.outerjoin(
    users_table, users_table.c.id == comments_table.c.user_id
)

LIVE = comments_table.c.deleted_at.is_(None)

# The created_at DESC tiebreak keeps equal counters newest first
SORT_ORDER = {
    CommentSort.CREATED_AT_DESC: [desc(comments_table.c.created_at)],
    CommentSort.CREATED_AT_ASC: [comments_table.c.created_at],
    CommentSort.LIKE_COUNT_DESC: [
        desc(comments_table.c.like_count),
        desc(comments_table.c.created_at),
    ],
    CommentSort.LIKE_COUNT_ASC: [
        comments_table.c.like_count,
        desc(comments_table.c.created_at),
    ],
    CommentSort.REPLY_COUNT_DESC: [
        desc(comments_table.c.reply_count),
        desc(comments_table.c.created_at),
    ],
    CommentSort.REPLY_COUNT_ASC: [
        comments_table.c.reply_count,
        desc(comments_table.c.created_at),
    ],
}


class SqlCommentRepository(CommentRepository):
    """SQL implementation of CommentRepository."""

    def __init__(
        self,
        session: AsyncSession,
        search_limit: int = 100,
        max_page_size: int = 100,
    ) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            search_limit: Default cap on search results
            max_page_size: Largest page accepted by paged queries
        """
        self.session = session
        self.search_limit = search_limit
        self.pages = PaginatedQueryExecutor(session, max_page_size=max_page_size)

    async def _find(
        self, *conditions, order_by=None, limit: Optional[int] = None
    ) -> List[Comment]:
        """Comments matching ``conditions`` with their author's name."""
        stmt = select(*COMMENT_COLUMNS).select_from(WITH_AUTHOR).where(*conditions)
        stmt = stmt.order_by(
            *(order_by if order_by is not None else [desc(comments_table.c.created_at)]),
            comments_table.c.id,
        )
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [row_to_comment(row._mapping) for row in result.fetchall()]

    async def _count(self, *conditions) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(comments_table).where(*conditions)
        )
        return decode_int(result.scalar_one())

    async def _resync_reply_counts(self, parent_ids: Iterable[CommentId]) -> None:
        """Set each parent's reply_count to its number of live direct replies."""
        ids = list({parent_id for parent_id in parent_ids if parent_id is not None})
        if not ids:
            return
        replies = comments_table.alias("replies")
        live_replies = (
            select(func.count())
            .select_from(replies)
            .where(
                replies.c.parent_id == comments_table.c.id,
                replies.c.deleted_at.is_(None),
            )
            .scalar_subquery()
        )
        await self.session.execute(
            update(comments_table)
            .where(comments_table.c.id.in_(ids))
            .values(reply_count=live_replies)
        )

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        comments = await self._find(comments_table.c.id == comment_id, LIVE)
        return comments[0] if comments else None

    async def get_by_id_with_replies(self, comment_id: CommentId) -> Optional[Comment]:
        with logfire.span(
            "comment_repository.get_by_id_with_replies", comment_id=str(comment_id)
        ):
            thread = (
                select(comments_table.c.id)
                .where(comments_table.c.id == comment_id, LIVE)
                .cte("thread", recursive=True)
            )
            # UNION rather than UNION ALL so corrupted cyclic links terminate
            thread = thread.union(
                select(comments_table.c.id)
                .join(thread, comments_table.c.parent_id == thread.c.id)
                .where(LIVE)
            )
            comments = await self._find(
                comments_table.c.id.in_(select(thread.c.id)),
                order_by=[comments_table.c.created_at],
            )
            logfire.debug(
                "Fetched reply tree",
                comment_id=str(comment_id),
                size=len(comments),
            )
            return build_reply_tree(comment_id, comments)

    async def get_by_id_with_likes(self, comment_id: CommentId) -> Optional[Comment]:
        likers = users_table.alias("likers")
        stmt = (
            select(
                *COMMENT_COLUMNS,
                comment_likes_table.c.id.label("like_id"),
                comment_likes_table.c.comment_id.label("like_comment_id"),
                comment_likes_table.c.user_id.label("like_user_id"),
                comment_likes_table.c.created_at.label("like_created_at"),
                likers.c.username.label("like_user_name"),
            )
            .select_from(
                WITH_AUTHOR.outerjoin(
                    comment_likes_table,
                    comment_likes_table.c.comment_id == comments_table.c.id,
                ).outerjoin(likers, likers.c.id == comment_likes_table.c.user_id)
            )
            .where(comments_table.c.id == comment_id, LIVE)
            .order_by(comment_likes_table.c.created_at, comment_likes_table.c.id)
        )
        result = await self.session.execute(stmt)
        comments = rows_to_comments_with_likes(row._mapping for row in result.fetchall())
        return comments[0] if comments else None

    async def get_parent_chain(self, comment_id: CommentId) -> List[Comment]:
        ancestors = (
            select(comments_table.c.id, comments_table.c.parent_id)
            .where(comments_table.c.id == comment_id)
            .cte("ancestors", recursive=True)
        )
        ancestors = ancestors.union(
            select(comments_table.c.id, comments_table.c.parent_id).join(
                ancestors, comments_table.c.id == ancestors.c.parent_id
            )
        )
        comments = await self._find(
            comments_table.c.id.in_(select(ancestors.c.id)),
            order_by=[comments_table.c.depth],
        )
        return build_ancestor_chain(comment_id, comments)

    async def get_comment_tree(self, snippet_id: SnippetId) -> List[Comment]:
        comments = await self._find(
            comments_table.c.snippet_id == snippet_id,
            LIVE,
            order_by=[comments_table.c.created_at],
        )
        return build_forest(comments)

    async def get_paged(self, comment_filter: CommentFilter) -> Page[Comment]:
        with logfire.span(
            "comment_repository.get_paged",
            page=comment_filter.page,
            page_size=comment_filter.page_size,
            sort=comment_filter.sort.value,
        ):
            builder = FilterClauseBuilder()
            builder.equals(comments_table.c.snippet_id, comment_filter.snippet_id)
            builder.equals(comments_table.c.user_id, comment_filter.user_id)
            builder.equals(comments_table.c.status, comment_filter.status)
            if comment_filter.parent_id is not None:
                builder.equals(comments_table.c.parent_id, comment_filter.parent_id)
            else:
                builder.is_null(comments_table.c.parent_id, comment_filter.roots_only)
            builder.at_least(
                comments_table.c.created_at, comment_filter.start_date, "start_date"
            )
            builder.at_most(
                comments_table.c.created_at, comment_filter.end_date, "end_date"
            )
            builder.search([comments_table.c.content], comment_filter.search)
            builder.is_null(
                comments_table.c.deleted_at, not comment_filter.include_deleted
            )

            return await self.pages.fetch_page(
                source=WITH_AUTHOR,
                columns=COMMENT_COLUMNS,
                key=comments_table.c.id,
                where=builder.clause,
                order_by=SORT_ORDER[comment_filter.sort],
                page=comment_filter.page,
                page_size=comment_filter.page_size,
                mapper=lambda rows: [row_to_comment(row) for row in rows],
            )

    async def get_root_comments_by_snippet_id(
        self, snippet_id: SnippetId
    ) -> List[Comment]:
        return await self._find(
            comments_table.c.snippet_id == snippet_id,
            comments_table.c.parent_id.is_(None),
            LIVE,
        )

    async def get_replies_by_parent_id(self, parent_id: CommentId) -> List[Comment]:
        return await self._find(
            comments_table.c.parent_id == parent_id,
            LIVE,
            order_by=[comments_table.c.created_at],
        )

    async def get_by_user_id(self, user_id: UserId) -> List[Comment]:
        return await self._find(comments_table.c.user_id == user_id, LIVE)

    async def search(self, term: str, limit: Optional[int] = None) -> List[Comment]:
        if not term or not term.strip():
            return []
        builder = FilterClauseBuilder()
        builder.search([comments_table.c.content], term.strip())
        return await self._find(
            builder.clause,
            LIVE,
            limit=limit if limit is not None else self.search_limit,
        )

    async def get_by_status(self, status: CommentStatus) -> List[Comment]:
        return await self._find(comments_table.c.status == int(status), LIVE)

    async def get_by_date_range(
        self, start: datetime, end: datetime
    ) -> List[Comment]:
        return await self._find(
            comments_table.c.created_at >= start,
            comments_table.c.created_at <= end,
            LIVE,
        )

    async def get_latest(self, snippet_id: SnippetId, count: int = 5) -> List[Comment]:
        return await self._find(
            comments_table.c.snippet_id == snippet_id, LIVE, limit=count
        )

    async def get_most_liked(
        self, snippet_id: SnippetId, count: int = 5
    ) -> List[Comment]:
        return await self._find(
            comments_table.c.snippet_id == snippet_id,
            LIVE,
            order_by=[
                desc(comments_table.c.like_count),
                desc(comments_table.c.created_at),
            ],
            limit=count,
        )

    async def count_by_snippet_id(self, snippet_id: SnippetId) -> int:
        return await self._count(comments_table.c.snippet_id == snippet_id, LIVE)

    async def count_by_user_id(self, user_id: UserId) -> int:
        return await self._count(comments_table.c.user_id == user_id, LIVE)

    async def get_stats_by_snippet_id(self, snippet_id: SnippetId) -> CommentStats:
        stmt = select(
            func.count().label("total_comments"),
            func.coalesce(
                func.sum(case((comments_table.c.parent_id.is_(None), 1), else_=0)), 0
            ).label("root_comments"),
            func.coalesce(
                func.sum(case((comments_table.c.parent_id.is_not(None), 1), else_=0)),
                0,
            ).label("reply_comments"),
            func.coalesce(func.sum(comments_table.c.like_count), 0).label(
                "total_likes"
            ),
            func.count(distinct(comments_table.c.user_id)).label("active_users"),
            func.max(comments_table.c.created_at).label("latest_comment_at"),
        ).where(comments_table.c.snippet_id == snippet_id, LIVE)
        result = await self.session.execute(stmt)
        d = RowDecoder(result.one()._mapping, "CommentStats")
        return CommentStats(
            total_comments=d.integer("total_comments"),
            root_comments=d.integer("root_comments"),
            reply_comments=d.integer("reply_comments"),
            total_likes=d.integer("total_likes"),
            active_users=d.integer("active_users"),
            latest_comment_at=d.optional_timestamp("latest_comment_at"),
        )

    async def get_stats_by_user_ids(
        self, user_ids: Sequence[UserId]
    ) -> Dict[UserId, UserCommentStats]:
        stats = {user_id: UserCommentStats(user_id=user_id) for user_id in user_ids}
        if not stats:
            return stats

        stmt = (
            select(
                comments_table.c.user_id,
                func.count().label("total_comments"),
                func.sum(
                    case((comments_table.c.parent_id.is_(None), 1), else_=0)
                ).label("root_comments"),
                func.sum(
                    case((comments_table.c.parent_id.is_not(None), 1), else_=0)
                ).label("reply_comments"),
                func.sum(comments_table.c.like_count).label("total_likes"),
                func.count(distinct(comments_table.c.snippet_id)).label(
                    "snippet_count"
                ),
                func.max(comments_table.c.created_at).label("latest_comment_at"),
            )
            .where(comments_table.c.user_id.in_(list(stats)), LIVE)
            .group_by(comments_table.c.user_id)
        )
        result = await self.session.execute(stmt)
        for row in result.fetchall():
            d = RowDecoder(row._mapping, "UserCommentStats")
            user_id = UserId(d.identifier("user_id"))
            stats[user_id] = UserCommentStats(
                user_id=user_id,
                total_comments=d.integer("total_comments"),
                root_comments=d.integer_or_zero("root_comments"),
                reply_comments=d.integer_or_zero("reply_comments"),
                total_likes=d.integer_or_zero("total_likes"),
                snippet_count=d.integer("snippet_count"),
                latest_comment_at=d.optional_timestamp("latest_comment_at"),
            )
        return stats

    async def _is_live_author(self, comment_id: CommentId, user_id: UserId) -> bool:
        stmt = select(
            exists().where(
                comments_table.c.id == comment_id,
                comments_table.c.user_id == user_id,
                LIVE,
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def can_user_edit(self, comment_id: CommentId, user_id: UserId) -> bool:
        return await self._is_live_author(comment_id, user_id)

    async def can_user_delete(self, comment_id: CommentId, user_id: UserId) -> bool:
        return await self._is_live_author(comment_id, user_id)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, comment: Comment) -> Comment:
        with logfire.span(
            "comment_repository.create",
            comment_id=str(comment.id),
            snippet_id=str(comment.snippet_id),
        ):
            path: list[CommentId] = []
            depth = 0
            if comment.parent_id is not None:
                parent = await self.get_by_id(comment.parent_id)
                if parent is None:
                    logfire.warn(
                        "Reply to missing parent",
                        comment_id=str(comment.id),
                        parent_id=str(comment.parent_id),
                    )
                    raise NotFoundError("Comment", str(comment.parent_id))
                path = parent.reply_path()
                depth = parent.depth + 1

            stored = comment.model_copy(
                update={
                    "path": path,
                    "depth": depth,
                    "like_count": 0,
                    "reply_count": 0,
                    "deleted_at": None,
                }
            )
            await self.session.execute(
                comments_table.insert().values(**comment_to_dict(stored))
            )
            if stored.parent_id is not None:
                await self.increment_reply_count(stored.parent_id)
            await self.session.flush()

            logfire.info(
                "Comment created",
                comment_id=str(stored.id),
                parent_id=str(stored.parent_id) if stored.parent_id else None,
                depth=depth,
            )
            return await self.get_by_id(stored.id) or stored

    async def update(self, comment: Comment) -> Comment:
        with logfire.span("comment_repository.update", comment_id=str(comment.id)):
            result = await self.session.execute(
                update(comments_table)
                .where(comments_table.c.id == comment.id, LIVE)
                .values(
                    content=comment.content,
                    status=int(comment.status),
                    updated_at=utc_now(),
                )
            )
            if result.rowcount == 0:
                return comment
            await self.session.flush()
            return await self.get_by_id(comment.id) or comment

    async def soft_delete(self, comment_id: CommentId) -> bool:
        with logfire.span("comment_repository.soft_delete", comment_id=str(comment_id)):
            now = utc_now()
            result = await self.session.execute(
                update(comments_table)
                .where(comments_table.c.id == comment_id, LIVE)
                .values(
                    status=int(CommentStatus.DELETED),
                    deleted_at=now,
                    updated_at=now,
                )
                .returning(comments_table.c.parent_id)
            )
            row = result.fetchone()
            if row is None:
                return False

            parent_id = RowDecoder(row._mapping, "Comment").optional_identifier(
                "parent_id"
            )
            if parent_id is not None:
                await self.decrement_reply_count(CommentId(parent_id))
            await self.session.flush()
            logfire.info("Comment soft-deleted", comment_id=str(comment_id))
            return True

    async def delete(self, comment_id: CommentId) -> bool:
        with logfire.span("comment_repository.delete", comment_id=str(comment_id)):
            result = await self.session.execute(
                delete(comments_table)
                .where(comments_table.c.id == comment_id)
                .returning(comments_table.c.parent_id, comments_table.c.deleted_at)
            )
            row = result.fetchone()
            if row is None:
                return False

            d = RowDecoder(row._mapping, "Comment")
            parent_id = d.optional_identifier("parent_id")
            # A soft-deleted reply was already uncounted
            if parent_id is not None and d.optional_timestamp("deleted_at") is None:
                await self.decrement_reply_count(CommentId(parent_id))
            await self.session.flush()
            logfire.info("Comment deleted", comment_id=str(comment_id))
            return True

    async def update_status(
        self, comment_ids: Sequence[CommentId], status: CommentStatus
    ) -> int:
        if not comment_ids:
            return 0
        result = await self.session.execute(
            update(comments_table)
            .where(comments_table.c.id.in_(list(comment_ids)), LIVE)
            .values(status=int(status), updated_at=utc_now())
        )
        await self.session.flush()
        return result.rowcount

    async def increment_like_count(self, comment_id: CommentId) -> bool:
        """Atomically increment a live comment's like count by 1."""
        result = await self.session.execute(
            update(comments_table)
            .where(comments_table.c.id == comment_id, LIVE)
            .values(like_count=comments_table.c.like_count + 1)
        )
        return result.rowcount > 0

    async def decrement_like_count(self, comment_id: CommentId) -> bool:
        """Atomically decrement like count by 1, never below zero."""
        result = await self.session.execute(
            update(comments_table)
            .where(
                comments_table.c.id == comment_id,
                LIVE,
                comments_table.c.like_count > 0,
            )
            .values(like_count=comments_table.c.like_count - 1)
        )
        return result.rowcount > 0

    async def increment_reply_count(self, comment_id: CommentId) -> bool:
        """Atomically increment a live comment's reply count by 1."""
        result = await self.session.execute(
            update(comments_table)
            .where(comments_table.c.id == comment_id, LIVE)
            .values(reply_count=comments_table.c.reply_count + 1)
        )
        return result.rowcount > 0

    async def decrement_reply_count(self, comment_id: CommentId) -> bool:
        """Atomically decrement reply count by 1, never below zero."""
        result = await self.session.execute(
            update(comments_table)
            .where(
                comments_table.c.id == comment_id,
                LIVE,
                comments_table.c.reply_count > 0,
            )
            .values(reply_count=comments_table.c.reply_count - 1)
        )
        return result.rowcount > 0

    async def bulk_insert(self, comments: Sequence[Comment]) -> int:
        """Insert comments as given, then recount their parents' replies.

        Depth and path are not derived here; imported rows carry their own.
        """
        if not comments:
            return 0
        with logfire.span("comment_repository.bulk_insert", count=len(comments)):
            await self.session.execute(
                insert(comments_table),
                [comment_to_dict(comment) for comment in comments],
            )
            await self._resync_reply_counts(comment.parent_id for comment in comments)
            await self.session.flush()
            logfire.info("Comments bulk inserted", count=len(comments))
            return len(comments)

    async def bulk_soft_delete(self, comment_ids: Sequence[CommentId]) -> int:
        if not comment_ids:
            return 0
        with logfire.span("comment_repository.bulk_soft_delete", count=len(comment_ids)):
            now = utc_now()
            result = await self.session.execute(
                update(comments_table)
                .where(comments_table.c.id.in_(list(comment_ids)), LIVE)
                .values(
                    status=int(CommentStatus.DELETED),
                    deleted_at=now,
                    updated_at=now,
                )
                .returning(comments_table.c.parent_id)
            )
            rows = result.fetchall()
            await self._resync_reply_counts(
                CommentId(parent_id)
                for parent_id in (
                    RowDecoder(row._mapping, "Comment").optional_identifier("parent_id")
                    for row in rows
                )
                if parent_id is not None
            )
            await self.session.flush()
            logfire.info("Comments bulk soft-deleted", count=len(rows))
            return len(rows)

    async def bulk_update(self, comments: Sequence[Comment]) -> int:
        if not comments:
            return 0
        with logfire.span("comment_repository.bulk_update", count=len(comments)):
            now = utc_now()
            updated = 0
            for comment in comments:
                result = await self.session.execute(
                    update(comments_table)
                    .where(comments_table.c.id == comment.id, LIVE)
                    .values(
                        content=comment.content,
                        status=int(comment.status),
                        like_count=max(comment.like_count, 0),
                        reply_count=max(comment.reply_count, 0),
                        updated_at=now,
                    )
                )
                updated += result.rowcount
            await self.session.flush()
            logfire.info(
                "Comments bulk updated", requested=len(comments), updated=updated
            )
            return updated
