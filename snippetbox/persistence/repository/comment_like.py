"""SQL implementation of CommentLike repository."""

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

import logfire
from sqlalchemy import delete, desc, exists, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import CommentLike, Page
from snippetbox.domain.repository import CommentLikeRepository
from snippetbox.domain.value import CommentId, CommentLikeId, UserId
from snippetbox.persistence.decoder import RowDecoder, decode_int
from snippetbox.persistence.filters import FilterClauseBuilder
from snippetbox.persistence.mappers import comment_like_to_dict, row_to_comment_like
from snippetbox.persistence.pagination import PaginatedQueryExecutor
from snippetbox.persistence.tables import (
    comment_likes_table,
    comments_table,
    users_table,
)

LIKE_COLUMNS = [
    *comment_likes_table.c,
    users_table.c.username.label("user_name"),
]

WITH_LIKER = comment_likes_table.outerjoin(
    users_table, users_table.c.id == comment_likes_table.c.user_id
)


class SqlCommentLikeRepository(CommentLikeRepository):
    """SQL implementation of CommentLikeRepository."""

    def __init__(self, session: AsyncSession, max_page_size: int = 100) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            max_page_size: Largest page accepted by paged queries
        """
        self.session = session
        self.pages = PaginatedQueryExecutor(session, max_page_size=max_page_size)

    async def _find(self, *conditions) -> List[CommentLike]:
        stmt = (
            select(*LIKE_COLUMNS)
            .select_from(WITH_LIKER)
            .where(*conditions)
            .order_by(
                desc(comment_likes_table.c.created_at), comment_likes_table.c.id
            )
        )
        result = await self.session.execute(stmt)
        return [row_to_comment_like(row._mapping) for row in result.fetchall()]

    async def _count(self, *conditions) -> int:
        result = await self.session.execute(
            select(func.count()).select_from(comment_likes_table).where(*conditions)
        )
        return decode_int(result.scalar_one())

    async def _paged(self, column, value, page: int, page_size: int) -> Page[CommentLike]:
        builder = FilterClauseBuilder()
        builder.equals(column, value)
        return await self.pages.fetch_page(
            source=WITH_LIKER,
            columns=LIKE_COLUMNS,
            key=comment_likes_table.c.id,
            where=builder.clause,
            order_by=[desc(comment_likes_table.c.created_at)],
            page=page,
            page_size=page_size,
            mapper=lambda rows: [row_to_comment_like(row) for row in rows],
        )

    async def _decrement_like_count(self, comment_id: CommentId) -> None:
        await self.session.execute(
            update(comments_table)
            .where(comments_table.c.id == comment_id, comments_table.c.like_count > 0)
            .values(like_count=comments_table.c.like_count - 1)
        )

    async def _resync_like_counts(self, comment_ids: Iterable[CommentId]) -> None:
        """Set each comment's like_count to its number of like rows."""
        ids = list(set(comment_ids))
        if not ids:
            return
        like_rows = (
            select(func.count())
            .select_from(comment_likes_table)
            .where(comment_likes_table.c.comment_id == comments_table.c.id)
            .scalar_subquery()
        )
        await self.session.execute(
            update(comments_table)
            .where(comments_table.c.id.in_(ids))
            .values(like_count=like_rows)
        )

    @staticmethod
    def _comment_ids(rows) -> list[CommentId]:
        return [
            CommentId(RowDecoder(row._mapping, "CommentLike").identifier("comment_id"))
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_by_id(self, like_id: CommentLikeId) -> Optional[CommentLike]:
        likes = await self._find(comment_likes_table.c.id == like_id)
        return likes[0] if likes else None

    async def get_by_user_and_comment(
        self, user_id: UserId, comment_id: CommentId
    ) -> Optional[CommentLike]:
        likes = await self._find(
            comment_likes_table.c.user_id == user_id,
            comment_likes_table.c.comment_id == comment_id,
        )
        return likes[0] if likes else None

    async def get_by_comment_id(self, comment_id: CommentId) -> List[CommentLike]:
        return await self._find(comment_likes_table.c.comment_id == comment_id)

    async def get_by_user_id(self, user_id: UserId) -> List[CommentLike]:
        return await self._find(comment_likes_table.c.user_id == user_id)

    async def get_paged_by_comment_id(
        self, comment_id: CommentId, page: int = 1, page_size: int = 20
    ) -> Page[CommentLike]:
        return await self._paged(
            comment_likes_table.c.comment_id, comment_id, page, page_size
        )

    async def get_paged_by_user_id(
        self, user_id: UserId, page: int = 1, page_size: int = 20
    ) -> Page[CommentLike]:
        return await self._paged(comment_likes_table.c.user_id, user_id, page, page_size)

    async def is_liked_by_user(self, comment_id: CommentId, user_id: UserId) -> bool:
        stmt = select(
            exists().where(
                comment_likes_table.c.comment_id == comment_id,
                comment_likes_table.c.user_id == user_id,
            )
        )
        result = await self.session.execute(stmt)
        return bool(result.scalar())

    async def count_by_comment_id(self, comment_id: CommentId) -> int:
        return await self._count(comment_likes_table.c.comment_id == comment_id)

    async def count_by_user_id(self, user_id: UserId) -> int:
        return await self._count(comment_likes_table.c.user_id == user_id)

    async def get_like_counts_by_comment_ids(
        self, comment_ids: Sequence[CommentId]
    ) -> Dict[CommentId, int]:
        counts: Dict[CommentId, int] = {comment_id: 0 for comment_id in comment_ids}
        if not counts:
            return counts

        stmt = (
            select(
                comment_likes_table.c.comment_id,
                func.count().label("like_count"),
            )
            .where(comment_likes_table.c.comment_id.in_(list(counts)))
            .group_by(comment_likes_table.c.comment_id)
        )
        result = await self.session.execute(stmt)
        for row in result.fetchall():
            d = RowDecoder(row._mapping, "CommentLike")
            counts[CommentId(d.identifier("comment_id"))] = d.integer("like_count")
        return counts

    async def get_like_status_by_comment_ids(
        self, user_id: UserId, comment_ids: Sequence[CommentId]
    ) -> Dict[CommentId, bool]:
        status: Dict[CommentId, bool] = {comment_id: False for comment_id in comment_ids}
        if not status:
            return status

        stmt = (
            select(comment_likes_table.c.comment_id)
            .where(
                comment_likes_table.c.user_id == user_id,
                comment_likes_table.c.comment_id.in_(list(status)),
            )
            .distinct()
        )
        result = await self.session.execute(stmt)
        for comment_id in self._comment_ids(result.fetchall()):
            status[comment_id] = True
        return status

    async def get_top_liked_comments(self, limit: int) -> List[Tuple[CommentId, int]]:
        like_count = func.count().label("like_count")
        stmt = (
            select(comment_likes_table.c.comment_id, like_count)
            .group_by(comment_likes_table.c.comment_id)
            .order_by(desc(like_count), comment_likes_table.c.comment_id)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        top = []
        for row in result.fetchall():
            d = RowDecoder(row._mapping, "CommentLike")
            top.append((CommentId(d.identifier("comment_id")), d.integer("like_count")))
        return top

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create(self, like: CommentLike) -> CommentLike:
        with logfire.span(
            "comment_like_repository.create",
            comment_id=str(like.comment_id),
            user_id=str(like.user_id),
        ):
            existing = await self.get_by_user_and_comment(like.user_id, like.comment_id)
            if existing is not None:
                logfire.debug(
                    "Comment already liked",
                    comment_id=str(like.comment_id),
                    user_id=str(like.user_id),
                )
                return existing

            await self.session.execute(
                comment_likes_table.insert().values(**comment_like_to_dict(like))
            )
            await self.session.execute(
                update(comments_table)
                .where(comments_table.c.id == like.comment_id)
                .values(like_count=comments_table.c.like_count + 1)
            )
            await self.session.flush()
            return await self.get_by_id(like.id) or like

    async def delete(self, like_id: CommentLikeId) -> bool:
        with logfire.span("comment_like_repository.delete", like_id=str(like_id)):
            result = await self.session.execute(
                delete(comment_likes_table)
                .where(comment_likes_table.c.id == like_id)
                .returning(comment_likes_table.c.comment_id)
            )
            comment_ids = self._comment_ids(result.fetchall())
            for comment_id in comment_ids:
                await self._decrement_like_count(comment_id)
            await self.session.flush()
            return bool(comment_ids)

    async def delete_by_user_and_comment(
        self, user_id: UserId, comment_id: CommentId
    ) -> bool:
        with logfire.span(
            "comment_like_repository.delete_by_user_and_comment",
            comment_id=str(comment_id),
            user_id=str(user_id),
        ):
            result = await self.session.execute(
                delete(comment_likes_table)
                .where(
                    comment_likes_table.c.user_id == user_id,
                    comment_likes_table.c.comment_id == comment_id,
                )
                .returning(comment_likes_table.c.comment_id)
            )
            deleted = self._comment_ids(result.fetchall())
            for liked_comment_id in deleted:
                await self._decrement_like_count(liked_comment_id)
            await self.session.flush()
            return bool(deleted)

    async def bulk_insert(self, likes: Sequence[CommentLike]) -> int:
        if not likes:
            return 0
        with logfire.span("comment_like_repository.bulk_insert", count=len(likes)):
            comment_ids = list({like.comment_id for like in likes})
            result = await self.session.execute(
                select(
                    comment_likes_table.c.comment_id, comment_likes_table.c.user_id
                ).where(comment_likes_table.c.comment_id.in_(comment_ids))
            )
            seen = set()
            for row in result.fetchall():
                d = RowDecoder(row._mapping, "CommentLike")
                seen.add((d.identifier("comment_id"), d.identifier("user_id")))

            fresh: list[CommentLike] = []
            for like in likes:
                pair = (like.comment_id, like.user_id)
                if pair not in seen:
                    seen.add(pair)
                    fresh.append(like)

            if fresh:
                await self.session.execute(
                    insert(comment_likes_table),
                    [comment_like_to_dict(like) for like in fresh],
                )
                await self._resync_like_counts(like.comment_id for like in fresh)
            await self.session.flush()

            logfire.info(
                "Comment likes bulk inserted",
                requested=len(likes),
                inserted=len(fresh),
            )
            return len(fresh)

    async def delete_all_by_comment_id(self, comment_id: CommentId) -> int:
        return await self.bulk_delete_by_comment_ids([comment_id])

    async def bulk_delete_by_comment_ids(self, comment_ids: Sequence[CommentId]) -> int:
        if not comment_ids:
            return 0
        ids = list(comment_ids)
        result = await self.session.execute(
            delete(comment_likes_table).where(comment_likes_table.c.comment_id.in_(ids))
        )
        await self._resync_like_counts(ids)
        await self.session.flush()
        return result.rowcount

    async def clean_orphaned_likes(self) -> int:
        with logfire.span("comment_like_repository.clean_orphaned_likes"):
            result = await self.session.execute(
                delete(comment_likes_table).where(
                    comment_likes_table.c.comment_id.not_in(select(comments_table.c.id))
                )
            )
            await self.session.flush()
            logfire.info("Orphaned comment likes removed", count=result.rowcount)
            return result.rowcount

    async def clean_old_likes(self, older_than: datetime) -> int:
        with logfire.span("comment_like_repository.clean_old_likes"):
            result = await self.session.execute(
                delete(comment_likes_table)
                .where(comment_likes_table.c.created_at < older_than)
                .returning(comment_likes_table.c.comment_id)
            )
            comment_ids = self._comment_ids(result.fetchall())
            await self._resync_like_counts(comment_ids)
            await self.session.flush()
            logfire.info("Old comment likes removed", count=len(comment_ids))
            return len(comment_ids)

    async def validate_like_integrity(self, comment_id: CommentId) -> bool:
        like_rows = (
            select(func.count())
            .select_from(comment_likes_table)
            .where(comment_likes_table.c.comment_id == comments_table.c.id)
            .scalar_subquery()
        )
        stmt = select(
            comments_table.c.like_count, like_rows.label("like_rows")
        ).where(comments_table.c.id == comment_id)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        if row is None:
            return False

        d = RowDecoder(row._mapping, "Comment")
        stored, actual = d.integer("like_count"), d.integer("like_rows")
        if stored != actual:
            logfire.warn(
                "Comment like count out of sync",
                comment_id=str(comment_id),
                stored=stored,
                actual=actual,
            )
        return stored == actual
