"""SQL implementation of ClipboardHistory repository."""

from datetime import datetime
from typing import Dict, List, Optional, Sequence

import logfire
from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import ClipboardEntry
from snippetbox.domain.repository import ClipboardHistoryRepository
from snippetbox.domain.value import ClipboardEntryId, SnippetId, UserId
from snippetbox.persistence.decoder import RowDecoder, decode_int
from snippetbox.persistence.mappers import (
    clipboard_entry_to_dict,
    row_to_clipboard_entry,
)
from snippetbox.persistence.tables import clipboard_history_table, snippets_table

WITH_SNIPPET = select(
    clipboard_history_table,
    snippets_table.c.title.label("snippet_title"),
    snippets_table.c.language.label("snippet_language"),
).select_from(
    clipboard_history_table.outerjoin(
        snippets_table,
        snippets_table.c.id == clipboard_history_table.c.snippet_id,
    )
)


class SqlClipboardHistoryRepository(ClipboardHistoryRepository):
    """SQL implementation of ClipboardHistoryRepository."""

    def __init__(self, session: AsyncSession, history_limit: int = 50) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            history_limit: Default number of entries returned per user
        """
        self.session = session
        self.history_limit = history_limit

    async def get_by_id(self, entry_id: ClipboardEntryId) -> Optional[ClipboardEntry]:
        stmt = WITH_SNIPPET.where(clipboard_history_table.c.id == entry_id)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_clipboard_entry(row._mapping) if row else None

    async def get_by_user_id(
        self, user_id: UserId, limit: Optional[int] = None
    ) -> List[ClipboardEntry]:
        stmt = (
            WITH_SNIPPET.where(clipboard_history_table.c.user_id == user_id)
            .order_by(
                desc(clipboard_history_table.c.copied_at),
                clipboard_history_table.c.id,
            )
            .limit(limit if limit is not None else self.history_limit)
        )
        result = await self.session.execute(stmt)
        return [row_to_clipboard_entry(row._mapping) for row in result.fetchall()]

    async def create(self, entry: ClipboardEntry) -> ClipboardEntry:
        await self.session.execute(
            clipboard_history_table.insert().values(**clipboard_entry_to_dict(entry))
        )
        await self.session.flush()
        logfire.debug(
            "Clipboard entry recorded",
            user_id=str(entry.user_id),
            snippet_id=str(entry.snippet_id),
        )
        return entry

    async def delete_by_user_id(self, user_id: UserId) -> int:
        result = await self.session.execute(
            delete(clipboard_history_table).where(
                clipboard_history_table.c.user_id == user_id
            )
        )
        await self.session.flush()
        return result.rowcount

    async def delete_expired(self, cutoff: datetime) -> int:
        with logfire.span("clipboard_repository.delete_expired"):
            result = await self.session.execute(
                delete(clipboard_history_table).where(
                    clipboard_history_table.c.copied_at < cutoff
                )
            )
            await self.session.flush()
            logfire.info("Expired clipboard entries removed", count=result.rowcount)
            return result.rowcount

    async def get_copy_count(self, snippet_id: SnippetId) -> int:
        stmt = select(func.count()).where(
            clipboard_history_table.c.snippet_id == snippet_id
        )
        result = await self.session.execute(stmt)
        return decode_int(result.scalar_one())

    async def get_user_history_count(self, user_id: UserId) -> int:
        stmt = select(func.count()).where(clipboard_history_table.c.user_id == user_id)
        result = await self.session.execute(stmt)
        return decode_int(result.scalar_one())

    async def delete_oldest_user_records(self, user_id: UserId, count: int) -> int:
        if count <= 0:
            return 0
        oldest = (
            select(clipboard_history_table.c.id)
            .where(clipboard_history_table.c.user_id == user_id)
            .order_by(
                clipboard_history_table.c.copied_at, clipboard_history_table.c.id
            )
            .limit(count)
        )
        result = await self.session.execute(
            delete(clipboard_history_table).where(
                clipboard_history_table.c.id.in_(oldest.scalar_subquery())
            )
        )
        await self.session.flush()
        return result.rowcount

    async def get_copy_counts_batch(
        self, snippet_ids: Sequence[SnippetId]
    ) -> Dict[SnippetId, int]:
        counts: Dict[SnippetId, int] = {snippet_id: 0 for snippet_id in snippet_ids}
        if not counts:
            return counts

        stmt = (
            select(
                clipboard_history_table.c.snippet_id,
                func.count().label("copy_count"),
            )
            .where(clipboard_history_table.c.snippet_id.in_(list(counts)))
            .group_by(clipboard_history_table.c.snippet_id)
        )
        result = await self.session.execute(stmt)
        for row in result.fetchall():
            d = RowDecoder(row._mapping, "ClipboardEntry")
            counts[SnippetId(d.identifier("snippet_id"))] = d.integer("copy_count")
        return counts
