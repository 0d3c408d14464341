"""SQL implementation of Tag repository."""

from typing import List, Optional

import logfire
from sqlalchemy import delete, desc, exists, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import Tag, TagUsage
from snippetbox.domain.repository import TagRepository
from snippetbox.domain.value import SnippetId, TagId
from snippetbox.persistence.decoder import RowDecoder
from snippetbox.persistence.filters import FilterClauseBuilder
from snippetbox.persistence.mappers import row_to_tag, tag_to_dict
from snippetbox.persistence.tables import snippet_tags_table, tags_table


class SqlTagRepository(TagRepository):
    """SQL implementation of TagRepository."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_by_id(self, tag_id: TagId) -> Optional[Tag]:
        stmt = select(tags_table).where(tags_table.c.id == tag_id)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_tag(row._mapping) if row else None

    async def get_by_name(self, name: str) -> Optional[Tag]:
        stmt = select(tags_table).where(tags_table.c.name == name)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_tag(row._mapping) if row else None

    async def get_all(self) -> List[Tag]:
        stmt = select(tags_table).order_by(tags_table.c.name)
        result = await self.session.execute(stmt)
        return [row_to_tag(row._mapping) for row in result.fetchall()]

    async def get_by_snippet_id(self, snippet_id: SnippetId) -> List[Tag]:
        stmt = (
            select(tags_table)
            .join(snippet_tags_table, snippet_tags_table.c.tag_id == tags_table.c.id)
            .where(snippet_tags_table.c.snippet_id == snippet_id)
            .order_by(tags_table.c.name)
        )
        result = await self.session.execute(stmt)
        return [row_to_tag(row._mapping) for row in result.fetchall()]

    async def create(self, tag: Tag) -> Tag:
        with logfire.span("tag_repository.create", tag_name=tag.name):
            await self.session.execute(tags_table.insert().values(**tag_to_dict(tag)))
            await self.session.flush()
            return tag

    async def update(self, tag: Tag) -> Tag:
        stmt = (
            update(tags_table)
            .where(tags_table.c.id == tag.id)
            .values(name=tag.name, color=str(tag.color))
            .returning(tags_table)
        )
        result = await self.session.execute(stmt)
        row = result.fetchone()
        if row is None:
            return tag
        await self.session.flush()
        return row_to_tag(row._mapping)

    async def delete(self, tag_id: TagId) -> bool:
        with logfire.span("tag_repository.delete", tag_id=str(tag_id)):
            result = await self.session.execute(
                delete(tags_table).where(tags_table.c.id == tag_id)
            )
            await self.session.flush()
            return result.rowcount > 0

    async def _usage(
        self, limit: Optional[int] = None, used_only: bool = False
    ) -> List[TagUsage]:
        usage = func.count(snippet_tags_table.c.snippet_id).label("snippet_count")
        stmt = (
            select(tags_table, usage)
            .outerjoin(
                snippet_tags_table, snippet_tags_table.c.tag_id == tags_table.c.id
            )
            .group_by(*tags_table.c)
            .order_by(desc(usage), tags_table.c.name)
        )
        if used_only:
            stmt = stmt.having(usage > 0)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.session.execute(stmt)
        return [
            TagUsage(
                tag=row_to_tag(row._mapping),
                snippet_count=RowDecoder(row._mapping, "TagUsage").integer(
                    "snippet_count"
                ),
            )
            for row in result.fetchall()
        ]

    async def get_usage_statistics(self) -> List[TagUsage]:
        return await self._usage()

    async def get_most_used(self, limit: int = 20) -> List[TagUsage]:
        return await self._usage(limit=limit, used_only=True)

    async def search_by_prefix(self, prefix: str, limit: int = 10) -> List[Tag]:
        if not prefix or not prefix.strip():
            return []
        builder = FilterClauseBuilder()
        builder.starts_with(tags_table.c.name, prefix.strip())
        stmt = (
            select(tags_table)
            .where(builder.clause)
            .order_by(tags_table.c.name)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return [row_to_tag(row._mapping) for row in result.fetchall()]

    async def is_in_use(self, tag_id: TagId) -> bool:
        stmt = select(exists().where(snippet_tags_table.c.tag_id == tag_id))
        result = await self.session.execute(stmt)
        return bool(result.scalar())
