"""SQL implementation of Snippet repository."""

from collections import defaultdict
from typing import List, Optional, Sequence

import logfire
from sqlalchemy import delete, desc, exists, insert, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import Page, Snippet, SnippetFilter, Tag
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.repository import SnippetRepository
from snippetbox.domain.value import SnippetId, TagId, UserId
from snippetbox.persistence.error import TransactionFailure
from snippetbox.persistence.filters import FilterClauseBuilder
from snippetbox.persistence.mappers import (
    row_to_snippet,
    row_to_tag,
    rows_to_snippets_with_tags,
    snippet_to_dict,
)
from snippetbox.persistence.pagination import PaginatedQueryExecutor
from snippetbox.persistence.tables import (
    snippet_tags_table,
    snippets_table,
    tags_table,
    users_table,
)

SNIPPET_COLUMNS = [
    *snippets_table.c,
    users_table.c.username.label("creator_name"),
]

TAG_COLUMNS = [
    tags_table.c.id.label("tag_id"),
    tags_table.c.name.label("tag_name"),
    tags_table.c.color.label("tag_color"),
    tags_table.c.created_by.label("tag_created_by"),
    tags_table.c.created_at.label("tag_created_at"),
]

WITH_CREATOR = snippets_table.outerjoin(
    users_table, users_table.c.id == snippets_table.c.created_by
)

WITH_CREATOR_AND_TAGS = WITH_CREATOR.outerjoin(
    snippet_tags_table, snippet_tags_table.c.snippet_id == snippets_table.c.id
).outerjoin(tags_table, tags_table.c.id == snippet_tags_table.c.tag_id)


class SqlSnippetRepository(SnippetRepository):
    """SQL implementation of SnippetRepository."""

    def __init__(self, session: AsyncSession, max_page_size: int = 100) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
            max_page_size: Largest page accepted by paged queries
        """
        self.session = session
        self.pages = PaginatedQueryExecutor(session, max_page_size=max_page_size)

    async def _find_with_tags(self, *conditions) -> List[Snippet]:
        """Snippets matching ``conditions``, newest first, tags attached."""
        stmt = (
            select(*SNIPPET_COLUMNS, *TAG_COLUMNS)
            .select_from(WITH_CREATOR_AND_TAGS)
            .where(*conditions)
            .order_by(
                desc(snippets_table.c.created_at),
                snippets_table.c.id,
                tags_table.c.name,
            )
        )
        result = await self.session.execute(stmt)
        return rows_to_snippets_with_tags(row._mapping for row in result.fetchall())

    async def _fetch_tags_for_snippets(
        self, snippet_ids: Sequence[SnippetId]
    ) -> dict[SnippetId, List[Tag]]:
        """Fetch tags for multiple snippets in a single query.

        Args:
            snippet_ids: List of snippet IDs to fetch tags for

        Returns:
            Dictionary mapping snippet_id to list of tags
        """
        if not snippet_ids:
            return {}

        stmt = (
            select(snippet_tags_table.c.snippet_id, *tags_table.c)
            .join(tags_table, tags_table.c.id == snippet_tags_table.c.tag_id)
            .where(snippet_tags_table.c.snippet_id.in_(snippet_ids))
            .order_by(tags_table.c.name)
        )
        result = await self.session.execute(stmt)

        tags_by_snippet: dict[SnippetId, List[Tag]] = defaultdict(list)
        for row in result.fetchall():
            tags_by_snippet[row.snippet_id].append(row_to_tag(row._mapping))
        return tags_by_snippet

    async def get_by_id(self, snippet_id: SnippetId) -> Optional[Snippet]:
        snippets = await self._find_with_tags(snippets_table.c.id == snippet_id)
        return snippets[0] if snippets else None

    async def get_paged(self, snippet_filter: SnippetFilter) -> Page[Snippet]:
        with logfire.span(
            "snippet_repository.get_paged",
            page=snippet_filter.page,
            page_size=snippet_filter.page_size,
        ):
            builder = FilterClauseBuilder()
            builder.search(
                [
                    snippets_table.c.title,
                    snippets_table.c.description,
                    snippets_table.c.code,
                ],
                snippet_filter.search,
            )
            builder.equals(snippets_table.c.language, snippet_filter.language)
            builder.equals(snippets_table.c.created_by, snippet_filter.created_by)
            builder.equals(snippets_table.c.is_public, snippet_filter.is_public)
            if snippet_filter.tag:
                tag_name = builder.bind("tag", snippet_filter.tag, tags_table.c.name.type)
                builder.add(
                    exists()
                    .where(snippet_tags_table.c.snippet_id == snippets_table.c.id)
                    .where(tags_table.c.id == snippet_tags_table.c.tag_id)
                    .where(tags_table.c.name == tag_name)
                )

            page = await self.pages.fetch_page(
                source=WITH_CREATOR,
                columns=SNIPPET_COLUMNS,
                key=snippets_table.c.id,
                where=builder.clause,
                order_by=[desc(snippets_table.c.created_at)],
                page=snippet_filter.page,
                page_size=snippet_filter.page_size,
                mapper=lambda rows: [row_to_snippet(row) for row in rows],
            )

            tags = await self._fetch_tags_for_snippets([s.id for s in page.items])
            items = [s.model_copy(update={"tags": tags.get(s.id, [])}) for s in page.items]
            return page.model_copy(update={"items": items})

    async def get_by_user_id(self, user_id: UserId) -> List[Snippet]:
        return await self._find_with_tags(snippets_table.c.created_by == user_id)

    async def get_by_tag(self, tag_name: str) -> List[Snippet]:
        tagged = (
            exists()
            .where(snippet_tags_table.c.snippet_id == snippets_table.c.id)
            .where(tags_table.c.id == snippet_tags_table.c.tag_id)
            .where(tags_table.c.name == tag_name)
            .correlate(snippets_table)
        )
        return await self._find_with_tags(tagged)

    async def create(self, snippet: Snippet) -> Snippet:
        with logfire.span("snippet_repository.create", snippet_id=str(snippet.id)):
            await self.session.execute(
                snippets_table.insert().values(**snippet_to_dict(snippet))
            )
            if snippet.tags:
                await self.session.execute(
                    insert(snippet_tags_table),
                    [{"snippet_id": snippet.id, "tag_id": tag.id} for tag in snippet.tags],
                )
            await self.session.flush()
            logfire.info(
                "Snippet created",
                snippet_id=str(snippet.id),
                language=snippet.language,
                tag_count=len(snippet.tags),
            )
            return await self.get_by_id(snippet.id) or snippet

    async def update(self, snippet: Snippet) -> Snippet:
        with logfire.span("snippet_repository.update", snippet_id=str(snippet.id)):
            stmt = (
                update(snippets_table)
                .where(snippets_table.c.id == snippet.id)
                .values(
                    title=snippet.title,
                    description=snippet.description,
                    code=snippet.code,
                    language=snippet.language,
                    is_public=snippet.is_public,
                    updated_at=utc_now(),
                )
            )
            result = await self.session.execute(stmt)
            if result.rowcount == 0:
                return snippet
            await self.session.flush()
            return await self.get_by_id(snippet.id) or snippet

    async def delete(self, snippet_id: SnippetId) -> bool:
        with logfire.span("snippet_repository.delete", snippet_id=str(snippet_id)):
            result = await self.session.execute(
                delete(snippets_table).where(snippets_table.c.id == snippet_id)
            )
            await self.session.flush()
            deleted = result.rowcount > 0
            if deleted:
                logfire.info("Snippet deleted", snippet_id=str(snippet_id))
            return deleted

    async def add_tag(self, snippet_id: SnippetId, tag_id: TagId) -> bool:
        linked = await self.session.execute(
            select(snippet_tags_table.c.tag_id).where(
                snippet_tags_table.c.snippet_id == snippet_id,
                snippet_tags_table.c.tag_id == tag_id,
            )
        )
        if linked.first() is not None:
            return False
        await self.session.execute(
            snippet_tags_table.insert().values(snippet_id=snippet_id, tag_id=tag_id)
        )
        await self.session.flush()
        return True

    async def remove_tag(self, snippet_id: SnippetId, tag_id: TagId) -> bool:
        result = await self.session.execute(
            delete(snippet_tags_table).where(
                snippet_tags_table.c.snippet_id == snippet_id,
                snippet_tags_table.c.tag_id == tag_id,
            )
        )
        await self.session.flush()
        return result.rowcount > 0

    async def replace_tags(
        self, snippet_id: SnippetId, tag_ids: Sequence[TagId]
    ) -> None:
        # Duplicates would violate the junction's primary key
        unique_ids = list(dict.fromkeys(tag_ids))
        with logfire.span(
            "snippet_repository.replace_tags",
            snippet_id=str(snippet_id),
            tag_count=len(unique_ids),
        ):
            try:
                async with self.session.begin_nested():
                    await self.session.execute(
                        delete(snippet_tags_table).where(
                            snippet_tags_table.c.snippet_id == snippet_id
                        )
                    )
                    if unique_ids:
                        await self.session.execute(
                            insert(snippet_tags_table),
                            [
                                {"snippet_id": snippet_id, "tag_id": tag_id}
                                for tag_id in unique_ids
                            ],
                        )
            except SQLAlchemyError as e:
                logfire.error(
                    "Snippet tag replacement rolled back",
                    snippet_id=str(snippet_id),
                    error=str(e),
                    error_type=type(e).__name__,
                )
                raise TransactionFailure("replace_tags", str(e)) from e

    async def increment_view_count(self, snippet_id: SnippetId) -> bool:
        """Atomically increment view count by 1."""
        result = await self.session.execute(
            update(snippets_table)
            .where(snippets_table.c.id == snippet_id)
            .values(view_count=snippets_table.c.view_count + 1)
        )
        await self.session.flush()
        return result.rowcount > 0

    async def increment_copy_count(self, snippet_id: SnippetId) -> bool:
        """Atomically increment copy count by 1."""
        result = await self.session.execute(
            update(snippets_table)
            .where(snippets_table.c.id == snippet_id)
            .values(copy_count=snippets_table.c.copy_count + 1)
        )
        await self.session.flush()
        return result.rowcount > 0
