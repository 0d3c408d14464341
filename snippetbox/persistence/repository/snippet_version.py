"""SQL implementation of SnippetVersion repository."""

from typing import List, Optional

import logfire
from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import Snippet, SnippetVersion
from snippetbox.domain.repository import SnippetVersionRepository
from snippetbox.domain.value import SnippetId, SnippetVersionId, UserId
from snippetbox.persistence.decoder import decode_int
from snippetbox.persistence.mappers import (
    row_to_snippet_version,
    snippet_version_to_dict,
)
from snippetbox.persistence.tables import snippet_versions_table


class SqlSnippetVersionRepository(SnippetVersionRepository):
    """SQL implementation of SnippetVersionRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get_by_id(self, version_id: SnippetVersionId) -> Optional[SnippetVersion]:
        stmt = select(snippet_versions_table).where(
            snippet_versions_table.c.id == version_id
        )
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_snippet_version(row._mapping) if row else None

    async def get_by_snippet_id(self, snippet_id: SnippetId) -> List[SnippetVersion]:
        stmt = (
            select(snippet_versions_table)
            .where(snippet_versions_table.c.snippet_id == snippet_id)
            .order_by(desc(snippet_versions_table.c.version_number))
        )
        result = await self.session.execute(stmt)
        return [row_to_snippet_version(row._mapping) for row in result.fetchall()]

    async def get_latest(self, snippet_id: SnippetId) -> Optional[SnippetVersion]:
        stmt = (
            select(snippet_versions_table)
            .where(snippet_versions_table.c.snippet_id == snippet_id)
            .order_by(desc(snippet_versions_table.c.version_number))
            .limit(1)
        )
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_snippet_version(row._mapping) if row else None

    async def get_next_version_number(self, snippet_id: SnippetId) -> int:
        stmt = select(
            func.coalesce(func.max(snippet_versions_table.c.version_number), 0) + 1
        ).where(snippet_versions_table.c.snippet_id == snippet_id)
        result = await self.session.execute(stmt)
        return decode_int(result.scalar_one())

    async def create(self, version: SnippetVersion) -> SnippetVersion:
        with logfire.span(
            "snippet_version_repository.create",
            snippet_id=str(version.snippet_id),
            version_number=version.version_number,
        ):
            await self.session.execute(
                snippet_versions_table.insert().values(**snippet_version_to_dict(version))
            )
            await self.session.flush()
            return version

    async def create_snapshot(
        self,
        snippet: Snippet,
        created_by: UserId,
        change_description: Optional[str] = None,
    ) -> SnippetVersion:
        # Two concurrent snapshots of one snippet race for the same number;
        # the unique (snippet_id, version_number) constraint rejects the loser.
        version = SnippetVersion(
            snippet_id=snippet.id,
            version_number=await self.get_next_version_number(snippet.id),
            title=snippet.title,
            description=snippet.description,
            code=snippet.code,
            language=snippet.language,
            created_by=created_by,
            change_description=change_description,
        )
        return await self.create(version)

    async def delete_by_snippet_id(self, snippet_id: SnippetId) -> int:
        result = await self.session.execute(
            delete(snippet_versions_table).where(
                snippet_versions_table.c.snippet_id == snippet_id
            )
        )
        await self.session.flush()
        return result.rowcount
