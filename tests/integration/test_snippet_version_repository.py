"""Integration tests for SnippetVersionRepository."""

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import SnippetVersion
from snippetbox.domain.repository import (
    SnippetRepository,
    SnippetVersionRepository,
    UserRepository,
)
from snippetbox.persistence.error import ConstraintViolation
from tests.factories import make_snippet, make_user
from tests.harness import create_env_fixture

sqlite_env = create_env_fixture()


async def seed(env):
    users = await env.get(UserRepository)
    snippets = await env.get(SnippetRepository)
    author = await users.create(make_user())
    snippet = await snippets.create(make_snippet(author.id, code="v1"))
    return author, snippet


class TestSnippetVersionRepository:
    @pytest.mark.asyncio
    async def test_first_version_is_one(self, sqlite_env):
        _, snippet = await seed(sqlite_env)
        repo = await sqlite_env.get(SnippetVersionRepository)

        assert await repo.get_next_version_number(snippet.id) == 1
        assert await repo.get_latest(snippet.id) is None

    @pytest.mark.asyncio
    async def test_snapshots_number_consecutively(self, sqlite_env):
        """Each snapshot copies the content under the next number."""
        # Arrange
        author, snippet = await seed(sqlite_env)
        repo = await sqlite_env.get(SnippetVersionRepository)

        # Act
        first = await repo.create_snapshot(snippet, author.id, "initial")
        second = await repo.create_snapshot(
            snippet.model_copy(update={"code": "v2"}), author.id
        )

        # Assert
        assert (first.version_number, second.version_number) == (1, 2)
        assert second.code == "v2"
        assert (await repo.get_latest(snippet.id)).id == second.id
        history = await repo.get_by_snippet_id(snippet.id)
        assert [v.version_number for v in history] == [2, 1]
        assert history[1].change_description == "initial"

    @pytest.mark.asyncio
    async def test_duplicate_version_number_is_rejected(self, sqlite_env):
        """A snapshot that lost the numbering race fails on the constraint."""
        # Arrange
        author, snippet = await seed(sqlite_env)
        repo = await sqlite_env.get(SnippetVersionRepository)
        session = await sqlite_env.get(AsyncSession)
        await repo.create_snapshot(snippet, author.id)

        # Act / Assert
        with pytest.raises(ConstraintViolation):
            async with session.begin_nested():
                await repo.create(
                    SnippetVersion(
                        snippet_id=snippet.id,
                        version_number=1,
                        title=snippet.title,
                        code="racing",
                        language=snippet.language,
                        created_by=author.id,
                    )
                )
        assert await repo.get_next_version_number(snippet.id) == 2

    @pytest.mark.asyncio
    async def test_delete_by_snippet(self, sqlite_env):
        author, snippet = await seed(sqlite_env)
        repo = await sqlite_env.get(SnippetVersionRepository)
        for _ in range(3):
            await repo.create_snapshot(snippet, author.id)

        assert await repo.delete_by_snippet_id(snippet.id) == 3
        assert await repo.get_by_snippet_id(snippet.id) == []
        assert await repo.get_next_version_number(snippet.id) == 1
