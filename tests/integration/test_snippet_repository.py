"""Integration tests for SnippetRepository."""

from uuid import uuid4

import pytest

from snippetbox.domain.model import SnippetFilter
from snippetbox.domain.repository import (
    SnippetRepository,
    TagRepository,
    UserRepository,
)
from snippetbox.persistence.error import PaginationError, TransactionFailure
from tests.factories import make_snippet, make_tag, make_user, minutes_ago
from tests.harness import create_env_fixture

sqlite_env = create_env_fixture()


async def seed_user(env, **overrides):
    users = await env.get(UserRepository)
    return await users.create(make_user(**overrides))


class TestSnippetRepository:
    @pytest.mark.asyncio
    async def test_create_with_tags(self, sqlite_env):
        """Created snippets come back with their tags and creator name."""
        # Arrange
        user = await seed_user(sqlite_env, username="grace")
        tags = await sqlite_env.get(TagRepository)
        repo = await sqlite_env.get(SnippetRepository)
        python = await tags.create(make_tag(user.id, name="python"))
        algo = await tags.create(make_tag(user.id, name="algorithms"))

        # Act
        snippet = await repo.create(make_snippet(user.id, tags=[python, algo]))

        # Assert
        assert snippet.creator_name == "grace"
        assert [t.name for t in snippet.tags] == ["algorithms", "python"]
        assert snippet.created_at.tzinfo is not None

    @pytest.mark.asyncio
    async def test_get_by_id_missing_returns_none(self, sqlite_env):
        repo = await sqlite_env.get(SnippetRepository)

        assert await repo.get_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_update_and_delete(self, sqlite_env):
        # Arrange
        user = await seed_user(sqlite_env)
        repo = await sqlite_env.get(SnippetRepository)
        snippet = await repo.create(make_snippet(user.id))

        # Act
        updated = await repo.update(
            snippet.model_copy(update={"title": "Renamed", "is_public": False})
        )
        deleted = await repo.delete(snippet.id)

        # Assert
        assert updated.title == "Renamed"
        assert updated.is_public is False
        assert deleted is True
        assert await repo.get_by_id(snippet.id) is None
        assert await repo.delete(snippet.id) is False

    @pytest.mark.asyncio
    async def test_update_of_missing_snippet_is_a_no_op(self, sqlite_env):
        user = await seed_user(sqlite_env)
        repo = await sqlite_env.get(SnippetRepository)
        ghost = make_snippet(user.id, title="Ghost")

        assert await repo.update(ghost) == ghost
        assert await repo.get_by_id(ghost.id) is None

    @pytest.mark.asyncio
    async def test_counters_increment_atomically(self, sqlite_env):
        user = await seed_user(sqlite_env)
        repo = await sqlite_env.get(SnippetRepository)
        snippet = await repo.create(make_snippet(user.id))

        for _ in range(3):
            await repo.increment_view_count(snippet.id)
        await repo.increment_copy_count(snippet.id)

        stored = await repo.get_by_id(snippet.id)
        assert (stored.view_count, stored.copy_count) == (3, 1)
        assert await repo.increment_view_count(uuid4()) is False

    @pytest.mark.asyncio
    async def test_add_and_remove_tag(self, sqlite_env):
        # Arrange
        user = await seed_user(sqlite_env)
        tags = await sqlite_env.get(TagRepository)
        repo = await sqlite_env.get(SnippetRepository)
        tag = await tags.create(make_tag(user.id))
        snippet = await repo.create(make_snippet(user.id))

        # Act / Assert
        assert await repo.add_tag(snippet.id, tag.id) is True
        assert await repo.add_tag(snippet.id, tag.id) is False
        assert [t.id for t in (await repo.get_by_id(snippet.id)).tags] == [tag.id]
        assert await repo.remove_tag(snippet.id, tag.id) is True
        assert await repo.remove_tag(snippet.id, tag.id) is False


class TestReplaceTags:
    @pytest.mark.asyncio
    async def test_replaces_whole_set(self, sqlite_env):
        # Arrange
        user = await seed_user(sqlite_env)
        tags = await sqlite_env.get(TagRepository)
        repo = await sqlite_env.get(SnippetRepository)
        old = await tags.create(make_tag(user.id, name="old"))
        new_a = await tags.create(make_tag(user.id, name="new-a"))
        new_b = await tags.create(make_tag(user.id, name="new-b"))
        snippet = await repo.create(make_snippet(user.id, tags=[old]))

        # Act
        await repo.replace_tags(snippet.id, [new_a.id, new_b.id, new_a.id])

        # Assert
        stored = await repo.get_by_id(snippet.id)
        assert [t.name for t in stored.tags] == ["new-a", "new-b"]

    @pytest.mark.asyncio
    async def test_empty_set_clears_tags(self, sqlite_env):
        user = await seed_user(sqlite_env)
        tags = await sqlite_env.get(TagRepository)
        repo = await sqlite_env.get(SnippetRepository)
        tag = await tags.create(make_tag(user.id))
        snippet = await repo.create(make_snippet(user.id, tags=[tag]))

        await repo.replace_tags(snippet.id, [])

        assert (await repo.get_by_id(snippet.id)).tags == []

    @pytest.mark.asyncio
    async def test_failed_insert_keeps_previous_tags(self, sqlite_env):
        """An unknown tag id rolls the whole replacement back."""
        # Arrange
        user = await seed_user(sqlite_env)
        tags = await sqlite_env.get(TagRepository)
        repo = await sqlite_env.get(SnippetRepository)
        kept = await tags.create(make_tag(user.id, name="kept"))
        valid = await tags.create(make_tag(user.id, name="valid"))
        snippet = await repo.create(make_snippet(user.id, tags=[kept]))

        # Act
        with pytest.raises(TransactionFailure) as exc_info:
            await repo.replace_tags(snippet.id, [valid.id, uuid4()])

        # Assert
        assert exc_info.value.operation == "replace_tags"
        assert exc_info.value.__cause__ is not None
        stored = await repo.get_by_id(snippet.id)
        assert [t.name for t in stored.tags] == ["kept"]


class TestSnippetPaging:
    @pytest.mark.asyncio
    async def test_filters_by_tag_language_and_search(self, sqlite_env):
        # Arrange
        user = await seed_user(sqlite_env)
        tags = await sqlite_env.get(TagRepository)
        repo = await sqlite_env.get(SnippetRepository)
        web = await tags.create(make_tag(user.id, name="web"))
        await repo.create(
            make_snippet(user.id, title="Fetch JSON", language="javascript", tags=[web])
        )
        await repo.create(
            make_snippet(user.id, title="Flask route", language="python", tags=[web])
        )
        await repo.create(make_snippet(user.id, title="Heap sort", language="python"))

        # Act
        by_tag = await repo.get_paged(SnippetFilter(tag="web"))
        python_web = await repo.get_paged(SnippetFilter(tag="web", language="python"))
        searched = await repo.get_paged(SnippetFilter(search="SORT"))

        # Assert
        assert by_tag.total_count == 2
        assert all([t.name for t in s.tags] == ["web"] for s in by_tag.items)
        assert [s.title for s in python_web.items] == ["Flask route"]
        assert [s.title for s in searched.items] == ["Heap sort"]

    @pytest.mark.asyncio
    async def test_newest_first_and_page_bounds(self, sqlite_env):
        # Arrange
        user = await seed_user(sqlite_env)
        repo = await sqlite_env.get(SnippetRepository)
        for i in range(5):
            await repo.create(
                make_snippet(user.id, title=f"snippet {i}", created_at=minutes_ago(i))
            )

        # Act
        first = await repo.get_paged(SnippetFilter(page=1, page_size=2))
        last = await repo.get_paged(SnippetFilter(page=3, page_size=2))
        beyond = await repo.get_paged(SnippetFilter(page=9, page_size=2))

        # Assert
        assert [s.title for s in first.items] == ["snippet 0", "snippet 1"]
        assert [s.title for s in last.items] == ["snippet 4"]
        assert beyond.items == []
        assert beyond.total_count == first.total_count == 5

    @pytest.mark.asyncio
    async def test_unfiltered_returns_everything(self, sqlite_env):
        user = await seed_user(sqlite_env)
        repo = await sqlite_env.get(SnippetRepository)
        await repo.create(make_snippet(user.id, is_public=False))
        await repo.create(make_snippet(user.id))

        page = await repo.get_paged(SnippetFilter())
        public = await repo.get_paged(SnippetFilter(is_public=True))

        assert page.total_count == 2
        assert public.total_count == 1

    @pytest.mark.asyncio
    async def test_page_size_above_maximum_is_rejected(self, sqlite_env):
        repo = await sqlite_env.get(SnippetRepository)

        with pytest.raises(PaginationError):
            await repo.get_paged(SnippetFilter(page_size=500))

    @pytest.mark.asyncio
    async def test_by_user_and_by_tag(self, sqlite_env):
        # Arrange
        ada = await seed_user(sqlite_env)
        bob = await seed_user(sqlite_env)
        tags = await sqlite_env.get(TagRepository)
        repo = await sqlite_env.get(SnippetRepository)
        rust = await tags.create(make_tag(ada.id, name="rust"))
        misc = await tags.create(make_tag(ada.id, name="misc"))
        tagged = await repo.create(make_snippet(ada.id, tags=[rust, misc]))
        await repo.create(make_snippet(bob.id))

        # Act
        by_ada = await repo.get_by_user_id(ada.id)
        by_rust = await repo.get_by_tag("rust")

        # Assert
        assert [s.id for s in by_ada] == [tagged.id]
        assert [s.id for s in by_rust] == [tagged.id]
        assert {t.name for t in by_rust[0].tags} == {"rust", "misc"}
