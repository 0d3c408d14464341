"""Integration tests for ClipboardHistoryRepository."""

from datetime import timedelta
from uuid import uuid4

import pytest

from snippetbox.domain.model import ClipboardEntry
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.repository import (
    ClipboardHistoryRepository,
    SnippetRepository,
    UserRepository,
)
from tests.factories import make_snippet, make_user, minutes_ago
from tests.harness import create_env_fixture

sqlite_env = create_env_fixture()


async def seed(env):
    users = await env.get(UserRepository)
    snippets = await env.get(SnippetRepository)
    user = await users.create(make_user())
    first = await snippets.create(make_snippet(user.id, title="First"))
    second = await snippets.create(make_snippet(user.id, title="Second", language="go"))
    return user, first, second


class TestClipboardHistory:
    @pytest.mark.asyncio
    async def test_get_by_id(self, sqlite_env):
        # Arrange
        user, first, _ = await seed(sqlite_env)
        repo = await sqlite_env.get(ClipboardHistoryRepository)
        entry = await repo.create(ClipboardEntry(user_id=user.id, snippet_id=first.id))

        # Act
        stored = await repo.get_by_id(entry.id)

        # Assert
        assert stored.id == entry.id
        assert stored.snippet_title == "First"
        assert stored.snippet_language == first.language
        assert await repo.get_by_id(uuid4()) is None

    @pytest.mark.asyncio
    async def test_history_is_newest_first_with_snippet_details(self, sqlite_env):
        # Arrange
        user, first, second = await seed(sqlite_env)
        repo = await sqlite_env.get(ClipboardHistoryRepository)
        await repo.create(
            ClipboardEntry(user_id=user.id, snippet_id=first.id, copied_at=minutes_ago(5))
        )
        await repo.create(
            ClipboardEntry(user_id=user.id, snippet_id=second.id, copied_at=minutes_ago(1))
        )

        # Act
        entries = await repo.get_by_user_id(user.id)

        # Assert
        assert [e.snippet_title for e in entries] == ["Second", "First"]
        assert entries[0].snippet_language == "go"

    @pytest.mark.asyncio
    async def test_limit(self, sqlite_env):
        user, first, _ = await seed(sqlite_env)
        repo = await sqlite_env.get(ClipboardHistoryRepository)
        for i in range(4):
            await repo.create(
                ClipboardEntry(
                    user_id=user.id, snippet_id=first.id, copied_at=minutes_ago(i)
                )
            )

        assert len(await repo.get_by_user_id(user.id, limit=2)) == 2
        assert await repo.get_user_history_count(user.id) == 4

    @pytest.mark.asyncio
    async def test_delete_oldest_records(self, sqlite_env):
        """Trimming removes the oldest entries and keeps the newest."""
        # Arrange
        user, first, second = await seed(sqlite_env)
        repo = await sqlite_env.get(ClipboardHistoryRepository)
        for i in range(4):
            await repo.create(
                ClipboardEntry(
                    user_id=user.id,
                    snippet_id=first.id if i % 2 else second.id,
                    copied_at=minutes_ago(10 - i),
                )
            )

        # Act
        removed = await repo.delete_oldest_user_records(user.id, 3)

        # Assert
        assert removed == 3
        [survivor] = await repo.get_by_user_id(user.id)
        assert survivor.snippet_id == first.id
        assert await repo.delete_oldest_user_records(user.id, 0) == 0

    @pytest.mark.asyncio
    async def test_copy_counts(self, sqlite_env):
        # Arrange
        user, first, second = await seed(sqlite_env)
        repo = await sqlite_env.get(ClipboardHistoryRepository)
        for _ in range(2):
            await repo.create(ClipboardEntry(user_id=user.id, snippet_id=first.id))
        never_copied = uuid4()

        # Act
        counts = await repo.get_copy_counts_batch([first.id, second.id, never_copied])

        # Assert
        assert counts == {first.id: 2, second.id: 0, never_copied: 0}
        assert await repo.get_copy_count(first.id) == 2
        assert await repo.get_copy_counts_batch([]) == {}

    @pytest.mark.asyncio
    async def test_delete_expired_and_by_user(self, sqlite_env):
        # Arrange
        user, first, _ = await seed(sqlite_env)
        repo = await sqlite_env.get(ClipboardHistoryRepository)
        await repo.create(
            ClipboardEntry(
                user_id=user.id,
                snippet_id=first.id,
                copied_at=utc_now() - timedelta(days=60),
            )
        )
        await repo.create(ClipboardEntry(user_id=user.id, snippet_id=first.id))

        # Act
        expired = await repo.delete_expired(utc_now() - timedelta(days=30))
        remaining = await repo.delete_by_user_id(user.id)

        # Assert
        assert (expired, remaining) == (1, 1)
        assert await repo.get_user_history_count(user.id) == 0
