"""Integration tests for CommentLikeRepository."""

from datetime import timedelta

import pytest

from snippetbox.domain.model import CommentLike
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.repository import (
    CommentLikeRepository,
    CommentRepository,
    SnippetRepository,
    UserRepository,
)
from tests.factories import make_comment, make_snippet, make_user
from tests.harness import create_env_fixture

sqlite_env = create_env_fixture()


async def seed(env, fans: int = 2):
    """A comment plus ``fans`` users who can like it."""
    users = await env.get(UserRepository)
    snippets = await env.get(SnippetRepository)
    comments = await env.get(CommentRepository)
    author = await users.create(make_user())
    snippet = await snippets.create(make_snippet(author.id))
    comment = await comments.create(make_comment(snippet.id, author.id))
    likers = [await users.create(make_user()) for _ in range(fans)]
    return snippet, comment, likers


class TestCommentLikeCreate:
    @pytest.mark.asyncio
    async def test_like_increments_comment_counter(self, sqlite_env):
        # Arrange
        _, comment, (fan, _) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)

        # Act
        like = await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))

        # Assert
        assert like.user_name == fan.username
        assert (await comments.get_by_id(comment.id)).like_count == 1
        assert await repo.is_liked_by_user(comment.id, fan.id)

    @pytest.mark.asyncio
    async def test_liking_twice_returns_existing_like(self, sqlite_env):
        """A second like by the same user is idempotent."""
        # Arrange
        _, comment, (fan, _) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        first = await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))

        # Act
        second = await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))

        # Assert
        assert second.id == first.id
        assert await repo.count_by_comment_id(comment.id) == 1
        assert (await comments.get_by_id(comment.id)).like_count == 1

    @pytest.mark.asyncio
    async def test_unlike_decrements(self, sqlite_env):
        # Arrange
        _, comment, (fan, other) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        like = await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))
        await repo.create(CommentLike(comment_id=comment.id, user_id=other.id))

        # Act
        by_id = await repo.delete(like.id)
        by_pair = await repo.delete_by_user_and_comment(other.id, comment.id)
        again = await repo.delete_by_user_and_comment(other.id, comment.id)

        # Assert
        assert (by_id, by_pair, again) == (True, True, False)
        assert (await comments.get_by_id(comment.id)).like_count == 0

    @pytest.mark.asyncio
    async def test_bulk_insert_skips_existing_and_duplicate_pairs(self, sqlite_env):
        # Arrange
        _, comment, (fan, other) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))

        # Act
        inserted = await repo.bulk_insert(
            [
                CommentLike(comment_id=comment.id, user_id=fan.id),
                CommentLike(comment_id=comment.id, user_id=other.id),
                CommentLike(comment_id=comment.id, user_id=other.id),
            ]
        )

        # Assert
        assert inserted == 1
        assert (await comments.get_by_id(comment.id)).like_count == 2
        assert await repo.validate_like_integrity(comment.id)


class TestCommentLikeQueries:
    @pytest.mark.asyncio
    async def test_counts_and_status_by_comment_ids(self, sqlite_env):
        # Arrange
        snippet, comment, (fan, other) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        quiet = await comments.create(make_comment(snippet.id, fan.id))
        await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))
        await repo.create(CommentLike(comment_id=comment.id, user_id=other.id))

        # Act
        counts = await repo.get_like_counts_by_comment_ids([comment.id, quiet.id])
        status = await repo.get_like_status_by_comment_ids(
            fan.id, [comment.id, quiet.id]
        )
        top = await repo.get_top_liked_comments(5)

        # Assert
        assert counts == {comment.id: 2, quiet.id: 0}
        assert status == {comment.id: True, quiet.id: False}
        assert top == [(comment.id, 2)]

    @pytest.mark.asyncio
    async def test_paged_likes(self, sqlite_env):
        _, comment, fans = await seed(sqlite_env, fans=3)
        repo = await sqlite_env.get(CommentLikeRepository)
        for fan in fans:
            await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))

        page = await repo.get_paged_by_comment_id(comment.id, page=2, page_size=2)

        assert page.total_count == 3
        assert len(page.items) == 1

    @pytest.mark.asyncio
    async def test_comment_with_likes(self, sqlite_env):
        # Arrange
        _, comment, (fan, other) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))
        await repo.create(CommentLike(comment_id=comment.id, user_id=other.id))

        # Act
        loaded = await comments.get_by_id_with_likes(comment.id)

        # Assert
        assert {like.user_id for like in loaded.likes} == {fan.id, other.id}
        assert loaded.like_count == 2


class TestCommentLikeMaintenance:
    @pytest.mark.asyncio
    async def test_orphaned_likes_are_swept(self, sqlite_env):
        """Likes survive a hard-deleted comment until orphan cleanup runs."""
        # Arrange
        _, comment, (fan, other) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))
        await repo.create(CommentLike(comment_id=comment.id, user_id=other.id))
        await comments.delete(comment.id)

        # Act
        removed = await repo.clean_orphaned_likes()

        # Assert
        assert removed == 2
        assert await repo.count_by_comment_id(comment.id) == 0
        assert await repo.validate_like_integrity(comment.id) is False

    @pytest.mark.asyncio
    async def test_old_likes_are_removed_and_counts_resynced(self, sqlite_env):
        # Arrange
        _, comment, (fan, other) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        await repo.create(
            CommentLike(
                comment_id=comment.id,
                user_id=fan.id,
                created_at=utc_now() - timedelta(days=400),
            )
        )
        await repo.create(CommentLike(comment_id=comment.id, user_id=other.id))

        # Act
        removed = await repo.clean_old_likes(utc_now() - timedelta(days=365))

        # Assert
        assert removed == 1
        assert (await comments.get_by_id(comment.id)).like_count == 1

    @pytest.mark.asyncio
    async def test_integrity_detects_drift(self, sqlite_env):
        # Arrange
        _, comment, (fan, _) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))

        # Act
        await comments.increment_like_count(comment.id)

        # Assert
        assert await repo.validate_like_integrity(comment.id) is False

    @pytest.mark.asyncio
    async def test_bulk_delete_resets_counts(self, sqlite_env):
        _, comment, (fan, other) = await seed(sqlite_env)
        repo = await sqlite_env.get(CommentLikeRepository)
        comments = await sqlite_env.get(CommentRepository)
        await repo.create(CommentLike(comment_id=comment.id, user_id=fan.id))
        await repo.create(CommentLike(comment_id=comment.id, user_id=other.id))

        removed = await repo.delete_all_by_comment_id(comment.id)

        assert removed == 2
        assert (await comments.get_by_id(comment.id)).like_count == 0
