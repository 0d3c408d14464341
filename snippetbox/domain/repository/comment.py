"""Comment repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from snippetbox.domain.model import (
    Comment,
    CommentFilter,
    CommentStats,
    Page,
    UserCommentStats,
)
from snippetbox.domain.value import CommentId, CommentStatus, SnippetId, UserId


class CommentRepository(ABC):
    """Repository for Comment entity.

    Defines the contract for comment persistence operations. Soft-deleted
    comments are excluded from every read unless stated otherwise.

    ``like_count`` and ``reply_count`` are maintained symmetrically:
    creating a reply increments its parent's ``reply_count`` and removing a
    live reply (soft or hard) decrements it, floored at zero.
    """

    @abstractmethod
    async def get_by_id(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment by ID.

        Args:
            comment_id: The comment's unique identifier

        Returns:
            The comment if found and not soft-deleted, None otherwise
        """
        pass

    @abstractmethod
    async def get_by_id_with_replies(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment with its whole reply tree attached.

        Replies at every level are ordered oldest first.

        Args:
            comment_id: Root of the requested tree

        Returns:
            The root comment with ``replies`` populated, None if not found
        """
        pass

    @abstractmethod
    async def get_by_id_with_likes(self, comment_id: CommentId) -> Optional[Comment]:
        """Find a comment with its likes attached."""
        pass

    @abstractmethod
    async def get_parent_chain(self, comment_id: CommentId) -> List[Comment]:
        """Ancestors of a comment ordered root first, ending with the comment.

        Soft-deleted ancestors are included so the chain stays contiguous.
        The chain stops at the last resolvable ancestor when a parent row
        is missing.
        """
        pass

    @abstractmethod
    async def get_comment_tree(self, snippet_id: SnippetId) -> List[Comment]:
        """Every live thread on a snippet, roots oldest first.

        Soft-deleting a comment hides its whole branch, live replies included.
        """
        pass

    @abstractmethod
    async def get_paged(self, comment_filter: CommentFilter) -> Page[Comment]:
        pass

    @abstractmethod
    async def get_root_comments_by_snippet_id(
        self, snippet_id: SnippetId
    ) -> List[Comment]:
        """Top-level comments of a snippet, newest first."""
        pass

    @abstractmethod
    async def get_replies_by_parent_id(self, parent_id: CommentId) -> List[Comment]:
        """Direct replies of a comment, oldest first."""
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: UserId) -> List[Comment]:
        pass

    @abstractmethod
    async def search(self, term: str, limit: Optional[int] = None) -> List[Comment]:
        pass

    @abstractmethod
    async def get_by_status(self, status: CommentStatus) -> List[Comment]:
        """Comments with the given status, soft-deleted rows included."""
        pass

    @abstractmethod
    async def get_by_date_range(
        self, start: datetime, end: datetime
    ) -> List[Comment]:
        pass

    @abstractmethod
    async def get_latest(self, snippet_id: SnippetId, count: int = 5) -> List[Comment]:
        """A snippet's newest live comments."""
        pass

    @abstractmethod
    async def get_most_liked(
        self, snippet_id: SnippetId, count: int = 5
    ) -> List[Comment]:
        """A snippet's live comments with the most likes, newest first on ties."""
        pass

    @abstractmethod
    async def count_by_snippet_id(self, snippet_id: SnippetId) -> int:
        pass

    @abstractmethod
    async def count_by_user_id(self, user_id: UserId) -> int:
        pass

    @abstractmethod
    async def get_stats_by_snippet_id(self, snippet_id: SnippetId) -> CommentStats:
        pass

    @abstractmethod
    async def get_stats_by_user_ids(
        self, user_ids: Sequence[UserId]
    ) -> Dict[UserId, UserCommentStats]:
        """Per-author figures over live comments.

        Every requested id is present; authors with no comments get zeros.
        """
        pass

    @abstractmethod
    async def can_user_edit(self, comment_id: CommentId, user_id: UserId) -> bool:
        pass

    @abstractmethod
    async def can_user_delete(self, comment_id: CommentId, user_id: UserId) -> bool:
        pass

    @abstractmethod
    async def create(self, comment: Comment) -> Comment:
        """Insert a comment.

        Depth and materialized path are computed from the parent's current
        row; the parent's ``reply_count`` is incremented.

        Raises:
            NotFoundError: If the parent comment does not exist
        """
        pass

    @abstractmethod
    async def update(self, comment: Comment) -> Comment:
        """Update content and status of a live comment.

        Returns the given comment unchanged if no live row matched.
        """
        pass

    @abstractmethod
    async def soft_delete(self, comment_id: CommentId) -> bool:
        pass

    @abstractmethod
    async def delete(self, comment_id: CommentId) -> bool:
        """Hard delete a comment and, by cascade, its replies."""
        pass

    @abstractmethod
    async def update_status(
        self, comment_ids: Sequence[CommentId], status: CommentStatus
    ) -> int:
        pass

    @abstractmethod
    async def increment_like_count(self, comment_id: CommentId) -> bool:
        pass

    @abstractmethod
    async def decrement_like_count(self, comment_id: CommentId) -> bool:
        pass

    @abstractmethod
    async def increment_reply_count(self, comment_id: CommentId) -> bool:
        pass

    @abstractmethod
    async def decrement_reply_count(self, comment_id: CommentId) -> bool:
        pass

    @abstractmethod
    async def bulk_insert(self, comments: Sequence[Comment]) -> int:
        pass

    @abstractmethod
    async def bulk_soft_delete(self, comment_ids: Sequence[CommentId]) -> int:
        pass

    @abstractmethod
    async def bulk_update(self, comments: Sequence[Comment]) -> int:
        """Write content, status and both counters of each live comment.

        Returns:
            Number of comments updated
        """
        pass
