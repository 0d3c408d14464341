"""Comment like repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Sequence, Tuple

from snippetbox.domain.model import CommentLike, Page
from snippetbox.domain.value import CommentId, CommentLikeId, UserId


class CommentLikeRepository(ABC):
    """Repository for CommentLike entity.

    Writes keep ``comments.like_count`` equal to the number of like rows of
    each comment.
    """

    @abstractmethod
    async def get_by_id(self, like_id: CommentLikeId) -> Optional[CommentLike]:
        pass

    @abstractmethod
    async def get_by_user_and_comment(
        self, user_id: UserId, comment_id: CommentId
    ) -> Optional[CommentLike]:
        pass

    @abstractmethod
    async def get_by_comment_id(self, comment_id: CommentId) -> List[CommentLike]:
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: UserId) -> List[CommentLike]:
        pass

    @abstractmethod
    async def get_paged_by_comment_id(
        self, comment_id: CommentId, page: int = 1, page_size: int = 20
    ) -> Page[CommentLike]:
        pass

    @abstractmethod
    async def get_paged_by_user_id(
        self, user_id: UserId, page: int = 1, page_size: int = 20
    ) -> Page[CommentLike]:
        pass

    @abstractmethod
    async def is_liked_by_user(self, comment_id: CommentId, user_id: UserId) -> bool:
        pass

    @abstractmethod
    async def count_by_comment_id(self, comment_id: CommentId) -> int:
        pass

    @abstractmethod
    async def count_by_user_id(self, user_id: UserId) -> int:
        pass

    @abstractmethod
    async def get_like_counts_by_comment_ids(
        self, comment_ids: Sequence[CommentId]
    ) -> Dict[CommentId, int]:
        """Like count for each requested comment, zero when unliked."""
        pass

    @abstractmethod
    async def get_like_status_by_comment_ids(
        self, user_id: UserId, comment_ids: Sequence[CommentId]
    ) -> Dict[CommentId, bool]:
        """Whether the user liked each requested comment."""
        pass

    @abstractmethod
    async def get_top_liked_comments(self, limit: int) -> List[Tuple[CommentId, int]]:
        pass

    @abstractmethod
    async def create(self, like: CommentLike) -> CommentLike:
        """Record a like.

        If the user already likes the comment the existing like is returned
        and nothing is written.
        """
        pass

    @abstractmethod
    async def delete(self, like_id: CommentLikeId) -> bool:
        pass

    @abstractmethod
    async def delete_by_user_and_comment(
        self, user_id: UserId, comment_id: CommentId
    ) -> bool:
        pass

    @abstractmethod
    async def bulk_insert(self, likes: Sequence[CommentLike]) -> int:
        """Insert likes, skipping pairs that already exist."""
        pass

    @abstractmethod
    async def delete_all_by_comment_id(self, comment_id: CommentId) -> int:
        pass

    @abstractmethod
    async def bulk_delete_by_comment_ids(self, comment_ids: Sequence[CommentId]) -> int:
        pass

    @abstractmethod
    async def clean_orphaned_likes(self) -> int:
        """Delete likes whose comment no longer exists."""
        pass

    @abstractmethod
    async def clean_old_likes(self, older_than: datetime) -> int:
        pass

    @abstractmethod
    async def validate_like_integrity(self, comment_id: CommentId) -> bool:
        """Whether the comment's stored like count matches its like rows."""
        pass
