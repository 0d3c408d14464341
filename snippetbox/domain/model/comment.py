"""Comment entity.

Comments are threaded discussions on snippets with unlimited depth. Each
comment stores its depth and a materialized path (the ids of its
ancestors, root first) computed from the parent at creation time.
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import Field

from snippetbox.domain.model.comment_like import CommentLike
from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.value import CommentId, CommentStatus, SnippetId, UserId


class Comment(DomainModel):
    """Comment entity.

    Represents a comment on a snippet or a reply to another comment.

    Threading is managed through:
    - parent_id: Direct parent comment (None for top-level)
    - depth: Nesting level (0 for top-level, parent depth + 1 for replies)
    - path: Ancestor ids from the root down to the parent (empty for top-level)

    ``replies`` and ``likes`` are only populated by the queries that
    assemble them; everywhere else they are empty.
    """

    id: CommentId = Field(default_factory=lambda: CommentId(uuid4()))
    snippet_id: SnippetId
    user_id: UserId
    parent_id: Optional[CommentId] = None
    content: str = Field(min_length=1, max_length=5000)
    path: list[CommentId] = Field(default_factory=list)
    depth: int = Field(default=0, ge=0)
    like_count: int = Field(default=0, ge=0)
    reply_count: int = Field(default=0, ge=0)
    status: CommentStatus = CommentStatus.VISIBLE
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    deleted_at: Optional[datetime] = None
    user_name: Optional[str] = None  # Denormalized from users on read
    replies: list["Comment"] = Field(default_factory=list)
    likes: list[CommentLike] = Field(default_factory=list)

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def reply_path(self) -> list[CommentId]:
        """Materialized path that a direct reply to this comment carries."""
        return [*self.path, self.id]


class CommentStats(DomainModel):
    """Aggregate comment figures for one snippet."""

    total_comments: int = 0
    root_comments: int = 0
    reply_comments: int = 0
    total_likes: int = 0
    active_users: int = 0
    latest_comment_at: Optional[datetime] = None


class UserCommentStats(DomainModel):
    """Aggregate comment figures for one author."""

    user_id: UserId
    total_comments: int = 0
    root_comments: int = 0
    reply_comments: int = 0
    total_likes: int = 0
    snippet_count: int = 0
    latest_comment_at: Optional[datetime] = None
