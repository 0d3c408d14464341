"""Comment like entity."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import Field

from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.value import CommentId, CommentLikeId, UserId


class CommentLike(DomainModel):
    """One user's like of one comment.

    At most one like exists per (comment_id, user_id) pair.
    """

    id: CommentLikeId = Field(default_factory=lambda: CommentLikeId(uuid4()))
    comment_id: CommentId
    user_id: UserId
    created_at: datetime = Field(default_factory=utc_now)
    user_name: Optional[str] = None  # Denormalized from users on read
