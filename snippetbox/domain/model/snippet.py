"""Code snippet entity."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import Field

from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.model.tag import Tag
from snippetbox.domain.value import SnippetId, UserId


class Snippet(DomainModel):
    """Code snippet.

    ``creator_name`` is denormalized from the users table on read and is
    never written back. ``tags`` is populated by queries that join the
    snippet's tag associations.
    """

    id: SnippetId = Field(default_factory=lambda: SnippetId(uuid4()))
    title: str = Field(min_length=1, max_length=200)
    description: str = Field(default="", max_length=1000)
    code: str
    language: str = Field(min_length=1, max_length=50)
    created_by: UserId
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    is_public: bool = True
    view_count: int = Field(default=0, ge=0)
    copy_count: int = Field(default=0, ge=0)
    creator_name: Optional[str] = None
    tags: list[Tag] = Field(default_factory=list)
