"""Tag entity."""

from datetime import datetime
from uuid import uuid4

from pydantic import Field

from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.value import DEFAULT_TAG_COLOR, TagColor, TagId, UserId


class Tag(DomainModel):
    """Tag for categorizing snippets."""

    id: TagId = Field(default_factory=lambda: TagId(uuid4()))
    name: str = Field(min_length=1, max_length=50)
    color: TagColor = DEFAULT_TAG_COLOR
    created_by: UserId
    created_at: datetime = Field(default_factory=utc_now)


class TagUsage(DomainModel):
    """Number of snippets carrying a tag."""

    tag: Tag
    snippet_count: int = Field(ge=0)
