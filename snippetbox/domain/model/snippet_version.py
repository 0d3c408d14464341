"""Snippet version entity."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import Field

from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.value import SnippetId, SnippetVersionId, UserId


class SnippetVersion(DomainModel):
    """Immutable snapshot of a snippet.

    Version numbers start at 1 and increase strictly per snippet.
    """

    id: SnippetVersionId = Field(default_factory=lambda: SnippetVersionId(uuid4()))
    snippet_id: SnippetId
    version_number: int = Field(ge=1)
    title: str
    description: str = ""
    code: str
    language: str
    created_by: UserId
    created_at: datetime = Field(default_factory=utc_now)
    change_description: Optional[str] = None
