"""Clipboard history entity."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import Field

from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.value import ClipboardEntryId, SnippetId, UserId


class ClipboardEntry(DomainModel):
    """Record of a user copying a snippet."""

    id: ClipboardEntryId = Field(default_factory=lambda: ClipboardEntryId(uuid4()))
    user_id: UserId
    snippet_id: SnippetId
    copied_at: datetime = Field(default_factory=utc_now)
    snippet_title: Optional[str] = None
    snippet_language: Optional[str] = None
