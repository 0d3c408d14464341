"""Snippet version repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from snippetbox.domain.model import Snippet, SnippetVersion
from snippetbox.domain.value import SnippetId, SnippetVersionId, UserId


class SnippetVersionRepository(ABC):
    """Repository for SnippetVersion entity.

    Versions are immutable; there is no update operation.
    """

    @abstractmethod
    async def get_by_id(self, version_id: SnippetVersionId) -> Optional[SnippetVersion]:
        pass

    @abstractmethod
    async def get_by_snippet_id(self, snippet_id: SnippetId) -> List[SnippetVersion]:
        """Versions of a snippet, highest version number first."""
        pass

    @abstractmethod
    async def get_latest(self, snippet_id: SnippetId) -> Optional[SnippetVersion]:
        pass

    @abstractmethod
    async def get_next_version_number(self, snippet_id: SnippetId) -> int:
        """Highest existing version number plus one, starting at 1."""
        pass

    @abstractmethod
    async def create(self, version: SnippetVersion) -> SnippetVersion:
        pass

    @abstractmethod
    async def create_snapshot(
        self,
        snippet: Snippet,
        created_by: UserId,
        change_description: Optional[str] = None,
    ) -> SnippetVersion:
        """Record the snippet's current content as its next version."""
        pass

    @abstractmethod
    async def delete_by_snippet_id(self, snippet_id: SnippetId) -> int:
        pass
