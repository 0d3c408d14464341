"""Tag repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from snippetbox.domain.model import Tag, TagUsage
from snippetbox.domain.value import SnippetId, TagId


class TagRepository(ABC):
    """Repository for Tag entity."""

    @abstractmethod
    async def get_by_id(self, tag_id: TagId) -> Optional[Tag]:
        pass

    @abstractmethod
    async def get_by_name(self, name: str) -> Optional[Tag]:
        pass

    @abstractmethod
    async def get_all(self) -> List[Tag]:
        """All tags ordered by name."""
        pass

    @abstractmethod
    async def get_by_snippet_id(self, snippet_id: SnippetId) -> List[Tag]:
        pass

    @abstractmethod
    async def create(self, tag: Tag) -> Tag:
        pass

    @abstractmethod
    async def update(self, tag: Tag) -> Tag:
        pass

    @abstractmethod
    async def delete(self, tag_id: TagId) -> bool:
        pass

    @abstractmethod
    async def get_usage_statistics(self) -> List[TagUsage]:
        """Snippet count per tag, most used first.

        Tags attached to no snippet are included with a count of zero.
        """
        pass

    @abstractmethod
    async def search_by_prefix(self, prefix: str, limit: int = 10) -> List[Tag]:
        """Tags whose name starts with ``prefix``, case-insensitively, by name."""
        pass

    @abstractmethod
    async def get_most_used(self, limit: int = 20) -> List[TagUsage]:
        """Tags attached to at least one snippet, most used first."""
        pass

    @abstractmethod
    async def is_in_use(self, tag_id: TagId) -> bool:
        pass
