"""Snippet repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional, Sequence

from snippetbox.domain.model import Page, Snippet, SnippetFilter
from snippetbox.domain.value import SnippetId, TagId, UserId


class SnippetRepository(ABC):
    """Repository for Snippet entity.

    Snippets returned by this repository carry their tags.
    """

    @abstractmethod
    async def get_by_id(self, snippet_id: SnippetId) -> Optional[Snippet]:
        pass

    @abstractmethod
    async def get_paged(self, snippet_filter: SnippetFilter) -> Page[Snippet]:
        """Find snippets matching a filter, newest first.

        Args:
            snippet_filter: Search term, language, tag name, creator and
                visibility to match, plus the page window

        Returns:
            One page of snippets and the total number of matches
        """
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: UserId) -> List[Snippet]:
        pass

    @abstractmethod
    async def get_by_tag(self, tag_name: str) -> List[Snippet]:
        pass

    @abstractmethod
    async def create(self, snippet: Snippet) -> Snippet:
        """Insert a snippet together with the tags it carries."""
        pass

    @abstractmethod
    async def update(self, snippet: Snippet) -> Snippet:
        pass

    @abstractmethod
    async def delete(self, snippet_id: SnippetId) -> bool:
        pass

    @abstractmethod
    async def add_tag(self, snippet_id: SnippetId, tag_id: TagId) -> bool:
        pass

    @abstractmethod
    async def remove_tag(self, snippet_id: SnippetId, tag_id: TagId) -> bool:
        pass

    @abstractmethod
    async def replace_tags(
        self, snippet_id: SnippetId, tag_ids: Sequence[TagId]
    ) -> None:
        """Replace a snippet's whole tag set atomically.

        Raises:
            TransactionFailure: If any statement fails; the previous tag set
                is left intact
        """
        pass

    @abstractmethod
    async def increment_view_count(self, snippet_id: SnippetId) -> bool:
        pass

    @abstractmethod
    async def increment_copy_count(self, snippet_id: SnippetId) -> bool:
        pass
