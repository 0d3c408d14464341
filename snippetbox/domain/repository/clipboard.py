"""Clipboard history repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from snippetbox.domain.model import ClipboardEntry
from snippetbox.domain.value import ClipboardEntryId, SnippetId, UserId


class ClipboardHistoryRepository(ABC):
    """Repository for ClipboardEntry entity."""

    @abstractmethod
    async def get_by_id(self, entry_id: ClipboardEntryId) -> Optional[ClipboardEntry]:
        pass

    @abstractmethod
    async def get_by_user_id(
        self, user_id: UserId, limit: Optional[int] = None
    ) -> List[ClipboardEntry]:
        """A user's most recent copies, newest first.

        Args:
            user_id: The user
            limit: Maximum entries; defaults to the configured history limit
        """
        pass

    @abstractmethod
    async def create(self, entry: ClipboardEntry) -> ClipboardEntry:
        pass

    @abstractmethod
    async def delete_by_user_id(self, user_id: UserId) -> int:
        pass

    @abstractmethod
    async def delete_expired(self, cutoff: datetime) -> int:
        """Delete entries copied before ``cutoff``."""
        pass

    @abstractmethod
    async def get_copy_count(self, snippet_id: SnippetId) -> int:
        pass

    @abstractmethod
    async def get_user_history_count(self, user_id: UserId) -> int:
        pass

    @abstractmethod
    async def delete_oldest_user_records(self, user_id: UserId, count: int) -> int:
        pass

    @abstractmethod
    async def get_copy_counts_batch(
        self, snippet_ids: Sequence[SnippetId]
    ) -> Dict[SnippetId, int]:
        """Copy count for each requested snippet, zero when never copied."""
        pass
