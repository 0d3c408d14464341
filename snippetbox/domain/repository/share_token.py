"""Share token repository interface."""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

from snippetbox.domain.model import (
    Page,
    ShareSystemStats,
    ShareToken,
    ShareTokenFilter,
    ShareTokenStats,
)
from snippetbox.domain.value import ShareTokenId, SnippetId, UserId


class ShareTokenRepository(ABC):
    """Repository for ShareToken entity.

    Tokens returned by reads carry the creator's name and the snippet's
    title and language.
    """

    @abstractmethod
    async def get_by_id(self, token_id: ShareTokenId) -> Optional[ShareToken]:
        pass

    @abstractmethod
    async def get_by_token(self, token: str) -> Optional[ShareToken]:
        pass

    @abstractmethod
    async def get_by_snippet_id(self, snippet_id: SnippetId) -> List[ShareToken]:
        pass

    @abstractmethod
    async def get_by_user_id(self, user_id: UserId) -> List[ShareToken]:
        pass

    @abstractmethod
    async def get_paged(self, token_filter: ShareTokenFilter) -> Page[ShareToken]:
        pass

    @abstractmethod
    async def get_active_tokens(self) -> List[ShareToken]:
        """Active tokens that have not expired."""
        pass

    @abstractmethod
    async def get_expired_tokens(self) -> List[ShareToken]:
        pass

    @abstractmethod
    async def get_share_stats(self, token_id: ShareTokenId) -> Optional[ShareTokenStats]:
        pass

    @abstractmethod
    async def get_system_share_stats(self) -> ShareSystemStats:
        pass

    @abstractmethod
    async def create(self, token: ShareToken) -> ShareToken:
        pass

    @abstractmethod
    async def update(self, token: ShareToken) -> ShareToken:
        pass

    @abstractmethod
    async def delete(self, token_id: ShareTokenId) -> bool:
        pass

    @abstractmethod
    async def increment_access_count(self, token: str) -> bool:
        """Count one use of a token.

        The increment applies only while the token is usable (active, not
        expired, below its access limit) and also records the access time.

        Returns:
            True if the use was counted, False if the token is unusable or
            unknown
        """
        pass

    @abstractmethod
    async def update_last_access_time(self, token_id: ShareTokenId) -> bool:
        pass

    @abstractmethod
    async def activate(self, token_id: ShareTokenId) -> bool:
        pass

    @abstractmethod
    async def deactivate(self, token_id: ShareTokenId) -> bool:
        pass

    @abstractmethod
    async def delete_expired_tokens(self) -> int:
        pass

    @abstractmethod
    async def deactivate_inactive_tokens(self, threshold: datetime) -> int:
        """Deactivate active tokens last accessed before ``threshold``."""
        pass

    @abstractmethod
    async def extend_expiration(
        self, token_id: ShareTokenId, expires_at: datetime
    ) -> bool:
        pass
