"""Share token entity."""

from datetime import datetime
from typing import Optional
from uuid import uuid4

from pydantic import Field

from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.value import SharePermission, ShareTokenId, SnippetId, UserId


class ShareToken(DomainModel):
    """Capability granting access to one snippet.

    A token is usable while it is active, not expired and below its access
    limit. ``max_access_count <= 0`` means unlimited.
    """

    id: ShareTokenId = Field(default_factory=lambda: ShareTokenId(uuid4()))
    token: str = Field(min_length=1, max_length=64)
    snippet_id: SnippetId
    created_by: UserId
    expires_at: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    is_active: bool = True
    access_count: int = Field(default=0, ge=0)
    max_access_count: int = 0
    permission: SharePermission = SharePermission.READ_ONLY
    description: str = Field(default="", max_length=500)
    password: Optional[str] = None
    allow_download: bool = True
    allow_copy: bool = True
    last_accessed_at: Optional[datetime] = None

    # Denormalized on read
    creator_name: Optional[str] = None
    snippet_title: Optional[str] = None
    snippet_language: Optional[str] = None

    @property
    def has_access_limit(self) -> bool:
        return self.max_access_count > 0

    @property
    def is_access_limit_reached(self) -> bool:
        return self.has_access_limit and self.access_count >= self.max_access_count

    @property
    def remaining_accesses(self) -> int:
        """Accesses left before the limit, or -1 when unlimited."""
        if not self.has_access_limit:
            return -1
        return max(self.max_access_count - self.access_count, 0)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return self.expires_at <= (now or utc_now())

    def is_usable(self, now: Optional[datetime] = None) -> bool:
        return (
            self.is_active
            and not self.is_expired(now)
            and not self.is_access_limit_reached
        )


class ShareTokenStats(DomainModel):
    """Usage summary of one share token."""

    token_id: ShareTokenId
    access_count: int
    max_access_count: int
    remaining_accesses: int
    is_active: bool
    is_expired: bool
    is_access_limit_reached: bool
    created_at: datetime
    expires_at: Optional[datetime] = None
    last_accessed_at: Optional[datetime] = None


class ShareSystemStats(DomainModel):
    """Usage summary across all share tokens."""

    total_tokens: int = 0
    active_tokens: int = 0
    expired_tokens: int = 0
    total_accesses: int = 0
    tokens_created_today: int = 0
    permission_counts: dict[SharePermission, int] = Field(default_factory=dict)
    language_counts: dict[str, int] = Field(default_factory=dict)
