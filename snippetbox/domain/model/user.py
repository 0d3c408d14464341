"""User entity."""

from datetime import datetime
from uuid import uuid4

from pydantic import Field

from snippetbox.domain.model.common import DomainModel, utc_now
from snippetbox.domain.value import UserId, UserRole


class User(DomainModel):
    """User account.

    Password hashing happens outside the persistence layer; only the
    resulting hash is stored.
    """

    id: UserId = Field(default_factory=lambda: UserId(uuid4()))
    username: str = Field(min_length=1, max_length=50)
    email: str = Field(min_length=3, max_length=255)
    password_hash: str
    role: UserRole = UserRole.VIEWER
    is_active: bool = True
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
