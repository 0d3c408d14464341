"""User repository interface."""

from abc import ABC, abstractmethod
from typing import List, Optional

from snippetbox.domain.model import User
from snippetbox.domain.value import UserId


class UserRepository(ABC):
    """Repository for User entity."""

    @abstractmethod
    async def get_by_id(self, user_id: UserId) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_username(self, username: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_by_email(self, email: str) -> Optional[User]:
        pass

    @abstractmethod
    async def get_all(self) -> List[User]:
        """All users, newest first."""
        pass

    @abstractmethod
    async def create(self, user: User) -> User:
        pass

    @abstractmethod
    async def update(self, user: User) -> User:
        """Update a user; returns the given user unchanged if it does not exist."""
        pass

    @abstractmethod
    async def delete(self, user_id: UserId) -> bool:
        pass
