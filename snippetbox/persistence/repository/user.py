"""SQL implementation of User repository."""

from typing import List, Optional

import logfire
from sqlalchemy import delete, desc, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from snippetbox.domain.model import User
from snippetbox.domain.model.common import utc_now
from snippetbox.domain.repository import UserRepository
from snippetbox.domain.value import UserId
from snippetbox.persistence.mappers import row_to_user, user_to_dict
from snippetbox.persistence.tables import users_table


class SqlUserRepository(UserRepository):
    """SQL implementation of UserRepository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def _find_one(self, *conditions) -> Optional[User]:
        stmt = select(users_table).where(*conditions)
        result = await self.session.execute(stmt)
        row = result.fetchone()
        return row_to_user(row._mapping) if row else None

    async def get_by_id(self, user_id: UserId) -> Optional[User]:
        return await self._find_one(users_table.c.id == user_id)

    async def get_by_username(self, username: str) -> Optional[User]:
        return await self._find_one(users_table.c.username == username)

    async def get_by_email(self, email: str) -> Optional[User]:
        return await self._find_one(users_table.c.email == email)

    async def get_all(self) -> List[User]:
        stmt = select(users_table).order_by(
            desc(users_table.c.created_at), users_table.c.id
        )
        result = await self.session.execute(stmt)
        return [row_to_user(row._mapping) for row in result.fetchall()]

    async def create(self, user: User) -> User:
        with logfire.span("user_repository.create", user_id=str(user.id)):
            await self.session.execute(
                users_table.insert().values(**user_to_dict(user))
            )
            await self.session.flush()
            logfire.info("User created", user_id=str(user.id), username=user.username)
            return user

    async def update(self, user: User) -> User:
        with logfire.span("user_repository.update", user_id=str(user.id)):
            stmt = (
                update(users_table)
                .where(users_table.c.id == user.id)
                .values(
                    username=user.username,
                    email=user.email,
                    password_hash=user.password_hash,
                    role=int(user.role),
                    is_active=user.is_active,
                    updated_at=utc_now(),
                )
                .returning(users_table)
            )
            result = await self.session.execute(stmt)
            row = result.fetchone()
            if row is None:
                return user
            await self.session.flush()
            return row_to_user(row._mapping)

    async def delete(self, user_id: UserId) -> bool:
        with logfire.span("user_repository.delete", user_id=str(user_id)):
            result = await self.session.execute(
                delete(users_table).where(users_table.c.id == user_id)
            )
            await self.session.flush()
            return result.rowcount > 0
