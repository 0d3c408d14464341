"""Mock persistence providers for testing."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from snippetbox.config import DatabaseSettings, Settings
from snippetbox.persistence.database import (
    create_engine,
    create_schema,
    create_session_factory,
)
from snippetbox.util.di.infrastructure.persistence import PersistenceProvider


class SqlitePersistenceProvider(PersistenceProvider):
    """Mock persistence provider using an in-memory SQLite database.

    Each container gets its own database with the schema created from
    metadata, so every test starts empty.
    """

    __is_mock__ = True

    scope = Scope.APP

    @provide(scope=Scope.APP)
    async def get_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        """Provide an in-memory SQLite engine with the schema created."""
        sqlite_settings = settings.model_copy(
            update={"database": DatabaseSettings(url="sqlite+aiosqlite://")}
        )
        engine = create_engine(sqlite_settings)
        await create_schema(engine)
        yield engine
        await engine.dispose()

    @provide(scope=Scope.APP)
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        """Provide session factory."""
        return create_session_factory(engine)
