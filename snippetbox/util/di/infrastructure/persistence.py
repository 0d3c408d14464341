"""Persistence infrastructure providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from snippetbox.config import Settings
from snippetbox.persistence.database import create_engine, create_session_factory
from snippetbox.util.di.base import ProviderBase
from snippetbox.util.observability import instrument_sqlalchemy


class PersistenceProvider(ProviderBase):
    """Persistence component base.

    Implementations provide the engine and the session factory; sessions
    and repositories are built on top of them by the repository provider.
    """

    __mock_component__ = "persistence"


class ProdPersistenceProvider(PersistenceProvider):
    """Engine for the configured ``DATABASE__URL``, traced through logfire.

    The schema is expected to be migrated already.
    """

    __is_mock__ = False

    scope = Scope.APP

    @provide
    async def get_engine(self, settings: Settings) -> AsyncIterator[AsyncEngine]:
        engine = create_engine(settings)
        instrument_sqlalchemy(engine)
        yield engine
        await engine.dispose()

    @provide
    def get_session_factory(
        self, engine: AsyncEngine
    ) -> async_sessionmaker[AsyncSession]:
        return create_session_factory(engine)
