"""Database connection and session management.

Provides the async engine and session factory for either supported store.
"""

from sqlalchemy import event
from sqlalchemy.engine.url import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from snippetbox.config import Settings
from snippetbox.persistence.tables import metadata
from snippetbox.util.error import ConfigurationError


def create_engine(settings: Settings) -> AsyncEngine:
    """Create async database engine.

    Args:
        settings: Application settings with database URL

    Returns:
        Configured async engine

    Raises:
        ConfigurationError: If the URL names an unsupported backend
    """
    url = make_url(settings.database_url)
    backend = url.get_backend_name()

    if backend == "postgresql":
        return create_async_engine(
            url,
            echo=settings.debug,  # Log SQL queries in debug mode
            pool_pre_ping=True,  # Verify connections before using
            pool_size=settings.database.pool_size,
            max_overflow=settings.database.max_overflow,
        )

    if backend == "sqlite":
        kwargs = {}
        if url.database in (None, "", ":memory:"):
            # One shared connection, otherwise every checkout sees a new database
            kwargs["poolclass"] = StaticPool
        engine = create_async_engine(url, echo=settings.debug, **kwargs)
        _configure_sqlite(engine)
        return engine

    raise ConfigurationError(f"Unsupported database backend: {backend}")


def _configure_sqlite(engine: AsyncEngine) -> None:
    """Enable foreign keys and SAVEPOINT support on SQLite connections.

    The sqlite3 driver manages transactions itself and breaks SAVEPOINT;
    it is switched to autocommit and SQLAlchemy emits BEGIN instead.
    """

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


async def create_schema(engine: AsyncEngine) -> None:
    """Create all tables directly from metadata.

    Used for throwaway databases; persistent stores are migrated with Alembic.
    """
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create async session factory.

    Args:
        engine: Database engine

    Returns:
        Session factory for creating database sessions
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Don't expire objects after commit
        autoflush=False,  # Manual flushing for better control
        autocommit=False,  # Explicit transaction management
    )

