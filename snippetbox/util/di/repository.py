"""Repository DI providers."""

from collections.abc import AsyncIterator

from dishka import Scope, provide
import logfire
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from snippetbox.config import Settings
from snippetbox.domain.repository import (
    ClipboardHistoryRepository,
    CommentLikeRepository,
    CommentRepository,
    SettingsHistoryRepository,
    ShareTokenRepository,
    SnippetRepository,
    SnippetVersionRepository,
    SystemSettingsRepository,
    TagRepository,
    UserRepository,
)
from snippetbox.persistence.repository import (
    SqlClipboardHistoryRepository,
    SqlCommentLikeRepository,
    SqlCommentRepository,
    SqlSettingsHistoryRepository,
    SqlShareTokenRepository,
    SqlSnippetRepository,
    SqlSnippetVersionRepository,
    SqlSystemSettingsRepository,
    SqlTagRepository,
    SqlUserRepository,
)
from snippetbox.util.di.base import ProviderBase


class ProdRepositoryProvider(ProviderBase):
    """SQL repositories over a request-scoped session - concrete, no mocks needed.

    Works with whichever engine the persistence component provides.
    """

    scope = Scope.REQUEST

    @provide
    async def get_session(
        self, session_factory: async_sessionmaker[AsyncSession]
    ) -> AsyncIterator[AsyncSession]:
        """Provide database session for request scope.

        The session is automatically committed at the end of the request
        if no exception occurred, or rolled back if an exception was raised.
        """
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
                logfire.debug("Session committed")
            except Exception as e:
                logfire.warn("Session rollback", error=str(e))
                await session.rollback()
                raise

    @provide
    def get_user_repository(self, session: AsyncSession) -> UserRepository:
        """Provide User repository."""
        return SqlUserRepository(session)

    @provide
    def get_tag_repository(self, session: AsyncSession) -> TagRepository:
        """Provide Tag repository."""
        return SqlTagRepository(session)

    @provide
    def get_snippet_repository(
        self, session: AsyncSession, settings: Settings
    ) -> SnippetRepository:
        """Provide Snippet repository."""
        return SqlSnippetRepository(
            session, max_page_size=settings.pagination.max_page_size
        )

    @provide
    def get_snippet_version_repository(
        self, session: AsyncSession
    ) -> SnippetVersionRepository:
        """Provide SnippetVersion repository."""
        return SqlSnippetVersionRepository(session)

    @provide
    def get_comment_repository(
        self, session: AsyncSession, settings: Settings
    ) -> CommentRepository:
        """Provide Comment repository."""
        return SqlCommentRepository(
            session,
            search_limit=settings.comments.search_limit,
            max_page_size=settings.pagination.max_page_size,
        )

    @provide
    def get_comment_like_repository(
        self, session: AsyncSession, settings: Settings
    ) -> CommentLikeRepository:
        """Provide CommentLike repository."""
        return SqlCommentLikeRepository(
            session, max_page_size=settings.pagination.max_page_size
        )

    @provide
    def get_share_token_repository(
        self, session: AsyncSession, settings: Settings
    ) -> ShareTokenRepository:
        """Provide ShareToken repository."""
        return SqlShareTokenRepository(
            session, max_page_size=settings.pagination.max_page_size
        )

    @provide
    def get_clipboard_history_repository(
        self, session: AsyncSession, settings: Settings
    ) -> ClipboardHistoryRepository:
        """Provide ClipboardHistory repository."""
        return SqlClipboardHistoryRepository(
            session, history_limit=settings.clipboard.history_limit
        )

    @provide
    def get_settings_history_repository(
        self, session: AsyncSession, settings: Settings
    ) -> SettingsHistoryRepository:
        """Provide SettingsHistory repository."""
        return SqlSettingsHistoryRepository(
            session,
            max_page_size=settings.pagination.max_page_size,
            top_users=settings.settings_history.top_users,
        )

    @provide
    def get_system_settings_repository(
        self, session: AsyncSession, history: SettingsHistoryRepository
    ) -> SystemSettingsRepository:
        """Provide SystemSettings repository."""
        return SqlSystemSettingsRepository(session, history)
