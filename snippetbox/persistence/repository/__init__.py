"""SQL repository implementations."""

from snippetbox.persistence.repository.clipboard import SqlClipboardHistoryRepository
from snippetbox.persistence.repository.comment import SqlCommentRepository
from snippetbox.persistence.repository.comment_like import SqlCommentLikeRepository
from snippetbox.persistence.repository.settings import (
    SqlSettingsHistoryRepository,
    SqlSystemSettingsRepository,
)
from snippetbox.persistence.repository.share_token import SqlShareTokenRepository
from snippetbox.persistence.repository.snippet import SqlSnippetRepository
from snippetbox.persistence.repository.snippet_version import (
    SqlSnippetVersionRepository,
)
from snippetbox.persistence.repository.tag import SqlTagRepository
from snippetbox.persistence.repository.user import SqlUserRepository

__all__ = [
    "SqlUserRepository",
    "SqlTagRepository",
    "SqlSnippetRepository",
    "SqlSnippetVersionRepository",
    "SqlCommentRepository",
    "SqlCommentLikeRepository",
    "SqlShareTokenRepository",
    "SqlClipboardHistoryRepository",
    "SqlSystemSettingsRepository",
    "SqlSettingsHistoryRepository",
]
