"""Repository interfaces for snippetbox domain.

Repository interfaces are defined in the domain layer (dependency inversion).
Implementations live in the persistence layer.
"""

from snippetbox.domain.repository.clipboard import ClipboardHistoryRepository
from snippetbox.domain.repository.comment import CommentRepository
from snippetbox.domain.repository.comment_like import CommentLikeRepository
from snippetbox.domain.repository.settings import (
    SettingsHistoryRepository,
    SystemSettingsRepository,
)
from snippetbox.domain.repository.share_token import ShareTokenRepository
from snippetbox.domain.repository.snippet import SnippetRepository
from snippetbox.domain.repository.snippet_version import SnippetVersionRepository
from snippetbox.domain.repository.tag import TagRepository
from snippetbox.domain.repository.user import UserRepository

__all__ = [
    "UserRepository",
    "TagRepository",
    "SnippetRepository",
    "SnippetVersionRepository",
    "CommentRepository",
    "CommentLikeRepository",
    "ShareTokenRepository",
    "ClipboardHistoryRepository",
    "SystemSettingsRepository",
    "SettingsHistoryRepository",
]
