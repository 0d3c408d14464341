"""Domain model entities for snippetbox."""

from snippetbox.domain.model.clipboard import ClipboardEntry
from snippetbox.domain.model.comment import Comment, CommentStats, UserCommentStats
from snippetbox.domain.model.comment_like import CommentLike
from snippetbox.domain.model.filter import (
    CommentFilter,
    SettingsHistoryFilter,
    ShareTokenFilter,
    SnippetFilter,
)
from snippetbox.domain.model.page import Page, PageRequest
from snippetbox.domain.model.settings import (
    EmailSettings,
    FeatureSettings,
    SecuritySettings,
    SettingsHistory,
    SettingsHistoryStats,
    SiteSettings,
    SystemSettings,
)
from snippetbox.domain.model.share_token import (
    ShareSystemStats,
    ShareToken,
    ShareTokenStats,
)
from snippetbox.domain.model.snippet import Snippet
from snippetbox.domain.model.snippet_version import SnippetVersion
from snippetbox.domain.model.tag import Tag, TagUsage
from snippetbox.domain.model.user import User

__all__ = [
    "User",
    "Tag",
    "TagUsage",
    "Snippet",
    "SnippetVersion",
    "Comment",
    "CommentStats",
    "UserCommentStats",
    "CommentLike",
    "ShareToken",
    "ShareTokenStats",
    "ShareSystemStats",
    "ClipboardEntry",
    "SystemSettings",
    "SiteSettings",
    "SecuritySettings",
    "FeatureSettings",
    "EmailSettings",
    "SettingsHistory",
    "SettingsHistoryStats",
    "Page",
    "PageRequest",
    "SnippetFilter",
    "CommentFilter",
    "ShareTokenFilter",
    "SettingsHistoryFilter",
]
