"""Domain value objects for snippetbox."""

from snippetbox.domain.value.identifiers import (
    ClipboardEntryId,
    CommentId,
    CommentLikeId,
    SettingsHistoryId,
    SettingsId,
    ShareTokenId,
    SnippetId,
    SnippetVersionId,
    TagId,
    UserId,
)
from snippetbox.domain.value.types import (
    DEFAULT_TAG_COLOR,
    ChangeCategory,
    ChangeStatus,
    CommentSort,
    CommentStatus,
    SettingsHistorySort,
    SettingType,
    SharePermission,
    TagColor,
    UserRole,
)

__all__ = [
    # Identifiers
    "UserId",
    "SnippetId",
    "SnippetVersionId",
    "TagId",
    "CommentId",
    "CommentLikeId",
    "ShareTokenId",
    "ClipboardEntryId",
    "SettingsId",
    "SettingsHistoryId",
    # Types
    "UserRole",
    "CommentStatus",
    "SharePermission",
    "SettingType",
    "ChangeCategory",
    "ChangeStatus",
    "CommentSort",
    "SettingsHistorySort",
    "TagColor",
    "DEFAULT_TAG_COLOR",
]
