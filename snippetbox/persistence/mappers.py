"""Mappers for converting between database rows and domain models.

Since we're using Pydantic domain models (immutable), we use manual mapping
instead of SQLAlchemy's ORM. Every column is read through ``RowDecoder`` so
the mappers accept rows from either store.

Joined entities are read from labelled columns: a query joining tags onto
snippets labels the tag columns ``tag_id``, ``tag_name`` and so on, and
``row_to_tag(row, prefix="tag_")`` reads them back.
"""

from typing import Any, Callable, Dict, Hashable, Iterable, Optional, TypeVar

from pydantic import BaseModel

from snippetbox.domain.model import (
    ClipboardEntry,
    Comment,
    CommentLike,
    SettingsHistory,
    ShareToken,
    Snippet,
    SnippetVersion,
    SystemSettings,
    Tag,
    User,
)
from snippetbox.domain.model.settings import (
    EmailSettings,
    FeatureSettings,
    SecuritySettings,
    SiteSettings,
)
from snippetbox.domain.value import (
    ChangeCategory,
    ChangeStatus,
    ClipboardEntryId,
    CommentId,
    CommentLikeId,
    CommentStatus,
    SettingsHistoryId,
    SettingsId,
    SettingType,
    SharePermission,
    ShareTokenId,
    SnippetId,
    SnippetVersionId,
    TagColor,
    TagId,
    UserId,
    UserRole,
)
from snippetbox.persistence.decoder import Row, RowDecoder, decode_uuid
from snippetbox.persistence.error import FormatError

P = TypeVar("P", bound=BaseModel)
C = TypeVar("C", bound=BaseModel)

PATH_SEPARATOR = "/"


# ============================================================================
# JOIN FOLDING
# ============================================================================


def fold_joined_rows(
    rows: Iterable[Row],
    *,
    parent_key: Callable[[Row], Hashable],
    to_parent: Callable[[Row], P],
    child_key: Callable[[Row], Optional[Hashable]],
    to_child: Callable[[Row], C],
    collection: str,
) -> list[P]:
    """Fold one-to-many join rows into de-duplicated parents.

    Each row carries one parent and at most one child (``child_key``
    returns ``None`` for the NULL side of an outer join). Parents are
    returned in first-seen order with the distinct children attached under
    ``collection`` in first-seen order. A parent repeated across several
    join rows is materialized once and a child repeated under the same
    parent is attached once.

    Args:
        rows: Flat join rows
        parent_key: Reads the parent's identifier from a row
        to_parent: Materializes the parent from a row
        child_key: Reads the child's identifier, or None when absent
        to_child: Materializes the child from a row
        collection: Name of the parent's child-list field

    Returns:
        Parents with their children attached
    """
    parents: Dict[Hashable, P] = {}
    children: Dict[Hashable, Dict[Hashable, C]] = {}

    for row in rows:
        key = parent_key(row)
        if key not in parents:
            parents[key] = to_parent(row)
            children[key] = {}

        ckey = child_key(row)
        if ckey is not None and ckey not in children[key]:
            children[key][ckey] = to_child(row)

    return [
        parent.model_copy(update={collection: list(children[key].values())})
        for key, parent in parents.items()
    ]


# ============================================================================
# USERS
# ============================================================================


def row_to_user(row: Row) -> User:
    """Convert database row to User domain model.

    Args:
        row: Database row as mapping

    Returns:
        User domain model
    """
    d = RowDecoder(row, "User")
    return User(
        id=UserId(d.identifier("id")),
        username=d.text("username"),
        email=d.text("email"),
        password_hash=d.text("password_hash"),
        role=d.enum("role", UserRole),
        is_active=d.boolean("is_active"),
        created_at=d.timestamp("created_at"),
        updated_at=d.timestamp("updated_at"),
    )


def user_to_dict(user: User) -> Dict[str, Any]:
    """Convert User domain model to database dict."""
    data = user.model_dump()
    data["role"] = int(user.role)
    return data


# ============================================================================
# TAGS
# ============================================================================


def row_to_tag(row: Row, prefix: str = "") -> Tag:
    """Convert database row to Tag domain model.

    Args:
        row: Database row as mapping
        prefix: Label prefix when the tag columns come from a join

    Returns:
        Tag domain model
    """
    d = RowDecoder(row, "Tag", prefix=prefix)
    return Tag(
        id=TagId(d.identifier("id")),
        name=d.text("name"),
        color=TagColor(d.text("color")),
        created_by=UserId(d.identifier("created_by")),
        created_at=d.timestamp("created_at"),
    )


def tag_to_dict(tag: Tag) -> Dict[str, Any]:
    """Convert Tag domain model to database dict."""
    return tag.model_dump()


# ============================================================================
# SNIPPETS
# ============================================================================


def row_to_snippet(row: Row) -> Snippet:
    """Convert database row to Snippet domain model (without tags)."""
    d = RowDecoder(row, "Snippet")
    return Snippet(
        id=SnippetId(d.identifier("id")),
        title=d.text("title"),
        description=d.optional_text("description") or "",
        code=d.text("code"),
        language=d.text("language"),
        created_by=UserId(d.identifier("created_by")),
        created_at=d.timestamp("created_at"),
        updated_at=d.timestamp("updated_at"),
        is_public=d.boolean("is_public"),
        view_count=d.integer("view_count"),
        copy_count=d.integer("copy_count"),
        creator_name=d.optional_text("creator_name"),
    )


def rows_to_snippets_with_tags(rows: Iterable[Row]) -> list[Snippet]:
    """Fold snippet rows left-joined with ``tag_``-labelled tag columns."""
    return fold_joined_rows(
        rows,
        parent_key=lambda row: RowDecoder(row, "Snippet").identifier("id"),
        to_parent=row_to_snippet,
        child_key=lambda row: RowDecoder(row, "Tag", "tag_").optional_identifier("id"),
        to_child=lambda row: row_to_tag(row, prefix="tag_"),
        collection="tags",
    )


def snippet_to_dict(snippet: Snippet) -> Dict[str, Any]:
    """Convert Snippet domain model to database dict.

    Read-only denormalized fields and the tag list are excluded.
    """
    return snippet.model_dump(exclude={"creator_name", "tags"})


# ============================================================================
# SNIPPET VERSIONS
# ============================================================================


def row_to_snippet_version(row: Row) -> SnippetVersion:
    """Convert database row to SnippetVersion domain model."""
    d = RowDecoder(row, "SnippetVersion")
    return SnippetVersion(
        id=SnippetVersionId(d.identifier("id")),
        snippet_id=SnippetId(d.identifier("snippet_id")),
        version_number=d.integer("version_number"),
        title=d.text("title"),
        description=d.optional_text("description") or "",
        code=d.text("code"),
        language=d.text("language"),
        created_by=UserId(d.identifier("created_by")),
        created_at=d.timestamp("created_at"),
        change_description=d.optional_text("change_description"),
    )


def snippet_version_to_dict(version: SnippetVersion) -> Dict[str, Any]:
    """Convert SnippetVersion domain model to database dict."""
    return version.model_dump()


# ============================================================================
# COMMENTS
# ============================================================================


def decode_path(value: Optional[str]) -> list[CommentId]:
    """Split a stored materialized path into ancestor ids, root first."""
    if not value:
        return []
    try:
        return [CommentId(decode_uuid(part)) for part in value.split(PATH_SEPARATOR)]
    except FormatError as e:
        raise FormatError("materialized path", value) from e


def encode_path(path: Iterable[CommentId]) -> str:
    """Join ancestor ids into the stored materialized path form."""
    return PATH_SEPARATOR.join(str(comment_id) for comment_id in path)


def row_to_comment(row: Row, prefix: str = "") -> Comment:
    """Convert database row to Comment domain model.

    ``replies`` and ``likes`` are left empty; the tree builder and the
    like-join fold populate them.
    """
    d = RowDecoder(row, "Comment", prefix=prefix)
    parent_id = d.optional_identifier("parent_id")
    return Comment(
        id=CommentId(d.identifier("id")),
        snippet_id=SnippetId(d.identifier("snippet_id")),
        user_id=UserId(d.identifier("user_id")),
        parent_id=CommentId(parent_id) if parent_id else None,
        content=d.text("content"),
        path=decode_path(d.optional_text("parent_path")),
        depth=d.integer("depth"),
        like_count=d.integer("like_count"),
        reply_count=d.integer("reply_count"),
        status=d.enum("status", CommentStatus),
        created_at=d.timestamp("created_at"),
        updated_at=d.timestamp("updated_at"),
        deleted_at=d.optional_timestamp("deleted_at"),
        user_name=d.optional_text("user_name"),
    )


def rows_to_comments_with_likes(rows: Iterable[Row]) -> list[Comment]:
    """Fold comment rows left-joined with ``like_``-labelled like columns."""
    return fold_joined_rows(
        rows,
        parent_key=lambda row: RowDecoder(row, "Comment").identifier("id"),
        to_parent=row_to_comment,
        child_key=lambda row: RowDecoder(row, "CommentLike", "like_").optional_identifier(
            "id"
        ),
        to_child=lambda row: row_to_comment_like(row, prefix="like_"),
        collection="likes",
    )


def comment_to_dict(comment: Comment) -> Dict[str, Any]:
    """Convert Comment domain model to database dict."""
    data = comment.model_dump(
        exclude={"path", "replies", "likes", "user_name"},
    )
    data["parent_path"] = encode_path(comment.path)
    data["status"] = int(comment.status)
    return data


# ============================================================================
# COMMENT LIKES
# ============================================================================


def row_to_comment_like(row: Row, prefix: str = "") -> CommentLike:
    """Convert database row to CommentLike domain model."""
    d = RowDecoder(row, "CommentLike", prefix=prefix)
    return CommentLike(
        id=CommentLikeId(d.identifier("id")),
        comment_id=CommentId(d.identifier("comment_id")),
        user_id=UserId(d.identifier("user_id")),
        created_at=d.timestamp("created_at"),
        user_name=d.optional_text("user_name"),
    )


def comment_like_to_dict(like: CommentLike) -> Dict[str, Any]:
    """Convert CommentLike domain model to database dict."""
    return like.model_dump(exclude={"user_name"})


# ============================================================================
# SHARE TOKENS
# ============================================================================


def row_to_share_token(row: Row) -> ShareToken:
    """Convert database row to ShareToken domain model."""
    d = RowDecoder(row, "ShareToken")
    return ShareToken(
        id=ShareTokenId(d.identifier("id")),
        token=d.text("token"),
        snippet_id=SnippetId(d.identifier("snippet_id")),
        created_by=UserId(d.identifier("created_by")),
        expires_at=d.optional_timestamp("expires_at"),
        created_at=d.timestamp("created_at"),
        updated_at=d.timestamp("updated_at"),
        is_active=d.boolean("is_active"),
        access_count=d.integer("access_count"),
        max_access_count=d.integer("max_access_count"),
        permission=d.enum("permission", SharePermission),
        description=d.optional_text("description") or "",
        password=d.optional_text("password"),
        allow_download=d.boolean("allow_download"),
        allow_copy=d.boolean("allow_copy"),
        last_accessed_at=d.optional_timestamp("last_accessed_at"),
        creator_name=d.optional_text("creator_name"),
        snippet_title=d.optional_text("snippet_title"),
        snippet_language=d.optional_text("snippet_language"),
    )


def share_token_to_dict(token: ShareToken) -> Dict[str, Any]:
    """Convert ShareToken domain model to database dict."""
    data = token.model_dump(
        exclude={"creator_name", "snippet_title", "snippet_language"},
    )
    data["permission"] = int(token.permission)
    return data


# ============================================================================
# CLIPBOARD HISTORY
# ============================================================================


def row_to_clipboard_entry(row: Row) -> ClipboardEntry:
    """Convert database row to ClipboardEntry domain model."""
    d = RowDecoder(row, "ClipboardEntry")
    return ClipboardEntry(
        id=ClipboardEntryId(d.identifier("id")),
        user_id=UserId(d.identifier("user_id")),
        snippet_id=SnippetId(d.identifier("snippet_id")),
        copied_at=d.timestamp("copied_at"),
        snippet_title=d.optional_text("snippet_title"),
        snippet_language=d.optional_text("snippet_language"),
    )


def clipboard_entry_to_dict(entry: ClipboardEntry) -> Dict[str, Any]:
    """Convert ClipboardEntry domain model to database dict."""
    return entry.model_dump(exclude={"snippet_title", "snippet_language"})


# ============================================================================
# SYSTEM SETTINGS
# ============================================================================

SECTION_COLUMNS: Dict[SettingType, str] = {
    SettingType.SITE: "site_settings_json",
    SettingType.SECURITY: "security_settings_json",
    SettingType.FEATURE: "feature_settings_json",
    SettingType.EMAIL: "email_settings_json",
}


def row_to_system_settings(row: Row) -> SystemSettings:
    """Convert database row to SystemSettings domain model.

    Missing keys in a stored section take their defaults, so sections
    written before a field was added still load.
    """
    d = RowDecoder(row, "SystemSettings")
    return SystemSettings(
        id=SettingsId(d.identifier("id")),
        site=SiteSettings.model_validate(d.optional_json("site_settings_json") or {}),
        security=SecuritySettings.model_validate(
            d.optional_json("security_settings_json") or {}
        ),
        feature=FeatureSettings.model_validate(
            d.optional_json("feature_settings_json") or {}
        ),
        email=EmailSettings.model_validate(d.optional_json("email_settings_json") or {}),
        created_at=d.timestamp("created_at"),
        updated_at=d.timestamp("updated_at"),
        updated_by=d.optional_text("updated_by") or "",
    )


def system_settings_to_dict(settings: SystemSettings) -> Dict[str, Any]:
    """Convert SystemSettings domain model to database dict."""
    data: Dict[str, Any] = {
        "id": settings.id,
        "created_at": settings.created_at,
        "updated_at": settings.updated_at,
        "updated_by": settings.updated_by,
    }
    for setting_type, column in SECTION_COLUMNS.items():
        data[column] = settings.section(setting_type).model_dump_json()
    return data


# ============================================================================
# SETTINGS HISTORY
# ============================================================================


def row_to_settings_history(row: Row) -> SettingsHistory:
    """Convert database row to SettingsHistory domain model."""
    d = RowDecoder(row, "SettingsHistory")
    changed_by_id = d.optional_identifier("changed_by_id")
    return SettingsHistory(
        id=SettingsHistoryId(d.identifier("id")),
        created_at=d.timestamp("created_at"),
        setting_type=d.enum("setting_type", SettingType),
        setting_key=d.text("setting_key"),
        old_value=d.optional_text("old_value"),
        new_value=d.optional_text("new_value"),
        changed_by=d.text("changed_by"),
        changed_by_id=UserId(changed_by_id) if changed_by_id else None,
        change_reason=d.optional_text("change_reason"),
        change_category=d.enum("change_category", ChangeCategory),
        client_ip=d.optional_text("client_ip"),
        user_agent=d.optional_text("user_agent"),
        is_important=d.boolean("is_important"),
        status=d.enum("status", ChangeStatus),
        error_message=d.optional_text("error_message"),
        metadata=d.optional_json("metadata_json"),
    )


def settings_history_to_dict(entry: SettingsHistory) -> Dict[str, Any]:
    """Convert SettingsHistory domain model to database dict."""
    data = entry.model_dump(exclude={"metadata"})
    data["setting_type"] = entry.setting_type.value
    data["change_category"] = entry.change_category.value
    data["status"] = entry.status.value
    data["metadata_json"] = entry.metadata
    return data
