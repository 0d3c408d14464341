"""SQLAlchemy table definitions for snippetbox.

Columns use SQLAlchemy's generic types so that one metadata object serves
both stores: ``Uuid`` is a native UUID on PostgreSQL and 32-character hex
text on SQLite, ``Boolean`` is native or a 0/1 integer, and
``DateTime(timezone=True)`` is TIMESTAMPTZ or ISO text.

They match the schema defined in Alembic migrations.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
    UniqueConstraint,
    Uuid,
)

# Metadata object for all tables
metadata = MetaData()

# ============================================================================
# USERS TABLE
# ============================================================================
users_table = Table(
    "users",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("username", String(50), nullable=False, unique=True),
    Column("email", String(255), nullable=False, unique=True),
    Column("password_hash", String(255), nullable=False),
    Column("role", Integer, nullable=False, server_default="0"),
    Column("is_active", Boolean, nullable=False, server_default="1"),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
)

# ============================================================================
# CODE SNIPPETS TABLE
# ============================================================================
snippets_table = Table(
    "code_snippets",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("title", String(200), nullable=False),
    Column("description", String(1000), nullable=False, server_default=""),
    Column("code", Text, nullable=False),
    Column("language", String(50), nullable=False),
    Column(
        "created_by", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    ),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("is_public", Boolean, nullable=False, server_default="1"),
    Column("view_count", Integer, nullable=False, server_default="0"),
    Column("copy_count", Integer, nullable=False, server_default="0"),
    CheckConstraint("view_count >= 0", name="check_snippet_view_count"),
    CheckConstraint("copy_count >= 0", name="check_snippet_copy_count"),
)

Index("idx_code_snippets_created_by", snippets_table.c.created_by)
Index("idx_code_snippets_language", snippets_table.c.language)
Index("idx_code_snippets_created_at", snippets_table.c.created_at)

# ============================================================================
# TAGS TABLE
# ============================================================================
tags_table = Table(
    "tags",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("name", String(50), nullable=False, unique=True),
    Column("color", String(7), nullable=False, server_default="#007bff"),
    Column(
        "created_by", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    ),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

# ============================================================================
# SNIPPET_TAGS JUNCTION TABLE
# ============================================================================
snippet_tags_table = Table(
    "snippet_tags",
    metadata,
    Column(
        "snippet_id",
        Uuid,
        ForeignKey("code_snippets.id", ondelete="CASCADE"),
        primary_key=True,
    ),
    Column(
        "tag_id", Uuid, ForeignKey("tags.id", ondelete="CASCADE"), primary_key=True
    ),
)

Index("idx_snippet_tags_tag_id", snippet_tags_table.c.tag_id)

# ============================================================================
# SNIPPET VERSIONS TABLE
# ============================================================================
snippet_versions_table = Table(
    "snippet_versions",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column(
        "snippet_id",
        Uuid,
        ForeignKey("code_snippets.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("version_number", Integer, nullable=False),
    Column("title", String(200), nullable=False),
    Column("description", String(1000), nullable=False, server_default=""),
    Column("code", Text, nullable=False),
    Column("language", String(50), nullable=False),
    Column(
        "created_by", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    ),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("change_description", String(500), nullable=True),
    UniqueConstraint("snippet_id", "version_number", name="uq_snippet_version_number"),
)

# ============================================================================
# COMMENTS TABLE
# ============================================================================
comments_table = Table(
    "comments",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column(
        "snippet_id",
        Uuid,
        ForeignKey("code_snippets.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column(
        "parent_id", Uuid, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True
    ),
    Column("content", Text, nullable=False),
    # Ancestor ids joined by "/", root first; empty for top-level comments
    Column("parent_path", Text, nullable=False, server_default=""),
    Column("depth", Integer, nullable=False, server_default="0"),
    Column("like_count", Integer, nullable=False, server_default="0"),
    Column("reply_count", Integer, nullable=False, server_default="0"),
    Column("status", Integer, nullable=False, server_default="0"),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("deleted_at", DateTime(timezone=True), nullable=True),
    CheckConstraint("depth >= 0", name="check_comment_depth"),
    CheckConstraint("like_count >= 0", name="check_comment_like_count"),
    CheckConstraint("reply_count >= 0", name="check_comment_reply_count"),
)

Index("idx_comments_snippet_id", comments_table.c.snippet_id)
Index("idx_comments_parent_id", comments_table.c.parent_id)
Index("idx_comments_user_id", comments_table.c.user_id)
Index("idx_comments_created_at", comments_table.c.created_at)

# ============================================================================
# COMMENT LIKES TABLE
# ============================================================================
# comment_id carries no foreign key: likes of removed comments are swept by
# orphan cleanup. One like per (comment, user) is enforced by the repository.
comment_likes_table = Table(
    "comment_likes",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("comment_id", Uuid, nullable=False),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column("created_at", DateTime(timezone=True), nullable=False),
)

Index(
    "idx_comment_likes_comment_user",
    comment_likes_table.c.comment_id,
    comment_likes_table.c.user_id,
)
Index("idx_comment_likes_user_id", comment_likes_table.c.user_id)

# ============================================================================
# SHARE TOKENS TABLE
# ============================================================================
share_tokens_table = Table(
    "share_tokens",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("token", String(64), nullable=False, unique=True),
    Column(
        "snippet_id",
        Uuid,
        ForeignKey("code_snippets.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column(
        "created_by", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    ),
    Column("expires_at", DateTime(timezone=True), nullable=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("is_active", Boolean, nullable=False, server_default="1"),
    Column("access_count", Integer, nullable=False, server_default="0"),
    Column("max_access_count", Integer, nullable=False, server_default="0"),
    Column("permission", Integer, nullable=False, server_default="0"),
    Column("description", String(500), nullable=False, server_default=""),
    Column("password", String(255), nullable=True),
    Column("allow_download", Boolean, nullable=False, server_default="1"),
    Column("allow_copy", Boolean, nullable=False, server_default="1"),
    Column("last_accessed_at", DateTime(timezone=True), nullable=True),
    CheckConstraint("access_count >= 0", name="check_share_access_count"),
)

Index("idx_share_tokens_snippet_id", share_tokens_table.c.snippet_id)
Index("idx_share_tokens_created_by", share_tokens_table.c.created_by)
Index("idx_share_tokens_expires_at", share_tokens_table.c.expires_at)

# ============================================================================
# CLIPBOARD HISTORY TABLE
# ============================================================================
clipboard_history_table = Table(
    "clipboard_history",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("user_id", Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False),
    Column(
        "snippet_id",
        Uuid,
        ForeignKey("code_snippets.id", ondelete="CASCADE"),
        nullable=False,
    ),
    Column("copied_at", DateTime(timezone=True), nullable=False),
)

Index(
    "idx_clipboard_history_user_copied",
    clipboard_history_table.c.user_id,
    clipboard_history_table.c.copied_at,
)

# ============================================================================
# SYSTEM SETTINGS TABLE (0 or 1 rows)
# ============================================================================
# slot is fixed at 1 and unique, so a second insert fails instead of
# creating another settings row.
system_settings_table = Table(
    "system_settings",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("slot", Integer, nullable=False, unique=True, server_default="1"),
    Column("site_settings_json", Text, nullable=False, server_default="{}"),
    Column("security_settings_json", Text, nullable=False, server_default="{}"),
    Column("feature_settings_json", Text, nullable=False, server_default="{}"),
    Column("email_settings_json", Text, nullable=False, server_default="{}"),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("updated_at", DateTime(timezone=True), nullable=False),
    Column("updated_by", String(100), nullable=False, server_default=""),
    CheckConstraint("slot = 1", name="check_system_settings_singleton"),
)

# ============================================================================
# SETTINGS HISTORY TABLE (append-only)
# ============================================================================
settings_history_table = Table(
    "settings_history",
    metadata,
    Column("id", Uuid, primary_key=True),
    Column("created_at", DateTime(timezone=True), nullable=False),
    Column("setting_type", String(50), nullable=False),
    Column("setting_key", String(100), nullable=False),
    Column("old_value", Text, nullable=True),
    Column("new_value", Text, nullable=True),
    Column("changed_by", String(100), nullable=False),
    Column("changed_by_id", Uuid, nullable=True),
    Column("change_reason", String(500), nullable=True),
    Column("change_category", String(50), nullable=False, server_default="system"),
    Column("client_ip", String(45), nullable=True),
    Column("user_agent", String(500), nullable=True),
    Column("is_important", Boolean, nullable=False, server_default="0"),
    Column("status", String(20), nullable=False, server_default="success"),
    Column("error_message", Text, nullable=True),
    Column("metadata_json", JSON, nullable=True),
)

Index("idx_settings_history_created_at", settings_history_table.c.created_at)
Index("idx_settings_history_setting_type", settings_history_table.c.setting_type)
