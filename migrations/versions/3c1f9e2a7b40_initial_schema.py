"""initial_schema

Create the schema for snippetbox:
- Users
- Code snippets, tags and the snippet/tag junction
- Snippet versions (immutable snapshots)
- Comments (threaded, unlimited depth, materialized path) and comment likes
- Share tokens
- Clipboard history
- System settings (singleton row) and settings history

Types are SQLAlchemy generics so the same revision runs on PostgreSQL and
SQLite.

Revision ID: 3c1f9e2a7b40
Revises:
Create Date: 2026-10-18 10:12:44.318204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3c1f9e2a7b40"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    # ========================================================================
    # USERS table
    # ========================================================================
    op.create_table(
        "users",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("username", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.Integer(), server_default="0", nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="1", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("username"),
        sa.UniqueConstraint("email"),
    )

    # ========================================================================
    # CODE_SNIPPETS table
    # ========================================================================
    op.create_table(
        "code_snippets",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column(
            "description", sa.String(length=1000), server_default="", nullable=False
        ),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("language", sa.String(length=50), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_public", sa.Boolean(), server_default="1", nullable=False),
        sa.Column("view_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("copy_count", sa.Integer(), server_default="0", nullable=False),
        sa.CheckConstraint("view_count >= 0", name="check_snippet_view_count"),
        sa.CheckConstraint("copy_count >= 0", name="check_snippet_copy_count"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_code_snippets_created_by", "code_snippets", ["created_by"])
    op.create_index("idx_code_snippets_language", "code_snippets", ["language"])
    op.create_index("idx_code_snippets_created_at", "code_snippets", ["created_at"])

    # ========================================================================
    # TAGS and SNIPPET_TAGS tables
    # ========================================================================
    op.create_table(
        "tags",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column(
            "color", sa.String(length=7), server_default="#007bff", nullable=False
        ),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    op.create_table(
        "snippet_tags",
        sa.Column("snippet_id", sa.Uuid(), nullable=False),
        sa.Column("tag_id", sa.Uuid(), nullable=False),
        sa.ForeignKeyConstraint(
            ["snippet_id"], ["code_snippets.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("snippet_id", "tag_id"),
    )
    op.create_index("idx_snippet_tags_tag_id", "snippet_tags", ["tag_id"])

    # ========================================================================
    # SNIPPET_VERSIONS table
    # ========================================================================
    op.create_table(
        "snippet_versions",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("snippet_id", sa.Uuid(), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=False),
        sa.Column(
            "description", sa.String(length=1000), server_default="", nullable=False
        ),
        sa.Column("code", sa.Text(), nullable=False),
        sa.Column("language", sa.String(length=50), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("change_description", sa.String(length=500), nullable=True),
        sa.ForeignKeyConstraint(
            ["snippet_id"], ["code_snippets.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "snippet_id", "version_number", name="uq_snippet_version_number"
        ),
    )

    # ========================================================================
    # COMMENTS table (threaded via parent_id and materialized parent_path)
    # ========================================================================
    op.create_table(
        "comments",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("snippet_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("parent_id", sa.Uuid(), nullable=True),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("parent_path", sa.Text(), server_default="", nullable=False),
        sa.Column("depth", sa.Integer(), server_default="0", nullable=False),
        sa.Column("like_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("reply_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column("status", sa.Integer(), server_default="0", nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("depth >= 0", name="check_comment_depth"),
        sa.CheckConstraint("like_count >= 0", name="check_comment_like_count"),
        sa.CheckConstraint("reply_count >= 0", name="check_comment_reply_count"),
        sa.ForeignKeyConstraint(
            ["snippet_id"], ["code_snippets.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["parent_id"], ["comments.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_comments_snippet_id", "comments", ["snippet_id"])
    op.create_index("idx_comments_parent_id", "comments", ["parent_id"])
    op.create_index("idx_comments_user_id", "comments", ["user_id"])
    op.create_index("idx_comments_created_at", "comments", ["created_at"])

    # ========================================================================
    # COMMENT_LIKES table (no FK on comment_id; orphans are swept)
    # ========================================================================
    op.create_table(
        "comment_likes",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("comment_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_comment_likes_comment_user", "comment_likes", ["comment_id", "user_id"]
    )
    op.create_index("idx_comment_likes_user_id", "comment_likes", ["user_id"])

    # ========================================================================
    # SHARE_TOKENS table
    # ========================================================================
    op.create_table(
        "share_tokens",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("token", sa.String(length=64), nullable=False),
        sa.Column("snippet_id", sa.Uuid(), nullable=False),
        sa.Column("created_by", sa.Uuid(), nullable=False),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), server_default="1", nullable=False),
        sa.Column("access_count", sa.Integer(), server_default="0", nullable=False),
        sa.Column(
            "max_access_count", sa.Integer(), server_default="0", nullable=False
        ),
        sa.Column("permission", sa.Integer(), server_default="0", nullable=False),
        sa.Column(
            "description", sa.String(length=500), server_default="", nullable=False
        ),
        sa.Column("password", sa.String(length=255), nullable=True),
        sa.Column("allow_download", sa.Boolean(), server_default="1", nullable=False),
        sa.Column("allow_copy", sa.Boolean(), server_default="1", nullable=False),
        sa.Column("last_accessed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("access_count >= 0", name="check_share_access_count"),
        sa.ForeignKeyConstraint(
            ["snippet_id"], ["code_snippets.id"], ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("token"),
    )
    op.create_index("idx_share_tokens_snippet_id", "share_tokens", ["snippet_id"])
    op.create_index("idx_share_tokens_created_by", "share_tokens", ["created_by"])
    op.create_index("idx_share_tokens_expires_at", "share_tokens", ["expires_at"])

    # ========================================================================
    # CLIPBOARD_HISTORY table
    # ========================================================================
    op.create_table(
        "clipboard_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=False),
        sa.Column("snippet_id", sa.Uuid(), nullable=False),
        sa.Column("copied_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(
            ["snippet_id"], ["code_snippets.id"], ondelete="CASCADE"
        ),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_clipboard_history_user_copied",
        "clipboard_history",
        ["user_id", "copied_at"],
    )

    # ========================================================================
    # SYSTEM_SETTINGS table (0 or 1 rows, pinned by slot = 1)
    # ========================================================================
    op.create_table(
        "system_settings",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("slot", sa.Integer(), server_default="1", nullable=False),
        sa.Column(
            "site_settings_json", sa.Text(), server_default="{}", nullable=False
        ),
        sa.Column(
            "security_settings_json", sa.Text(), server_default="{}", nullable=False
        ),
        sa.Column(
            "feature_settings_json", sa.Text(), server_default="{}", nullable=False
        ),
        sa.Column(
            "email_settings_json", sa.Text(), server_default="{}", nullable=False
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_by", sa.String(length=100), server_default="", nullable=False
        ),
        sa.CheckConstraint("slot = 1", name="check_system_settings_singleton"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("slot"),
    )

    # ========================================================================
    # SETTINGS_HISTORY table (append-only)
    # ========================================================================
    op.create_table(
        "settings_history",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("setting_type", sa.String(length=50), nullable=False),
        sa.Column("setting_key", sa.String(length=100), nullable=False),
        sa.Column("old_value", sa.Text(), nullable=True),
        sa.Column("new_value", sa.Text(), nullable=True),
        sa.Column("changed_by", sa.String(length=100), nullable=False),
        sa.Column("changed_by_id", sa.Uuid(), nullable=True),
        sa.Column("change_reason", sa.String(length=500), nullable=True),
        sa.Column(
            "change_category",
            sa.String(length=50),
            server_default="system",
            nullable=False,
        ),
        sa.Column("client_ip", sa.String(length=45), nullable=True),
        sa.Column("user_agent", sa.String(length=500), nullable=True),
        sa.Column("is_important", sa.Boolean(), server_default="0", nullable=False),
        sa.Column(
            "status", sa.String(length=20), server_default="success", nullable=False
        ),
        sa.Column("error_message", sa.Text(), nullable=True),
        sa.Column("metadata_json", sa.JSON(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "idx_settings_history_created_at", "settings_history", ["created_at"]
    )
    op.create_index(
        "idx_settings_history_setting_type", "settings_history", ["setting_type"]
    )


def downgrade() -> None:
    """Downgrade schema."""
    # Drop tables (in reverse order of dependencies)
    op.drop_table("settings_history")
    op.drop_table("system_settings")
    op.drop_table("clipboard_history")
    op.drop_table("share_tokens")
    op.drop_table("comment_likes")
    op.drop_table("comments")
    op.drop_table("snippet_versions")
    op.drop_table("snippet_tags")
    op.drop_table("tags")
    op.drop_table("code_snippets")
    op.drop_table("users")
