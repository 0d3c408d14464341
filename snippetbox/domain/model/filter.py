"""Filter objects for paged queries.

Each field is optional; only the fields that are set narrow the query.
"""

from datetime import datetime
from typing import Optional

from snippetbox.domain.model.page import PageRequest
from snippetbox.domain.value import (
    ChangeCategory,
    ChangeStatus,
    CommentId,
    CommentSort,
    CommentStatus,
    SettingsHistorySort,
    SettingType,
    SharePermission,
    SnippetId,
    UserId,
)


class SnippetFilter(PageRequest):
    search: Optional[str] = None  # title, description or code
    language: Optional[str] = None
    tag: Optional[str] = None  # tag name
    created_by: Optional[UserId] = None
    is_public: Optional[bool] = None


class CommentFilter(PageRequest):
    """Comment query filter.

    ``roots_only`` restricts to top-level comments and is ignored when
    ``parent_id`` is given.
    """

    snippet_id: Optional[SnippetId] = None
    user_id: Optional[UserId] = None
    status: Optional[CommentStatus] = None
    parent_id: Optional[CommentId] = None
    roots_only: bool = False
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    search: Optional[str] = None
    include_deleted: bool = False
    sort: CommentSort = CommentSort.CREATED_AT_DESC


class ShareTokenFilter(PageRequest):
    search: Optional[str] = None  # token, description or snippet title
    snippet_id: Optional[SnippetId] = None
    created_by: Optional[UserId] = None
    is_active: Optional[bool] = None
    is_expired: Optional[bool] = None
    permission: Optional[SharePermission] = None


class SettingsHistoryFilter(PageRequest):
    setting_type: Optional[SettingType] = None
    change_category: Optional[ChangeCategory] = None
    changed_by: Optional[str] = None  # substring match
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    is_important: Optional[bool] = None
    status: Optional[ChangeStatus] = None
    setting_key: Optional[str] = None  # substring match
    sort: SettingsHistorySort = SettingsHistorySort.CREATED_AT_DESC
