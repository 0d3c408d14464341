"""Domain value objects for snippetbox.

Integer enums mirror the codes persisted in the store, string enums are
persisted by value.
"""

import re
from enum import Enum, IntEnum

from pydantic import field_validator

from snippetbox.domain.value.common import RootValueObject


class UserRole(IntEnum):
    """Role granted to a user account."""

    VIEWER = 0
    EDITOR = 1
    ADMIN = 2


class CommentStatus(IntEnum):
    """Moderation status of a comment."""

    VISIBLE = 0
    DELETED = 1
    HIDDEN = 2
    PENDING = 3


class SharePermission(IntEnum):
    """Permission level carried by a share token."""

    READ_ONLY = 0
    EDIT = 1
    FULL = 2


class SettingType(str, Enum):
    """Sub-section of the system settings."""

    SITE = "site"
    SECURITY = "security"
    FEATURE = "feature"
    EMAIL = "email"


class ChangeCategory(str, Enum):
    """Category recorded for a settings change."""

    SYSTEM = "system"
    USER = "user"
    SECURITY = "security"
    PERFORMANCE = "performance"
    OTHER = "other"


class ChangeStatus(str, Enum):
    """Outcome recorded for a settings change."""

    SUCCESS = "success"
    FAILED = "failed"
    PENDING = "pending"


class CommentSort(str, Enum):
    """Orderings accepted by paged comment queries."""

    CREATED_AT_DESC = "created_at_desc"
    CREATED_AT_ASC = "created_at_asc"
    LIKE_COUNT_DESC = "like_count_desc"
    LIKE_COUNT_ASC = "like_count_asc"
    REPLY_COUNT_DESC = "reply_count_desc"
    REPLY_COUNT_ASC = "reply_count_asc"


class SettingsHistorySort(str, Enum):
    """Orderings accepted by paged settings-history queries."""

    CREATED_AT_DESC = "created_at_desc"
    CREATED_AT_ASC = "created_at_asc"
    SETTING_TYPE = "setting_type"
    CHANGED_BY = "changed_by"
    CHANGE_CATEGORY = "change_category"


class TagColor(RootValueObject[str]):
    """Display color of a tag as a ``#rrggbb`` hex string."""

    @field_validator("root")
    @classmethod
    def validate_hex(cls, v: str) -> str:
        """Validate hex color format."""
        if not re.match(r"^#[0-9a-fA-F]{6}$", v):
            raise ValueError("Tag color must be a #rrggbb hex string")
        return v.lower()


DEFAULT_TAG_COLOR = TagColor("#007bff")
