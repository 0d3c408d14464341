"""Strongly typed identifiers for snippetbox domain entities.

Using NewType for strong typing prevents mixing up different entity IDs
and makes the code more self-documenting.
"""

from typing import NewType
from uuid import UUID

UserId = NewType("UserId", UUID)
SnippetId = NewType("SnippetId", UUID)
SnippetVersionId = NewType("SnippetVersionId", UUID)
TagId = NewType("TagId", UUID)
CommentId = NewType("CommentId", UUID)
CommentLikeId = NewType("CommentLikeId", UUID)
ShareTokenId = NewType("ShareTokenId", UUID)
ClipboardEntryId = NewType("ClipboardEntryId", UUID)
SettingsId = NewType("SettingsId", UUID)
SettingsHistoryId = NewType("SettingsHistoryId", UUID)
