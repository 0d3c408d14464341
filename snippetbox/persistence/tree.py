"""Comment tree assembly.

Reply trees are fetched as one flat result set (a recursive query over
``parent_id``) and assembled here in memory. The flat collection is grouped
by parent once, so assembly visits every comment exactly once.
"""

from collections import defaultdict
from typing import Iterable, Optional

import logfire

from snippetbox.domain.model import Comment
from snippetbox.domain.value import CommentId


def _group_by_parent(
    comments: Iterable[Comment],
) -> tuple[dict[CommentId, Comment], dict[Optional[CommentId], list[Comment]]]:
    by_id: dict[CommentId, Comment] = {}
    children: dict[Optional[CommentId], list[Comment]] = defaultdict(list)
    for comment in comments:
        by_id[comment.id] = comment
        children[comment.parent_id].append(comment)
    for siblings in children.values():
        siblings.sort(key=lambda c: (c.created_at, str(c.id)))
    return by_id, children


def _attach_replies(
    comment: Comment,
    children: dict[Optional[CommentId], list[Comment]],
) -> Comment:
    """Return a copy of ``comment`` with its subtree attached.

    Iterative so that thread depth is not bounded by the recursion limit.
    Nodes are rebuilt in reverse pre-order, which completes every child
    before its parent.
    """
    order: list[Comment] = []
    seen: set[CommentId] = set()
    stack = [comment]
    while stack:
        node = stack.pop()
        if node.id in seen:
            continue
        seen.add(node.id)
        order.append(node)
        stack.extend(children.get(node.id, []))

    built: dict[CommentId, Comment] = {}
    for node in reversed(order):
        replies = [
            built[child.id]
            for child in children.get(node.id, [])
            if child.id in built
        ]
        built[node.id] = node.model_copy(update={"replies": replies})
    return built[comment.id]


def build_reply_tree(
    root_id: CommentId, comments: Iterable[Comment]
) -> Optional[Comment]:
    """Assemble the reply tree rooted at ``root_id``.

    Replies at every level are ordered by creation time, oldest first.
    Comments whose parent is not reachable from the root are ignored.

    Args:
        root_id: Identifier of the tree's root comment
        comments: Flat collection containing the root and its descendants

    Returns:
        The root with ``replies`` populated recursively, or None if the
        root is not in the collection
    """
    by_id, children = _group_by_parent(comments)
    root = by_id.get(root_id)
    if root is None:
        return None
    return _attach_replies(root, children)


def build_forest(comments: Iterable[Comment]) -> list[Comment]:
    """Assemble every thread in a flat collection.

    Only comments without a parent start a thread. Replies whose parent is
    missing from the collection (a soft-deleted branch) are dropped along
    with their descendants. Roots are ordered by creation time, oldest first.
    """
    by_id, children = _group_by_parent(comments)
    roots = [comment for comment in by_id.values() if comment.parent_id is None]
    roots.sort(key=lambda c: (c.created_at, str(c.id)))
    return [_attach_replies(root, children) for root in roots]


def build_ancestor_chain(
    leaf_id: CommentId, comments: Iterable[Comment]
) -> list[Comment]:
    """Order a leaf's ancestors from the outermost root down to the leaf.

    The walk follows ``parent_id`` links upward and stops at the last
    resolvable comment when a parent is missing from the collection
    (deleted row). A visited set guards against corrupted cyclic links.

    Args:
        leaf_id: Identifier of the comment whose chain is requested
        comments: Flat collection containing the leaf and its ancestors

    Returns:
        Chain ordered by ascending depth, ending with the leaf; empty if
        the leaf is not in the collection
    """
    by_id = {comment.id: comment for comment in comments}
    chain: list[Comment] = []
    seen: set[CommentId] = set()

    current = by_id.get(leaf_id)
    while current is not None and current.id not in seen:
        chain.append(current)
        seen.add(current.id)
        if current.parent_id is None:
            break
        parent = by_id.get(current.parent_id)
        if parent is None:
            logfire.warn(
                "Dangling parent in comment ancestry",
                comment_id=str(current.id),
                parent_id=str(current.parent_id),
            )
        current = parent

    chain.reverse()
    return chain
