"""Unit tests for comment tree assembly."""

from datetime import datetime, timedelta, timezone
from uuid import uuid4

from snippetbox.domain.model import Comment
from snippetbox.persistence.tree import (
    build_ancestor_chain,
    build_forest,
    build_reply_tree,
)
from tests.factories import make_comment

SNIPPET_ID = uuid4()
USER_ID = uuid4()
T0 = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


def reply_to(parent: Comment | None, minute: int, content: str = "reply") -> Comment:
    """Comment created ``minute`` minutes after T0, threaded under ``parent``."""
    return make_comment(
        SNIPPET_ID,
        USER_ID,
        parent_id=parent.id if parent else None,
        content=content,
        path=parent.reply_path() if parent else [],
        depth=parent.depth + 1 if parent else 0,
        created_at=T0 + timedelta(minutes=minute),
    )


def shape(comment: Comment):
    """Nested (content, depth, children) tuples of a tree."""
    return (comment.content, comment.depth, [shape(r) for r in comment.replies])


def flatten(comment: Comment) -> list[Comment]:
    flat = [comment.model_copy(update={"replies": []})]
    for reply in comment.replies:
        flat.extend(flatten(reply))
    return flat


class TestBuildReplyTree:
    def test_three_level_thread(self):
        """A -> B -> C assembles as nested replies."""
        # Arrange
        a = reply_to(None, 0, "A")
        b = reply_to(a, 1, "B")
        c = reply_to(b, 2, "C")

        # Act
        tree = build_reply_tree(a.id, [c, a, b])

        # Assert
        assert tree is not None
        assert shape(tree) == ("A", 0, [("B", 1, [("C", 2, [])])])
        assert b.path == [a.id]
        assert c.path == [a.id, b.id]

    def test_siblings_are_oldest_first(self):
        # Arrange
        root = reply_to(None, 0, "root")
        late = reply_to(root, 30, "late")
        early = reply_to(root, 5, "early")
        middle = reply_to(root, 10, "middle")

        # Act
        tree = build_reply_tree(root.id, [late, root, middle, early])

        # Assert
        assert [r.content for r in tree.replies] == ["early", "middle", "late"]

    def test_rebuild_from_flattened_tree_is_isomorphic(self):
        """Flattening and rebuilding keeps parents, depths and order."""
        # Arrange
        root = reply_to(None, 0, "r")
        first = reply_to(root, 1, "r.1")
        second = reply_to(root, 2, "r.2")
        nested = [reply_to(first, 3 + i, f"r.1.{i}") for i in range(3)]
        deeper = reply_to(nested[1], 10, "r.1.1.0")
        comments = [root, first, second, *nested, deeper]
        original = build_reply_tree(root.id, comments)

        # Act
        rebuilt = build_reply_tree(root.id, reversed(flatten(original)))

        # Assert
        assert shape(rebuilt) == shape(original)
        assert shape(rebuilt) == (
            "r",
            0,
            [
                (
                    "r.1",
                    1,
                    [
                        ("r.1.0", 2, []),
                        ("r.1.1", 2, [("r.1.1.0", 3, [])]),
                        ("r.1.2", 2, []),
                    ],
                ),
                ("r.2", 1, []),
            ],
        )

    def test_missing_root_returns_none(self):
        a = reply_to(None, 0)

        assert build_reply_tree(uuid4(), [a]) is None

    def test_comments_outside_subtree_are_ignored(self):
        # Arrange
        a = reply_to(None, 0, "A")
        b = reply_to(a, 1, "B")
        stranger = reply_to(None, 2, "other thread")
        strangers_reply = reply_to(stranger, 3, "other reply")

        # Act
        tree = build_reply_tree(b.id, [a, b, stranger, strangers_reply])

        # Assert
        assert shape(tree) == ("B", 1, [])

    def test_deep_chain_is_not_limited_by_recursion(self):
        # Arrange
        chain = [reply_to(None, 0, "0")]
        for i in range(1, 3000):
            chain.append(
                make_comment(
                    SNIPPET_ID,
                    USER_ID,
                    parent_id=chain[-1].id,
                    depth=i,
                    created_at=T0 + timedelta(seconds=i),
                )
            )

        # Act
        tree = build_reply_tree(chain[0].id, chain)

        # Assert
        node, depth = tree, 0
        while node.replies:
            node = node.replies[0]
            depth += 1
        assert depth == 2999

    def test_cyclic_links_terminate(self):
        """Corrupted parent links that form a cycle do not loop forever."""
        # Arrange
        a = reply_to(None, 0, "A")
        b = reply_to(a, 1, "B")
        corrupted_a = a.model_copy(update={"parent_id": b.id})

        # Act
        tree = build_reply_tree(a.id, [corrupted_a, b])

        # Assert
        assert tree.content == "A"
        assert [r.content for r in tree.replies] == ["B"]
        assert tree.replies[0].replies == []


class TestBuildForest:
    def test_orphaned_replies_are_dropped(self):
        """A reply whose parent is gone does not start a thread of its own."""
        # Arrange
        first = reply_to(None, 0, "first")
        second = reply_to(None, 5, "second")
        reply = reply_to(first, 1, "reply")
        orphan = make_comment(
            SNIPPET_ID,
            USER_ID,
            parent_id=uuid4(),
            content="orphan",
            depth=1,
            created_at=T0 + timedelta(minutes=3),
        )

        # Act
        forest = build_forest([second, reply, orphan, first])

        # Assert
        assert [t.content for t in forest] == ["first", "second"]
        assert [r.content for r in forest[0].replies] == ["reply"]

    def test_empty_input(self):
        assert build_forest([]) == []


class TestBuildAncestorChain:
    def test_chain_runs_root_to_leaf(self):
        # Arrange
        a = reply_to(None, 0, "A")
        b = reply_to(a, 1, "B")
        c = reply_to(b, 2, "C")

        # Act
        chain = build_ancestor_chain(c.id, [b, c, a])

        # Assert
        assert [x.content for x in chain] == ["A", "B", "C"]
        assert [x.depth for x in chain] == [0, 1, 2]

    def test_root_has_chain_of_one(self):
        a = reply_to(None, 0, "A")

        assert [x.id for x in build_ancestor_chain(a.id, [a])] == [a.id]

    def test_dangling_parent_stops_the_walk(self):
        """A deleted ancestor ends the chain at the last resolvable comment."""
        # Arrange
        a = reply_to(None, 0, "A")
        b = reply_to(a, 1, "B")
        c = reply_to(b, 2, "C")

        # Act
        chain = build_ancestor_chain(c.id, [a, c])

        # Assert
        assert [x.content for x in chain] == ["C"]

    def test_unknown_leaf_is_empty(self):
        assert build_ancestor_chain(uuid4(), []) == []

    def test_cycle_terminates(self):
        a = reply_to(None, 0, "A")
        b = reply_to(a, 1, "B")
        corrupted_a = a.model_copy(update={"parent_id": b.id})

        chain = build_ancestor_chain(b.id, [corrupted_a, b])

        assert [x.content for x in chain] == ["A", "B"]
