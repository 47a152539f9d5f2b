"""CanonicalTree: the labeled output tree produced by the Canonicalizer.

Each node carries the text of its canonical id as ``label``.  Only the id is
shared between equivalent subtrees; every labeling call materializes its
own CanonicalTree instances.

Trees are immutable once built, apart from two deferred fields:
``post_order_id`` (assigned by a numbering pass) and the memoized size.
All walks use explicit stacks so that pathologically deep trees do not
hit the interpreter recursion limit.
"""

from __future__ import annotations

import weakref
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from ast_canon.protocols import LeafClassifier


@dataclass(slots=True, weakref_slot=True, eq=False, repr=False)
class CanonicalTree:
    """A node in the canonical tree.

    Attributes:
        label:          Text of the canonical id (e.g. ``"7"``).
        children:       Ordered child nodes.  Stored as a tuple; the children
                        get a weak back-reference to this node.
        post_order_id:  Externally assigned traversal index.  None until a
                        numbering pass (see ``number_post_order``) sets it.
    """

    label: str
    children: tuple[CanonicalTree, ...] = ()
    post_order_id: int | None = None
    _parent: weakref.ReferenceType[CanonicalTree] | None = field(
        default=None, init=False, repr=False, compare=False
    )
    _size: int | None = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.children = tuple(self.children)
        ref = weakref.ref(self)
        for child in self.children:
            child._parent = ref

    def __eq__(self, other: object) -> bool:
        """Compare label, post_order_id and children, ignoring the parent."""
        if not isinstance(other, CanonicalTree):
            return NotImplemented
        pending = [(self, other)]
        while pending:
            left, right = pending.pop()
            if left is right:
                continue
            if (
                left.label != right.label
                or left.post_order_id != right.post_order_id
                or len(left.children) != len(right.children)
            ):
                return False
            pending.extend(zip(left.children, right.children))
        return True

    def __repr__(self) -> str:
        # Shallow: children are summarized by count.
        return (
            f"CanonicalTree(label={self.label!r}, children=<{len(self.children)}>, "
            f"post_order_id={self.post_order_id!r})"
        )

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def id(self) -> int:
        """The canonical id this node is labeled with."""
        return int(self.label)

    @property
    def parent(self) -> CanonicalTree | None:
        """The enclosing node, or None for a root (or a collected parent)."""
        if self._parent is None:
            return None
        return self._parent()

    @property
    def child_count(self) -> int:
        return len(self.children)

    def child(self, index: int) -> CanonicalTree:
        return self.children[index]

    def iter_preorder(self) -> Iterator[CanonicalTree]:
        """Yield nodes parent-first, children in order."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.children))

    def iter_postorder(self) -> Iterator[CanonicalTree]:
        """Yield nodes children-first, left to right."""
        stack: list[tuple[CanonicalTree, bool]] = [(self, False)]
        while stack:
            node, expanded = stack.pop()
            if expanded:
                yield node
                continue
            stack.append((node, True))
            stack.extend((child, False) for child in reversed(node.children))

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def find_by_post_order_id(self, post_order_id: int) -> CanonicalTree | None:
        """Return the first pre-order node whose ``post_order_id`` matches.

        Unnumbered nodes never match, so ``None`` finds nothing.
        """
        if post_order_id is None:
            return None
        return _first(self.iter_preorder(), lambda n: n.post_order_id == post_order_id)

    def find_by_label(self, label: str) -> CanonicalTree | None:
        """Return the first pre-order node carrying ``label``."""
        return _first(self.iter_preorder(), lambda n: n.label == label)

    # ------------------------------------------------------------------
    # Size
    # ------------------------------------------------------------------

    def size(self) -> int:
        """Return the number of nodes in this subtree (memoized)."""
        if self._size is None:
            for node in self.iter_postorder():
                if node._size is None:
                    node._size = 1 + sum(child._size for child in node.children)  # type: ignore[misc]
        return self._size  # type: ignore[return-value]

    def count_occurrences_rooted_at(self, label: str) -> int:
        """Return the size of the first subtree labeled ``label``, or 0.

        Repetition is already collapsed into shared ids, so this measures how
        large the representative occurrence of a shape is, not how often the
        shape repeats.
        """
        found = self.find_by_label(label)
        if found is None:
            return 0
        return found.size()

    # ------------------------------------------------------------------
    # Post-order numbering
    # ------------------------------------------------------------------

    def number_post_order(self, start: int = 0) -> int:
        """Assign ``post_order_id`` to every node in post-order.

        Returns:
            The next unused number (``start + self.size()``).
        """
        next_number = start
        for node in self.iter_postorder():
            node.post_order_id = next_number
            next_number += 1
        return next_number

    def post_order_labels(self) -> np.ndarray:
        """Return the canonical ids of this subtree in post-order as int64."""
        return np.fromiter(
            (node.id for node in self.iter_postorder()),
            dtype=np.int64,
            count=self.size(),
        )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, classifier: LeafClassifier, indent: str = "   ") -> str:
        """Render the tree as indented, parenthesized text.

        Leaf children print inline as ``id:text``; structural children nest
        as ``(id: ...)``.  For example, a node 9 with leaf children 2 and 3::

            (9:
               2:i
               3:+=
               )

        Args:
            classifier: Usually the Canonicalizer that produced this tree.
            indent:     Indentation unit per depth level.
        """
        parts: list[str] = []
        # Entries: ("node", tree, depth) | ("leaf", tree, depth) | ("close", None, depth)
        stack: list[tuple[str, CanonicalTree | None, int]] = [("node", self, 0)]
        while stack:
            entry, node, depth = stack.pop()
            if entry == "close":
                parts.append(")\n" + indent * depth)
                continue
            assert node is not None
            if entry == "leaf":
                parts.append(f"{node.label}:{classifier.leaf_text(node.id)}")
                parts.append("\n" + indent * depth)
                continue
            parts.append(f"({node.label}")
            if not node.children:
                parts.append(")\n" + indent * depth)
                continue
            inner = depth + 1
            parts.append(":\n" + indent * inner)
            stack.append(("close", None, depth))
            for child in reversed(node.children):
                kind = "leaf" if classifier.is_leaf(child.id) else "node"
                stack.append((kind, child, inner))
        return "".join(parts)


def _first(nodes: Iterable[CanonicalTree], predicate) -> CanonicalTree | None:  # type: ignore[no-untyped-def]
    for node in nodes:
        if predicate(node):
            return node
    return None
