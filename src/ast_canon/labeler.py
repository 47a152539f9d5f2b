"""Canonicalizer: bottom-up hash-consing of syntax trees into canonical ids.

Every distinct leaf value and every distinct subtree shape is assigned a
dense integer id.  Two subtrees get the same id exactly when they have the
same node kind and their properties have equal ids, position by position,
down to equal leaf values.  For example ``i+=1`` and ``i += 1`` produce the
same root id, while ``j += 1`` differs at the ``Name`` leaf and at every
ancestor above it.

Id space:
- 0  reserved for an absent child
- 1  reserved as the list-shape marker
- 2+ allocated in first-encounter order during traversal

Leaf ids and structural ids share one counter but live in separate lookup
tables.  Node shapes and list shapes share the structural table and are
kept apart by ``ShapeTag``.  Tables persist across ``label`` calls, so
labeling several trees with one instance finds duplicates across them.

The traversal uses an explicit frame stack rather than recursion.  The
allocation order matches the obvious recursive formulation: properties
left to right, list elements before their list, children before parent.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Hashable, Sequence
from dataclasses import dataclass, field
from typing import Any

import numpy as np

from ast_canon.config import LabelerConfig
from ast_canon.errors import NotALeafError, ShapeMismatchError, UnknownIdError
from ast_canon.frontends.python_ast import PythonAstAccessor
from ast_canon.protocols import PropertyAccessor
from ast_canon.tree.keys import (
    LIST_MARKER,
    NULL_MARKER,
    LeafValue,
    Representation,
    ShapeTag,
    StructuralKey,
    leaf_key,
)
from ast_canon.tree.nodes import CanonicalTree
from ast_canon.tree.properties import PropertyDescriptor, PropertyKind

__all__ = [
    "FIRST_ID",
    "LIST_ID",
    "NULL_ID",
    "UNAVAILABLE_SUMMARY",
    "AllocationEvent",
    "AllocationSink",
    "Canonicalizer",
    "log_allocation",
]

logger = logging.getLogger(__name__)

NULL_ID = 0
LIST_ID = 1
FIRST_ID = 2

# Event value when the front-end cannot describe a node.
UNAVAILABLE_SUMMARY = "<unavailable>"


@dataclass(frozen=True, slots=True)
class AllocationEvent:
    """A first-time id allocation, as reported to the allocation sink.

    Attributes:
        id:    The newly allocated canonical id.
        kind:  ``"leaf"``, ``"list"``, or the node-kind tag.
        value: Leaf text, or a whitespace-collapsed source summary.
        key:   The structural key; None for leaves.
    """

    id: int
    kind: str
    value: str
    key: StructuralKey | None = None

    def format(self) -> str:
        if self.key is None:
            return f"CREATED {self.kind} id={self.id}, value={self.value}"
        return f"CREATED {self.kind} id={self.id}, key={{{self.key}}}, value=<{self.value}>"


AllocationSink = Callable[[AllocationEvent], None]


def log_allocation(event: AllocationEvent) -> None:
    """Default sink: one DEBUG line per allocation on this module's logger."""
    logger.debug(event.format())


@dataclass(slots=True)
class _Frame:
    """Traversal state for one node whose properties are being labeled."""

    node: Any
    kind: str
    properties: Sequence[PropertyDescriptor]
    index: int = 0
    results: list[CanonicalTree] = field(default_factory=list)
    # Set while the property at ``index`` is a ChildList being walked.
    items: Sequence[Any] | None = None
    item_index: int = 0
    item_results: list[CanonicalTree] = field(default_factory=list)


class Canonicalizer:
    """Assigns canonical ids to syntax-tree nodes and remembers them.

    Example::

        import ast
        from ast_canon import Canonicalizer

        canon = Canonicalizer()
        a = canon.label(ast.parse("x = a + b"))
        b = canon.label(ast.parse("y = a+b"))
        # The BinOp "a + b" gets one id across both trees.
        a.children[0].children[0].children[1].label == b.children[0].children[0].children[1].label

    Not thread-safe: the tables are mutable state scoped to the instance.
    Serialize concurrent ``label`` calls on one instance externally.
    """

    def __init__(
        self,
        accessor: PropertyAccessor | None = None,
        config: LabelerConfig | None = None,
        sink: AllocationSink | None = None,
    ) -> None:
        """Initialise empty tables.

        Args:
            accessor: Front-end describing node kinds and their properties.
                Defaults to ``PythonAstAccessor()`` for CPython ``ast`` trees.
            config:   Diagnostics / rendering settings.  Defaults to
                ``LabelerConfig()``.
            sink:     Receives one ``AllocationEvent`` per new id.  Defaults to
                ``log_allocation``.  Exceptions raised by the sink are logged
                and otherwise ignored.
        """
        self._accessor: PropertyAccessor = (
            accessor if accessor is not None else PythonAstAccessor()
        )
        self._config = config if config is not None else LabelerConfig()
        self._sink: AllocationSink = sink if sink is not None else log_allocation

        self._next_id = FIRST_ID
        self._leaf_ids: dict[Hashable, int] = {}
        self._structure_ids: dict[StructuralKey, int] = {}
        self._representations: list[Representation] = [NULL_MARKER, LIST_MARKER]
        self._annotations: list[str] = [NULL_MARKER.name, LIST_MARKER.name]

    @property
    def accessor(self) -> PropertyAccessor:
        return self._accessor

    @property
    def config(self) -> LabelerConfig:
        return self._config

    # ------------------------------------------------------------------
    # Labeling
    # ------------------------------------------------------------------

    def label(self, root: Any) -> CanonicalTree:
        """Label ``root`` bottom-up and return its CanonicalTree.

        Raises:
            ConfigurationError: A node kind has no property metadata.
            ShapeMismatchError: A property value disagrees with its declared kind.
        """
        stack = [self._open(root)]
        finished: CanonicalTree | None = None
        while True:
            frame = stack[-1]
            if finished is not None:
                if frame.items is not None:
                    frame.item_results.append(finished)
                    frame.item_index += 1
                else:
                    frame.results.append(finished)
                    frame.index += 1
                finished = None

            pending = self._advance(frame)
            if pending is not None:
                stack.append(self._open(pending))
                continue

            stack.pop()
            finished = self._close(frame)
            if not stack:
                return finished

    def _open(self, node: Any) -> _Frame:
        kind = self._accessor.kind_of(node)
        return _Frame(node=node, kind=kind, properties=self._accessor.properties(kind))

    def _advance(self, frame: _Frame) -> Any | None:
        """Label inline what needs no descent; return the next node to descend into.

        Returns None once every property of ``frame`` has a result.
        """
        while True:
            if frame.items is not None:
                while frame.item_index < len(frame.items):
                    item = frame.items[frame.item_index]
                    if item is None:
                        frame.item_results.append(CanonicalTree(str(NULL_ID)))
                        frame.item_index += 1
                        continue
                    if not self._accessor.is_node(item):
                        descriptor = frame.properties[frame.index]
                        raise ShapeMismatchError(
                            frame.kind, descriptor.name, "a list of nodes", item
                        )
                    return item
                frame.results.append(self._close_list(frame))
                frame.items = None
                frame.index += 1
                continue

            if frame.index >= len(frame.properties):
                return None

            descriptor = frame.properties[frame.index]
            value = self._accessor.value_of(frame.node, descriptor)

            if descriptor.kind == PropertyKind.LEAF:
                if self._accessor.is_node(value):
                    raise ShapeMismatchError(frame.kind, descriptor.name, "a leaf value", value)
                frame.results.append(CanonicalTree(str(self._leaf_id(frame, descriptor, value))))
                frame.index += 1
            elif descriptor.kind == PropertyKind.CHILD:
                if value is None:
                    frame.results.append(CanonicalTree(str(NULL_ID)))
                    frame.index += 1
                elif self._accessor.is_node(value):
                    return value
                else:
                    raise ShapeMismatchError(frame.kind, descriptor.name, "a node or None", value)
            else:
                if not isinstance(value, (list, tuple)):
                    raise ShapeMismatchError(frame.kind, descriptor.name, "a list of nodes", value)
                frame.items = value
                frame.item_index = 0
                frame.item_results = []

    def _close_list(self, frame: _Frame) -> CanonicalTree:
        elements = frame.item_results
        key = StructuralKey(ShapeTag.LIST, None, tuple(child.id for child in elements))
        list_id = self._structure_ids.get(key)
        if list_id is None:
            items = frame.items or ()
            list_id = self._allocate_structure(
                key, "List", lambda: self._summarize_list(items)
            )
        return CanonicalTree(str(list_id), tuple(elements))

    def _close(self, frame: _Frame) -> CanonicalTree:
        key = StructuralKey(
            ShapeTag.NODE, frame.kind, tuple(child.id for child in frame.results)
        )
        node_id = self._structure_ids.get(key)
        if node_id is None:
            node = frame.node
            node_id = self._allocate_structure(
                key, frame.kind, lambda: self._accessor.describe(node)
            )
        return CanonicalTree(str(node_id), tuple(frame.results))

    # ------------------------------------------------------------------
    # Allocation
    # ------------------------------------------------------------------

    def _leaf_id(self, frame: _Frame, descriptor: PropertyDescriptor, value: Any) -> int:
        try:
            key = leaf_key(value)
        except TypeError:
            raise ShapeMismatchError(
                frame.kind, descriptor.name, "a hashable leaf value", value
            ) from None
        leaf_id = self._leaf_ids.get(key)
        if leaf_id is not None:
            return leaf_id

        leaf_id = self._take_id()
        self._leaf_ids[key] = leaf_id
        representation = LeafValue(value)
        self._representations.append(representation)
        self._annotations.append("Leaf")
        self._emit(lambda: AllocationEvent(leaf_id, "leaf", str(representation)))
        return leaf_id

    def _allocate_structure(
        self, key: StructuralKey, annotation: str, summary: Callable[[], str]
    ) -> int:
        structure_id = self._take_id()
        self._structure_ids[key] = structure_id
        self._representations.append(key)
        self._annotations.append(annotation)
        kind = "list" if key.tag == ShapeTag.LIST else annotation
        self._emit(
            lambda: AllocationEvent(structure_id, kind, self._summarize(summary), key)
        )
        return structure_id

    def _summarize(self, summary: Callable[[], str]) -> str:
        try:
            text = summary()
        except Exception:
            logger.exception("Source summary failed; emitting event without it")
            return UNAVAILABLE_SUMMARY
        return self._shorten(text)

    def _take_id(self) -> int:
        allocated = self._next_id
        self._next_id += 1
        return allocated

    def _emit(self, build: Callable[[], AllocationEvent]) -> None:
        if not self._config.log_allocations:
            return
        try:
            self._sink(build())
        except Exception:
            logger.exception("Allocation sink failed; labeling continues")

    def _summarize_list(self, items: Sequence[Any]) -> str:
        return ", ".join(
            "<null>" if item is None else self._accessor.describe(item) for item in items
        )

    def _shorten(self, text: str) -> str:
        collapsed = " ".join(text.split())
        width = self._config.summary_width
        if len(collapsed) <= width:
            return collapsed
        return collapsed[: width - 3] + "..."

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def next_available_id(self) -> int:
        """The allocation frontier: every id below it is allocated."""
        return self._next_id

    def is_leaf(self, canonical_id: int) -> bool:
        """Return True iff ``canonical_id`` denotes a leaf value.

        Raises:
            UnknownIdError: The id was never allocated.
        """
        return isinstance(self.representation(canonical_id), LeafValue)

    def leaf_text(self, canonical_id: int) -> str:
        """Return the text of a leaf id's first-seen value (``<null>`` for None).

        Raises:
            UnknownIdError: The id was never allocated.
            NotALeafError:  The id denotes a structure or a reserved marker.
        """
        representation = self.representation(canonical_id)
        if not isinstance(representation, LeafValue):
            raise NotALeafError(canonical_id)
        return str(representation)

    def representation(self, canonical_id: int) -> Representation:
        """Return the stored Marker, LeafValue or StructuralKey for an id."""
        self._check_id(canonical_id)
        return self._representations[canonical_id]

    def annotation(self, canonical_id: int) -> str:
        """Return the kind name recorded when the id was allocated."""
        self._check_id(canonical_id)
        return self._annotations[canonical_id]

    def annotated_representation(self, canonical_id: int) -> str:
        """Return leaf text, or ``"<annotation>#<key>"`` for everything else."""
        representation = self.representation(canonical_id)
        if isinstance(representation, LeafValue):
            return str(representation)
        return f"{self._annotations[canonical_id]}#{representation}"

    def leaf_mask(self) -> np.ndarray:
        """Return a bool array over ``[0, next_available_id())``, True at leaf ids."""
        return np.fromiter(
            (isinstance(rep, LeafValue) for rep in self._representations),
            dtype=bool,
            count=len(self._representations),
        )

    def render(self, tree: CanonicalTree) -> str:
        """Render ``tree`` using this instance's tables and configured indent."""
        return tree.render(self, indent=self._config.indent)

    def _check_id(self, canonical_id: int) -> None:
        if (
            isinstance(canonical_id, bool)
            or not isinstance(canonical_id, (int, np.integer))
            or not 0 <= canonical_id < self._next_id
        ):
            raise UnknownIdError(canonical_id, self._next_id)
