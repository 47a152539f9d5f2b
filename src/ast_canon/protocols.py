"""Protocols for the ast-canon extension points.

``PropertyAccessor`` is the front-end boundary: anything that can name a
node's kind, list that kind's ordered properties, and read them can be
canonicalized.  No inheritance required -- any class with conformant
methods passes ``isinstance`` checks.

Example::

    from ast_canon.protocols import PropertyAccessor
    from ast_canon.frontends import PythonAstAccessor

    assert isinstance(PythonAstAccessor(), PropertyAccessor)  # True
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ast_canon.tree.properties import PropertyDescriptor


@runtime_checkable
class PropertyAccessor(Protocol):
    """Structural protocol for syntax-tree front-ends.

    Implementations must:
    - Return the same ordered descriptors for a kind on every call.
    - Raise ``ConfigurationError`` from ``properties`` for unknown kinds.
    - Return, from ``value_of``, the raw value for LEAF properties, a node
      or None for CHILD properties, and a list/tuple for CHILD_LIST ones.
    """

    def kind_of(self, node: Any) -> str: ...

    def properties(self, kind: str) -> Sequence[PropertyDescriptor]: ...

    def value_of(self, node: Any, descriptor: PropertyDescriptor) -> Any: ...

    def is_node(self, obj: Any) -> bool: ...

    def describe(self, node: Any) -> str: ...


@runtime_checkable
class LeafClassifier(Protocol):
    """What ``CanonicalTree.render`` needs to know about ids."""

    def is_leaf(self, canonical_id: int) -> bool: ...

    def leaf_text(self, canonical_id: int) -> str: ...
