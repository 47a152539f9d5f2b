"""Table keys and representations for the canonical id tables.

Structural keys are tagged tuples rather than concatenated strings, so a
list shape can never collide with a node shape whatever the node-kind
tags look like.  Leaf keys carry the value's type alongside the value,
because Python considers ``1 == 1.0 == True`` and ``0.0 == -0.0``.
"""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from enum import StrEnum, auto
from typing import Any


class ShapeTag(StrEnum):
    """Discriminates node shapes from list shapes in the structural table."""

    NODE = auto()
    LIST = auto()


@dataclass(frozen=True, slots=True)
class StructuralKey:
    """(shape tag, node kind, ordered child ids).

    ``kind`` is None for list shapes.  ``str()`` gives the diagnostic form
    ``"BinOp:4;5;6;"`` or ``"[list]:4;5;"``.
    """

    tag: ShapeTag
    kind: str | None
    children: tuple[int, ...]

    def __str__(self) -> str:
        head = "[list]" if self.tag == ShapeTag.LIST else str(self.kind)
        return head + ":" + "".join(f"{child};" for child in self.children)


@dataclass(frozen=True, slots=True, eq=False)
class LeafValue:
    """Representation of a leaf id: the first-seen raw value."""

    value: Any

    def __str__(self) -> str:
        if self.value is None:
            return "<null>"
        return str(self.value)


@dataclass(frozen=True, slots=True)
class Marker:
    """Representation of a reserved id."""

    name: str

    def __str__(self) -> str:
        return self.name


NULL_MARKER = Marker("[null ID]")
LIST_MARKER = Marker("[list of AST nodes]")

Representation = Marker | LeafValue | StructuralKey


def leaf_key(value: Any) -> Hashable:
    """Return a type-tagged, hashable table key for a raw leaf value.

    - float / complex: keyed by ``repr`` (keeps -0.0 apart from 0.0; NaN
      equals itself).
    - tuple / frozenset: keyed element-wise.
    - anything else: keyed by (type, value).

    Raises:
        TypeError: If the value (or an element) is not hashable.
    """
    value_type = type(value)
    if value_type in (float, complex):
        return (value_type, repr(value))
    if value_type is tuple:
        return (tuple, tuple(leaf_key(item) for item in value))
    if value_type is frozenset:
        return (frozenset, frozenset(leaf_key(item) for item in value))
    # Raises TypeError early for unhashable values such as lists or dicts.
    hash(value)
    return (value_type, value)
