"""PropertyKind StrEnum and PropertyDescriptor dataclass.

A front-end describes every node kind as a fixed, ordered tuple of
PropertyDescriptor values.  The Canonicalizer dispatches on the kind tag
and never inspects node classes itself.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum, auto


class PropertyKind(StrEnum):
    """The three structural property shapes a node kind may declare.

    - LEAF       -> "leaf"       : a raw, hashable value (identifier, literal, flag)
    - CHILD      -> "child"      : a single node, or None when absent
    - CHILD_LIST -> "child_list" : an ordered sequence of nodes
    """

    LEAF = auto()
    CHILD = auto()
    CHILD_LIST = auto()


@dataclass(frozen=True, slots=True)
class PropertyDescriptor:
    """One named, classified property of a node kind."""

    name: str
    kind: PropertyKind
