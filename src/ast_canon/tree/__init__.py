"""Tree subpackage: canonical tree and table-key primitives.

Re-exports the public API for the tree module:
- CanonicalTree: labeled output tree (lookup, size, rendering)
- PropertyKind / PropertyDescriptor: how a front-end describes node kinds
- ShapeTag / StructuralKey / LeafValue / Marker: id-table representations
"""

from ast_canon.tree.keys import (
    LIST_MARKER,
    NULL_MARKER,
    LeafValue,
    Marker,
    ShapeTag,
    StructuralKey,
    leaf_key,
)
from ast_canon.tree.nodes import CanonicalTree
from ast_canon.tree.properties import PropertyDescriptor, PropertyKind

__all__ = [
    "LIST_MARKER",
    "NULL_MARKER",
    "CanonicalTree",
    "LeafValue",
    "Marker",
    "PropertyDescriptor",
    "PropertyKind",
    "ShapeTag",
    "StructuralKey",
    "leaf_key",
]
