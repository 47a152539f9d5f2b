"""ast-canon - hash-consing of syntax trees for structural clone detection."""

from __future__ import annotations

from ast_canon.api import label_source, render_source, structurally_equal
from ast_canon.config import LabelerConfig
from ast_canon.errors import (
    CanonError,
    ConfigurationError,
    NotALeafError,
    ShapeMismatchError,
    UnknownIdError,
)
from ast_canon.labeler import (
    FIRST_ID,
    LIST_ID,
    NULL_ID,
    AllocationEvent,
    Canonicalizer,
    log_allocation,
)
from ast_canon.protocols import LeafClassifier, PropertyAccessor
from ast_canon.tree.nodes import CanonicalTree

__version__: str = "0.1.0"
__all__: list[str] = [
    "FIRST_ID",
    "LIST_ID",
    "NULL_ID",
    "AllocationEvent",
    "CanonError",
    "CanonicalTree",
    "Canonicalizer",
    "ConfigurationError",
    "LabelerConfig",
    "LeafClassifier",
    "NotALeafError",
    "PropertyAccessor",
    "ShapeMismatchError",
    "UnknownIdError",
    "label_source",
    "log_allocation",
    "render_source",
    "structurally_equal",
]
