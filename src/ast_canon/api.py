"""Public convenience functions for canonicalizing Python source.

Each call creates a fresh ``Canonicalizer`` unless one is passed in, so
absolute ids never leak between unrelated calls.  Parsing is delegated to
``ast.parse``; its ``SyntaxError`` propagates unchanged.
"""

from __future__ import annotations

import ast

from ast_canon.labeler import Canonicalizer
from ast_canon.tree.nodes import CanonicalTree

__all__ = ["label_source", "render_source", "structurally_equal"]


def label_source(
    source: str,
    canonicalizer: Canonicalizer | None = None,
    filename: str = "<unknown>",
) -> CanonicalTree:
    """Parse Python ``source`` and return its CanonicalTree.

    Pass the same ``canonicalizer`` for several files to share ids across
    them (cross-file duplicate detection).

    Args:
        source:        Python source text.
        canonicalizer: Instance whose tables are used and extended.  A fresh
                       one is created when None.
        filename:      Reported in ``SyntaxError`` messages.
    """
    if canonicalizer is None:
        canonicalizer = Canonicalizer()
    return canonicalizer.label(ast.parse(source, filename=filename))


def structurally_equal(left_source: str, right_source: str) -> bool:
    """Return True if two Python sources differ only in formatting.

    Comments, whitespace, and line layout are ignored; identifiers, literals,
    and structure are not.
    """
    canonicalizer = Canonicalizer()
    left = label_source(left_source, canonicalizer)
    right = label_source(right_source, canonicalizer)
    return left.label == right.label


def render_source(source: str) -> str:
    """Parse, label, and render Python ``source`` as indented text."""
    canonicalizer = Canonicalizer()
    return canonicalizer.render(label_source(source, canonicalizer))
