"""Exception hierarchy for ast-canon.

Every error here is fatal: labeling is pure and in-memory, so nothing is
retried.  Callers that want a single ``except`` clause can catch
``CanonError``.
"""

from __future__ import annotations

from typing import Any


class CanonError(Exception):
    """Base class for all ast-canon errors."""


class ConfigurationError(CanonError):
    """Raised when a node kind has no resolvable property metadata."""

    def __init__(self, kind: str, reason: str | None = None) -> None:
        self.kind = kind
        message = f"No property metadata for node kind {kind!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class ShapeMismatchError(CanonError):
    """Raised when a property's runtime value disagrees with its declared kind."""

    def __init__(self, kind: str, prop: str, expected: str, actual: Any) -> None:
        self.kind = kind
        self.property = prop
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{kind}.{prop}: expected {expected}, got {type(actual).__name__}"
        )


class UnknownIdError(CanonError, ValueError):
    """Raised when querying a canonical id that was never allocated."""

    def __init__(self, canonical_id: Any, next_id: int) -> None:
        self.id = canonical_id
        super().__init__(
            f"Canonical id {canonical_id!r} is not allocated (valid range: [0, {next_id}))"
        )


class NotALeafError(CanonError, ValueError):
    """Raised when asking for the leaf text of a structural id."""

    def __init__(self, canonical_id: int) -> None:
        self.id = canonical_id
        super().__init__(f"Canonical id {canonical_id} is not a leaf value")
