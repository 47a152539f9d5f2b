"""LabelerConfig: immutable settings for the Canonicalizer.

These settings only govern diagnostics and rendering.  Nothing here can
change which ids are assigned; structural identity is decided by the
front-end's property table alone.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LabelerConfig:
    """Immutable configuration for a Canonicalizer.

    Attributes:
        log_allocations: When True, every first-time id allocation is sent to
            the allocation sink.  Default True.
        summary_width: Maximum width of the source summary carried by an
            allocation event (whitespace is collapsed first).  Must be >= 10.
        indent: Indentation unit used by ``CanonicalTree.render`` when the
            Canonicalizer renders on a caller's behalf.  Whitespace only.
    """

    log_allocations: bool = True
    summary_width: int = 80
    indent: str = "   "

    def __post_init__(self) -> None:
        if self.summary_width < 10:
            msg = f"summary_width must be >= 10, got {self.summary_width}"
            raise ValueError(msg)
        if self.indent.strip():
            msg = f"indent must contain only whitespace, got {self.indent!r}"
            raise ValueError(msg)
