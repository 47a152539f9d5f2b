"""pytest plugin for ast-canon.

Registered through the ``pytest11`` entry point in pyproject.toml, so any
test session in an environment where ast-canon is installed (editable
installs included) gets the ``assert_structurally_equivalent`` fixture
without touching conftest.py.
"""

from __future__ import annotations

from typing import Any

import pytest

from ast_canon.api import label_source
from ast_canon.labeler import Canonicalizer


def check_structurally_equivalent(actual: str, expected: str) -> None:
    """Raise AssertionError unless two Python sources share a root id.

    Both sources are labeled with one fresh Canonicalizer so their ids are
    comparable; the failure message carries both rendered trees.
    """
    canonicalizer = Canonicalizer()
    actual_tree = label_source(actual, canonicalizer)
    expected_tree = label_source(expected, canonicalizer)
    if actual_tree.label != expected_tree.label:
        raise AssertionError(
            f"Sources not structurally equivalent: "
            f"root={actual_tree.label} != expected root={expected_tree.label}\n"
            f"  actual:\n{canonicalizer.render(actual_tree)}\n"
            f"  expected:\n{canonicalizer.render(expected_tree)}"
        )


@pytest.fixture(scope="session")
def assert_structurally_equivalent() -> Any:
    """Fixture that returns a callable structural-equivalence asserter.

    Session-scoped because the returned callable is stateless (it creates a
    fresh Canonicalizer per call).

    Usage in tests::

        def test_reformat(assert_structurally_equivalent):
            assert_structurally_equivalent("i+=1", "i += 1")

        def test_rename(assert_structurally_equivalent):
            with pytest.raises(AssertionError, match=r"root="):
                assert_structurally_equivalent("i += 1", "j += 1")

    Returns:
        ``check_structurally_equivalent``.
    """
    return check_structurally_equivalent
