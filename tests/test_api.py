"""Unit tests for the public API functions: label_source, structurally_equal, render_source."""

from __future__ import annotations

import pytest

from ast_canon import (
    Canonicalizer,
    CanonicalTree,
    label_source,
    render_source,
    structurally_equal,
)


class TestLabelSource:
    """Tests for the label_source() function."""

    def test_returns_canonical_tree(self) -> None:
        tree = label_source("x = 1")
        assert isinstance(tree, CanonicalTree)
        assert tree.id >= 2

    def test_fresh_canonicalizer_per_call(self) -> None:
        first = label_source("total = price * qty")
        second = label_source("other = a - b")
        # Unrelated calls start from the same id frontier.
        assert first.find_by_label("2") is not None
        assert second.find_by_label("2") is not None

    def test_shared_canonicalizer_finds_cross_file_duplicates(self) -> None:
        canon = Canonicalizer()
        a = label_source("def f(x):\n    return x + 1\n", canon)
        b = label_source("def f(x):  # same\n    return (x+1)\n", canon)
        assert a.label == b.label

    def test_shared_canonicalizer_extends_tables(self) -> None:
        canon = Canonicalizer()
        label_source("x = 1", canon)
        frontier = canon.next_available_id()
        label_source("y = 2", canon)
        assert canon.next_available_id() > frontier

    def test_syntax_error_propagates_with_filename(self) -> None:
        with pytest.raises(SyntaxError) as excinfo:
            label_source("def (:", filename="broken.py")
        assert excinfo.value.filename == "broken.py"


class TestStructurallyEqual:
    """Tests for the structurally_equal() function."""

    @pytest.mark.parametrize(
        ("left", "right"),
        [
            ("i+=1", "i += 1"),
            ("x = (a)", "x = a"),
            ("f(a,b)", "f(\n    a,\n    b,\n)"),
            ("# header\npass\n", "pass"),
            ("x = 'text'", 'x = "text"'),
        ],
    )
    def test_formatting_only_differences(self, left: str, right: str) -> None:
        assert structurally_equal(left, right) is True

    @pytest.mark.parametrize(
        ("left", "right"),
        [
            ("i += 1", "j += 1"),
            ("i += 1", "i -= 1"),
            ("x = 1", "x = 2"),
            ("x = 1", "x = 1.0"),
            ("a; b", "b; a"),
            ("f(a)", "f(a, None)"),
        ],
    )
    def test_semantic_differences(self, left: str, right: str) -> None:
        assert structurally_equal(left, right) is False


class TestRenderSource:
    """Tests for the render_source() function."""

    def test_starts_with_root(self) -> None:
        rendered = render_source("i += 1")
        assert rendered.startswith("(12:\n")
        assert "2:i" in rendered

    def test_deterministic(self) -> None:
        source = "for k, v in items:\n    print(k, v)\n"
        assert render_source(source) == render_source(source)

    def test_empty_module(self) -> None:
        # Module(body=[], type_ignores=[]) -> both lists share one id.
        assert render_source("") == "(3:\n   (2)\n   (2)\n   )\n"
