"""Shared fixtures: a toy PropertyAccessor independent of Python's ``ast``.

The toy grammar is small enough that expected ids can be worked out by
hand.  Every toy node is a ``ToyNode(kind, props)``; the accessor reads
``props`` by property name.
"""

from __future__ import annotations

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any

import pytest

from ast_canon.errors import ConfigurationError
from ast_canon.labeler import AllocationEvent, Canonicalizer
from ast_canon.tree.properties import PropertyDescriptor, PropertyKind

LEAF = PropertyKind.LEAF
CHILD = PropertyKind.CHILD
CHILD_LIST = PropertyKind.CHILD_LIST

TOY_GRAMMAR: dict[str, tuple[PropertyDescriptor, ...]] = {
    "Num": (PropertyDescriptor("value", LEAF),),
    "Var": (PropertyDescriptor("name", LEAF),),
    "Add": (PropertyDescriptor("left", CHILD), PropertyDescriptor("right", CHILD)),
    "Call": (PropertyDescriptor("func", CHILD), PropertyDescriptor("args", CHILD_LIST)),
    "Block": (PropertyDescriptor("stmts", CHILD_LIST),),
    "Opt": (PropertyDescriptor("inner", CHILD),),
    "Pair": (
        PropertyDescriptor("first", CHILD_LIST),
        PropertyDescriptor("second", CHILD_LIST),
    ),
    # A kind whose name mimics the list-key text; must never collide with lists.
    "[list]": (PropertyDescriptor("inner", CHILD),),
}


@dataclass(eq=False)
class ToyNode:
    kind: str
    props: dict[str, Any] = field(default_factory=dict)


class ToyAccessor:
    """PropertyAccessor over ToyNode trees."""

    def __init__(self, grammar: Mapping[str, tuple[PropertyDescriptor, ...]]) -> None:
        self._grammar = grammar

    def kind_of(self, node: Any) -> str:
        return node.kind if isinstance(node, ToyNode) else type(node).__name__

    def properties(self, kind: str) -> tuple[PropertyDescriptor, ...]:
        try:
            return self._grammar[kind]
        except KeyError:
            raise ConfigurationError(kind) from None

    def value_of(self, node: Any, descriptor: PropertyDescriptor) -> Any:
        default: Any = [] if descriptor.kind == CHILD_LIST else None
        return node.props.get(descriptor.name, default)

    def is_node(self, obj: Any) -> bool:
        return isinstance(obj, ToyNode)

    def describe(self, node: Any) -> str:
        return node.kind


def make_node(kind: str, **props: Any) -> ToyNode:
    return ToyNode(kind, props)


@pytest.fixture
def toy_accessor() -> ToyAccessor:
    return ToyAccessor(TOY_GRAMMAR)


@pytest.fixture
def n() -> Callable[..., ToyNode]:
    """Factory: ``n("Add", left=..., right=...)``."""
    return make_node


@pytest.fixture
def events() -> list[AllocationEvent]:
    """Collects allocation events when passed as a sink via ``events.append``."""
    return []


@pytest.fixture
def canon(toy_accessor: ToyAccessor, events: list[AllocationEvent]) -> Canonicalizer:
    """A fresh Canonicalizer over the toy grammar, recording events."""
    return Canonicalizer(toy_accessor, sink=events.append)
