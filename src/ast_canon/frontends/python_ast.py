"""PythonAstAccessor: PropertyAccessor for CPython ``ast`` trees.

The grammar below is a closed, statically declared table in ASDL notation
(the same notation as CPython's ``Parser/Python.asdl``).  It is parsed
once per accessor configuration and shared process-wide through a
``cachetools`` cache; every accessor with the same ``ignored_properties``
gets the same table object.

Field classification:
- builtin types (identifier, string, int, constant) -> LEAF
  (``identifier*`` is a LEAF too, frozen to a tuple)
- ``T*``                                            -> CHILD_LIST
- ``T`` / ``T?``                                    -> CHILD

Attributes such as ``lineno`` and ``col_offset`` are not fields and are
never canonicalized, so ``i+=1`` and ``i += 1`` label identically.

The table covers CPython 3.11 through 3.14.  At load time it is filtered
against the running interpreter: kinds absent from ``ast`` are dropped,
and declared fields absent from a class's ``_fields`` are dropped.  A kind
whose class has fields the table does not declare is excluded (with a
warning), so encountering it raises ConfigurationError instead of silently
ignoring structure.
"""

from __future__ import annotations

import ast
import logging
import re
import threading
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Any

from cachetools import LRUCache, cached

from ast_canon.errors import ConfigurationError
from ast_canon.tree.properties import PropertyDescriptor, PropertyKind

__all__ = ["PYTHON_GRAMMAR", "PythonAstAccessor", "load_grammar"]

logger = logging.getLogger(__name__)

PYTHON_GRAMMAR = """
Module(stmt* body, type_ignore* type_ignores)
Interactive(stmt* body)
Expression(expr body)
FunctionType(expr* argtypes, expr returns)

FunctionDef(identifier name, arguments args, stmt* body, expr* decorator_list,
            expr? returns, string? type_comment, type_param* type_params)
AsyncFunctionDef(identifier name, arguments args, stmt* body, expr* decorator_list,
                 expr? returns, string? type_comment, type_param* type_params)
ClassDef(identifier name, expr* bases, keyword* keywords, stmt* body,
         expr* decorator_list, type_param* type_params)
Return(expr? value)
Delete(expr* targets)
Assign(expr* targets, expr value, string? type_comment)
TypeAlias(expr name, type_param* type_params, expr value)
AugAssign(expr target, operator op, expr value)
AnnAssign(expr target, expr annotation, expr? value, int simple)
For(expr target, expr iter, stmt* body, stmt* orelse, string? type_comment)
AsyncFor(expr target, expr iter, stmt* body, stmt* orelse, string? type_comment)
While(expr test, stmt* body, stmt* orelse)
If(expr test, stmt* body, stmt* orelse)
With(withitem* items, stmt* body, string? type_comment)
AsyncWith(withitem* items, stmt* body, string? type_comment)
Match(expr subject, match_case* cases)
Raise(expr? exc, expr? cause)
Try(stmt* body, excepthandler* handlers, stmt* orelse, stmt* finalbody)
TryStar(stmt* body, excepthandler* handlers, stmt* orelse, stmt* finalbody)
Assert(expr test, expr? msg)
Import(alias* names)
ImportFrom(identifier? module, alias* names, int? level)
Global(identifier* names)
Nonlocal(identifier* names)
Expr(expr value)
Pass
Break
Continue

BoolOp(boolop op, expr* values)
NamedExpr(expr target, expr value)
BinOp(expr left, operator op, expr right)
UnaryOp(unaryop op, expr operand)
Lambda(arguments args, expr body)
IfExp(expr test, expr body, expr orelse)
Dict(expr* keys, expr* values)
Set(expr* elts)
ListComp(expr elt, comprehension* generators)
SetComp(expr elt, comprehension* generators)
DictComp(expr key, expr value, comprehension* generators)
GeneratorExp(expr elt, comprehension* generators)
Await(expr value)
Yield(expr? value)
YieldFrom(expr value)
Compare(expr left, cmpop* ops, expr* comparators)
Call(expr func, expr* args, keyword* keywords)
FormattedValue(expr value, int conversion, expr? format_spec)
Interpolation(expr value, constant str, int conversion, expr? format_spec)
JoinedStr(expr* values)
TemplateStr(expr* values)
Constant(constant value, string? kind)
Attribute(expr value, identifier attr, expr_context ctx)
Subscript(expr value, expr slice, expr_context ctx)
Starred(expr value, expr_context ctx)
Name(identifier id, expr_context ctx)
List(expr* elts, expr_context ctx)
Tuple(expr* elts, expr_context ctx)
Slice(expr? lower, expr? upper, expr? step)

Load
Store
Del
And
Or
Add
Sub
Mult
MatMult
Div
Mod
Pow
LShift
RShift
BitOr
BitXor
BitAnd
FloorDiv
Invert
Not
UAdd
USub
Eq
NotEq
Lt
LtE
Gt
GtE
Is
IsNot
In
NotIn

comprehension(expr target, expr iter, expr* ifs, int is_async)
ExceptHandler(expr? type, identifier? name, stmt* body)
arguments(arg* posonlyargs, arg* args, arg? vararg, arg* kwonlyargs,
          expr* kw_defaults, arg? kwarg, expr* defaults)
arg(identifier arg, expr? annotation, string? type_comment)
keyword(identifier? arg, expr value)
alias(identifier name, identifier? asname)
withitem(expr context_expr, expr? optional_vars)
match_case(pattern pattern, expr? guard, stmt* body)

MatchValue(expr value)
MatchSingleton(constant value)
MatchSequence(pattern* patterns)
MatchMapping(expr* keys, pattern* patterns, identifier? rest)
MatchClass(expr cls, pattern* patterns, identifier* kwd_attrs, pattern* kwd_patterns)
MatchStar(identifier? name)
MatchAs(pattern? pattern, identifier? name)
MatchOr(pattern* patterns)

TypeIgnore(int lineno, string tag)

TypeVar(identifier name, expr? bound, expr? default_value)
ParamSpec(identifier name, expr? default_value)
TypeVarTuple(identifier name, expr? default_value)
"""

_BUILTIN_TYPES = frozenset({"identifier", "string", "int", "constant"})

# One constructor: Name, optionally followed by a parenthesized field list
# that may span lines.
_CONSTRUCTOR = re.compile(r"(\w+)\s*(?:\(([^)]*)\))?")
_FIELD = re.compile(r"(\w+)([*?]?)\s+(\w+)")

_grammar_lock = threading.Lock()


def _parse_declarations(text: str) -> dict[str, tuple[PropertyDescriptor, ...]]:
    """Parse ASDL constructor lines into ``{kind: descriptors}``."""
    declarations: dict[str, tuple[PropertyDescriptor, ...]] = {}
    for match in _CONSTRUCTOR.finditer(text):
        kind, body = match.group(1), match.group(2) or ""
        descriptors = []
        for raw_field in body.split(","):
            raw_field = raw_field.strip()
            if not raw_field:
                continue
            field_match = _FIELD.fullmatch(raw_field)
            if field_match is None:
                raise ConfigurationError(kind, f"malformed field declaration {raw_field!r}")
            type_name, quantifier, name = field_match.groups()
            if type_name in _BUILTIN_TYPES:
                prop_kind = PropertyKind.LEAF
            elif quantifier == "*":
                prop_kind = PropertyKind.CHILD_LIST
            else:
                prop_kind = PropertyKind.CHILD
            descriptors.append(PropertyDescriptor(name, prop_kind))
        declarations[kind] = tuple(descriptors)
    return declarations


def _is_ignored(kind: str, name: str, ignored: frozenset[str]) -> bool:
    return name in ignored or f"{kind}.{name}" in ignored


@cached(cache=LRUCache(maxsize=16), lock=_grammar_lock)
def load_grammar(
    ignored_properties: frozenset[str] = frozenset(),
) -> Mapping[str, tuple[PropertyDescriptor, ...]]:
    """Build the property table for the running interpreter.

    Memoized per ``ignored_properties``; the result is a read-only mapping
    shared by every accessor with that configuration.

    Args:
        ignored_properties: Entries ``"field"`` (all kinds) or ``"Kind.field"``
            naming properties to leave out of canonicalization.

    Returns:
        Mapping of node-kind name to its ordered property descriptors.
    """
    table: dict[str, tuple[PropertyDescriptor, ...]] = {}
    for kind, declared in _parse_declarations(PYTHON_GRAMMAR).items():
        node_class = getattr(ast, kind, None)
        if not (isinstance(node_class, type) and issubclass(node_class, ast.AST)):
            continue
        by_name = {descriptor.name: descriptor for descriptor in declared}
        undeclared = [name for name in node_class._fields if name not in by_name]
        if undeclared:
            logger.warning(
                "Excluding ast.%s: fields %s are not declared in the grammar table",
                kind,
                ", ".join(undeclared),
            )
            continue
        table[kind] = tuple(
            by_name[name]
            for name in node_class._fields
            if not _is_ignored(kind, name, ignored_properties)
        )
    logger.debug("Loaded Python grammar table with %d node kinds", len(table))
    return MappingProxyType(table)


class PythonAstAccessor:
    """Front-end for trees produced by ``ast.parse``.

    Satisfies the ``PropertyAccessor`` Protocol structurally.

    Example::

        import ast
        from ast_canon import Canonicalizer
        from ast_canon.frontends import PythonAstAccessor

        accessor = PythonAstAccessor(ignored_properties={"type_comment"})
        tree = Canonicalizer(accessor).label(ast.parse("i += 1"))
    """

    def __init__(self, ignored_properties: Iterable[str] = ()) -> None:
        self._ignored = frozenset(ignored_properties)
        self._table = load_grammar(self._ignored)

    @property
    def ignored_properties(self) -> frozenset[str]:
        return self._ignored

    @property
    def kinds(self) -> frozenset[str]:
        """Every node kind this accessor can label."""
        return frozenset(self._table)

    def kind_of(self, node: Any) -> str:
        return type(node).__name__

    def properties(self, kind: str) -> tuple[PropertyDescriptor, ...]:
        try:
            return self._table[kind]
        except KeyError:
            raise ConfigurationError(
                kind, "not a node kind of this interpreter's ast grammar"
            ) from None

    def value_of(self, node: Any, descriptor: PropertyDescriptor) -> Any:
        # Hand-built nodes on older interpreters may lack optional fields.
        if descriptor.kind == PropertyKind.CHILD_LIST:
            value = getattr(node, descriptor.name, [])
        else:
            value = getattr(node, descriptor.name, None)
        if descriptor.kind == PropertyKind.LEAF and isinstance(value, list):
            return tuple(value)
        return value

    def is_node(self, obj: Any) -> bool:
        return isinstance(obj, ast.AST)

    def describe(self, node: Any) -> str:
        try:
            return ast.unparse(node)
        except (AttributeError, TypeError, ValueError):
            # Some fragments (type_ignore, bare contexts) have no source form.
            return ast.dump(node)
