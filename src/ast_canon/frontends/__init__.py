"""Front-ends: PropertyAccessor implementations for concrete syntax trees.

The base install provides ``PythonAstAccessor`` for CPython ``ast`` trees.
Any other parser can be plugged in by implementing the
``ast_canon.protocols.PropertyAccessor`` Protocol.
"""

from ast_canon.frontends.python_ast import PythonAstAccessor, load_grammar

__all__ = ["PythonAstAccessor", "load_grammar"]
