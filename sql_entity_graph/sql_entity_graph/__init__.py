"""Dependency-ordered SQL generation for PostgreSQL extensions.

Builds a graph of declarative SQL entities (schemas, types, enums,
functions, operator classes, aggregates, triggers and hand-written SQL
fragments), discovers the dependencies between them and linearizes it into
a valid emission order.
"""

from sql_entity_graph.errors import (
    CyclicDependencyError,
    MissingBuiltinTypeError,
    SqlGraphError,
    StructuralInvariantError,
    UnresolvedReferenceError,
)
from sql_entity_graph.graph import SqlGraph

__version__ = "0.1.0"

__all__ = [
    "CyclicDependencyError",
    "MissingBuiltinTypeError",
    "SqlGraph",
    "SqlGraphError",
    "StructuralInvariantError",
    "UnresolvedReferenceError",
]
