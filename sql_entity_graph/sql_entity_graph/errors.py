"""Errors raised while building or linearizing the SQL entity graph.

Every fatal condition aborts construction; no partially-built graph is
ever returned.
"""

from __future__ import annotations

from typing import Any


class SqlGraphError(Exception):
    """Base exception for the SQL entity graph."""


class StructuralInvariantError(SqlGraphError):
    """A structural invariant of the entity set was violated.

    Raised for a missing or duplicated control entity and for more than one
    bootstrap or finalize extension SQL fragment.
    """


class UnresolvedReferenceError(SqlGraphError):
    """A reference that must resolve did not.

    Attributes
    ----------
    identifier:
        Qualified identifier of the entity that holds the reference.
    reference:
        Literal text of the unresolved reference.
    location:
        ``"file:line"`` of the holding entity, when known.
    """

    def __init__(
        self,
        message: str,
        *,
        identifier: str,
        reference: str,
        location: str | None = None,
    ) -> None:
        self.identifier = identifier
        self.reference = reference
        self.location = location
        super().__init__(message)


class MissingBuiltinTypeError(SqlGraphError, RuntimeError):
    """A builtin type placeholder was not created during the node phase.

    This indicates a bug in the graph builder, not a problem with the input.
    """

    def __init__(self, full_path: str) -> None:
        self.full_path = full_path
        super().__init__(f"Could not fetch builtin type placeholder '{full_path}'.")


class CyclicDependencyError(SqlGraphError):
    """Raised when the entity graph cannot be linearized.

    Attributes
    ----------
    entity:
        The first entity found to participate in a cycle.
    cycle:
        Qualified identifiers forming the loop, in edge order.
    """

    def __init__(self, entity: Any, cycle: list[str]) -> None:
        self.entity = entity
        self.cycle = cycle
        formatted = " -> ".join(cycle + cycle[:1])
        super().__init__(
            f"Failed to linearize SQL entities, node with cycle: "
            f"{entity.qualified_identifier} ({formatted})"
        )
