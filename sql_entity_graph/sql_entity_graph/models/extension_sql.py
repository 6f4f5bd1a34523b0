"""Free-form SQL fragments and the symbolic references used to position them.

A fragment is hand-written SQL that cannot be derived from source
annotations.  Fragments position themselves relative to other entities with
*positioning references*: weak, human-authored pointers that are resolved
against the graph by :mod:`sql_entity_graph.graph.resolver`.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field

from sql_entity_graph.models.base import EntityKind, GraphEntity

# ---------------------------------------------------------------------------
# Positioning references
# ---------------------------------------------------------------------------


class FullPathRef(BaseModel):
    """Reference by dotted path, e.g. ``my_ext.animals.Dog``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["full_path"] = "full_path"
    path: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return self.path


class NameRef(BaseModel):
    """Reference by the explicit ``name`` of an extension SQL fragment."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["name"] = "name"
    name: str = Field(..., min_length=1)

    def __str__(self) -> str:
        return f'"{self.name}"'


PositioningRef = Annotated[FullPathRef | NameRef, Field(discriminator="kind")]


# ---------------------------------------------------------------------------
# Declared SQL symbols
# ---------------------------------------------------------------------------


class SqlDeclaredKind(str, Enum):
    TYPE = "type"
    ENUM = "enum"
    FUNCTION = "function"


class SqlDeclared(BaseModel):
    """Lookup key for a SQL object that a fragment declares by hand."""

    model_config = ConfigDict(frozen=True)

    kind: SqlDeclaredKind
    identifier: str


class SqlDeclaredEntity(BaseModel):
    """A SQL object created by a fragment.

    ``name`` is the source identifier the object stands in for and ``sql``
    the name it has in SQL.  ``aliases`` lists other source spellings that
    denote the same SQL object (for example an optional or array wrapper).
    """

    model_config = ConfigDict(frozen=True)

    kind: SqlDeclaredKind
    sql: str
    name: str
    aliases: tuple[str, ...] = ()

    def matches(self, declared: SqlDeclared) -> bool:
        if declared.kind != self.kind:
            return False
        return declared.identifier == self.name or declared.identifier in self.aliases


# ---------------------------------------------------------------------------
# Fragment entity
# ---------------------------------------------------------------------------


class ExtensionSqlEntity(GraphEntity):
    """A named block of hand-written SQL."""

    kind: Literal[EntityKind.EXTENSION_SQL] = EntityKind.EXTENSION_SQL

    name: str = Field(..., min_length=1)
    module_path: str
    full_path: str
    sql: str
    bootstrap: bool = False
    finalize: bool = False
    requires: tuple[PositioningRef, ...] = ()
    creates: tuple[SqlDeclaredEntity, ...] = ()

    @property
    def qualified_identifier(self) -> str:
        return self.full_path

    def has_sql_declared_entity(self, declared: SqlDeclared) -> SqlDeclaredEntity | None:
        for created in self.creates:
            if created.matches(declared):
                return created
        return None
