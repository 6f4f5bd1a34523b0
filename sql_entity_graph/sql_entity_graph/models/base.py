"""Shared base for every entity that can appear in the SQL entity graph."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class EntityKind(str, Enum):
    """The closed set of entity variants.

    Declaration order doubles as the primary sort order used by the
    classifier and as the tie-break rank used by the linearizer.
    """

    ROOT = "root"
    SCHEMA = "schema"
    EXTENSION_SQL = "extension_sql"
    FUNCTION = "function"
    TYPE = "type"
    BUILTIN_TYPE = "builtin_type"
    ENUM = "enum"
    ORD = "ord"
    HASH = "hash"
    AGGREGATE = "aggregate"
    TRIGGER = "trigger"

    @property
    def rank(self) -> int:
        return _KIND_RANK[self]


_KIND_RANK: dict[EntityKind, int] = {kind: position for position, kind in enumerate(EntityKind)}


class GraphEntity(BaseModel):
    """Immutable, hashable base for all graph entities.

    Subclasses declare a literal ``kind`` and implement
    :attr:`qualified_identifier`.  Collections on entities are tuples so
    that instances can key the builder's lookup tables.
    """

    model_config = ConfigDict(frozen=True)

    file: str | None = Field(default=None, description="Source file the entity was declared in.")
    line: int | None = Field(default=None, description="Source line the entity was declared on.")

    @property
    def qualified_identifier(self) -> str:
        raise NotImplementedError

    @property
    def dot_identifier(self) -> str:
        """Short display label, prefixed by a kind tag."""
        return f"{self.kind.value} {self.qualified_identifier}"  # type: ignore[attr-defined]

    def location(self) -> str | None:
        """Return ``"file:line"`` when both are known."""
        if self.file is not None and self.line is not None:
            return f"{self.file}:{self.line}"
        return None

    def sort_key(self) -> tuple[int, str, str, int]:
        return (
            self.kind.rank,  # type: ignore[attr-defined]
            self.qualified_identifier,
            self.file or "",
            self.line or 0,
        )
