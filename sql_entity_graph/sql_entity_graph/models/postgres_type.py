"""Declared data types, enumerations and synthesized builtin placeholders."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from sql_entity_graph.models.base import EntityKind, GraphEntity


class TypeEntity(GraphEntity):
    """A custom data type declared by the extension."""

    kind: Literal[EntityKind.TYPE] = EntityKind.TYPE

    name: str = Field(..., min_length=1)
    module_path: str
    full_path: str
    type_id: str = Field(..., min_length=1, description="Language-level type identity.")

    @property
    def qualified_identifier(self) -> str:
        return self.full_path

    def id_matches(self, type_id: str) -> bool:
        return self.type_id == type_id


class EnumEntity(GraphEntity):
    """An enumeration declared by the extension."""

    kind: Literal[EntityKind.ENUM] = EntityKind.ENUM

    name: str = Field(..., min_length=1)
    module_path: str
    full_path: str
    type_id: str = Field(..., min_length=1)
    variants: tuple[str, ...] = ()

    @property
    def qualified_identifier(self) -> str:
        return self.full_path

    def id_matches(self, type_id: str) -> bool:
        return self.type_id == type_id


class BuiltinTypeEntity(GraphEntity):
    """Placeholder for a type that is used but never declared.

    Never produced upstream; the graph builder synthesizes exactly one per
    distinct ``full_path``.
    """

    kind: Literal[EntityKind.BUILTIN_TYPE] = EntityKind.BUILTIN_TYPE

    full_path: str = Field(..., min_length=1)

    @property
    def qualified_identifier(self) -> str:
        return self.full_path
