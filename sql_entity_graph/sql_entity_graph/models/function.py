"""Callable SQL functions and the type usages they carry."""

from __future__ import annotations

from collections.abc import Iterator
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

from sql_entity_graph.models.base import EntityKind, GraphEntity
from sql_entity_graph.models.extension_sql import PositioningRef


class UsedType(BaseModel):
    """A type as it is used by an argument or return value.

    ``type_id`` is the language-level identity matched against declared
    types and enums.  ``full_path`` keys the builtin placeholder created
    when nothing declared matches.
    """

    model_config = ConfigDict(frozen=True)

    ty_source: str
    full_path: str = Field(..., min_length=1)
    type_id: str = Field(..., min_length=1)


class FunctionArgument(BaseModel):
    model_config = ConfigDict(frozen=True)

    pattern: str
    used_ty: UsedType


class FunctionReturnKind(str, Enum):
    NONE = "none"
    TRIGGER = "trigger"
    TYPE = "type"
    SET_OF = "set_of"
    ITERATED = "iterated"


class IteratedItem(BaseModel):
    """One column of a ``RETURNS TABLE (...)`` result."""

    model_config = ConfigDict(frozen=True)

    name: str | None = None
    ty: UsedType


class FunctionReturn(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: FunctionReturnKind = FunctionReturnKind.NONE
    ty: UsedType | None = None
    iterated: tuple[IteratedItem, ...] = ()
    optional: bool = False

    @model_validator(mode="after")
    def validate_kind_requirements(self) -> FunctionReturn:
        if self.kind in (FunctionReturnKind.TYPE, FunctionReturnKind.SET_OF) and self.ty is None:
            raise ValueError(f"Return kind '{self.kind.value}' requires 'ty'.")
        if self.kind == FunctionReturnKind.ITERATED and not self.iterated:
            raise ValueError("Return kind 'iterated' requires at least one item.")
        return self

    def used_types(self) -> Iterator[UsedType]:
        """Yield every type usage carried by the return value."""
        if self.kind in (FunctionReturnKind.TYPE, FunctionReturnKind.SET_OF) and self.ty is not None:
            yield self.ty
        elif self.kind == FunctionReturnKind.ITERATED:
            for item in self.iterated:
                yield item.ty


class FunctionEntity(GraphEntity):
    """A function exported to SQL.

    ``name`` is the SQL-facing name, ``unaliased_name`` the name in source.
    An explicit ``schema`` overrides schema membership by module path.
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal[EntityKind.FUNCTION] = EntityKind.FUNCTION

    name: str = Field(..., min_length=1)
    unaliased_name: str = ""
    module_path: str
    full_path: str
    schema_name: str | None = Field(default=None, alias="schema")
    requires: tuple[PositioningRef, ...] = ()
    args: tuple[FunctionArgument, ...] = ()
    returns: FunctionReturn = Field(default_factory=FunctionReturn)

    @model_validator(mode="before")
    @classmethod
    def default_unaliased_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("unaliased_name"):
            data = {**data, "unaliased_name": data.get("name", "")}
        return data

    @property
    def qualified_identifier(self) -> str:
        return self.full_path

    @property
    def dot_identifier(self) -> str:
        return f"fn {self.full_path}"
