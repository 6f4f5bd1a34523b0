"""Aggregate declarations."""

from __future__ import annotations

from collections.abc import Iterator
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from sql_entity_graph.models.base import EntityKind, GraphEntity
from sql_entity_graph.models.function import UsedType


class AggregateArgument(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str | None = None
    used_ty: UsedType


class AggregateEntity(GraphEntity):
    """A ``CREATE AGGREGATE`` statement.

    Support functions (``sfunc``, ``finalfunc`` ...) are bare function names
    declared in the aggregate's own module; each must resolve to a declared
    function at ``{module_path}.{name}``.
    """

    kind: Literal[EntityKind.AGGREGATE] = EntityKind.AGGREGATE

    name: str = Field(..., min_length=1)
    module_path: str
    full_path: str
    type_id: str = Field(..., min_length=1, description="Identity of the type implementing the aggregate.")

    args: tuple[AggregateArgument, ...] = ()
    direct_args: tuple[AggregateArgument, ...] | None = None
    stype: UsedType | None = None
    mstype: UsedType | None = None

    sfunc: str = Field(..., min_length=1)
    finalfunc: str | None = None
    combinefunc: str | None = None
    serialfunc: str | None = None
    deserialfunc: str | None = None
    msfunc: str | None = None
    minvfunc: str | None = None
    mfinalfunc: str | None = None
    sortop: str | None = None

    @property
    def qualified_identifier(self) -> str:
        return self.full_path

    def used_types(self) -> Iterator[UsedType]:
        """Yield argument, direct argument and state type usages in wiring order."""
        for arg in self.args:
            yield arg.used_ty
        for arg in self.direct_args or ():
            yield arg.used_ty
        if self.stype is not None:
            yield self.stype
        if self.mstype is not None:
            yield self.mstype

    def support_functions(self) -> Iterator[str]:
        yield self.sfunc
        for value in (
            self.finalfunc,
            self.combinefunc,
            self.serialfunc,
            self.deserialfunc,
            self.msfunc,
            self.minvfunc,
            self.mfinalfunc,
            self.sortop,
        ):
            if value is not None:
                yield value
