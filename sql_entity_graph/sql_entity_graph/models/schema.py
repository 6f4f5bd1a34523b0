"""Schema declarations."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from sql_entity_graph.models.base import EntityKind, GraphEntity


class SchemaEntity(GraphEntity):
    """A ``CREATE SCHEMA`` bound to a source module.

    Every entity whose ``module_path`` equals this schema's
    ``module_path`` is emitted inside it.
    """

    kind: Literal[EntityKind.SCHEMA] = EntityKind.SCHEMA

    name: str = Field(..., min_length=1)
    module_path: str = Field(..., min_length=1)

    @property
    def qualified_identifier(self) -> str:
        return self.module_path
