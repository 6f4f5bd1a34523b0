"""Trigger function declarations."""

from __future__ import annotations

from typing import Literal

from pydantic import Field

from sql_entity_graph.models.base import EntityKind, GraphEntity


class TriggerEntity(GraphEntity):
    kind: Literal[EntityKind.TRIGGER] = EntityKind.TRIGGER

    function_name: str = Field(..., min_length=1)
    module_path: str
    full_path: str

    @property
    def qualified_identifier(self) -> str:
        return self.full_path
