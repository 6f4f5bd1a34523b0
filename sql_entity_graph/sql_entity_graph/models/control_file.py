"""Extension control metadata, the root of every SQL entity graph."""

from __future__ import annotations

from typing import Literal

from pydantic import ConfigDict, Field

from sql_entity_graph.models.base import EntityKind, GraphEntity


class ControlFile(GraphEntity):
    """Already-parsed contents of an extension ``.control`` file.

    The graph builder only reads :attr:`relocatable`, :attr:`schema_name`
    and :attr:`default_version`; the remaining fields are carried through
    for renderers.
    """

    model_config = ConfigDict(populate_by_name=True)

    kind: Literal[EntityKind.ROOT] = EntityKind.ROOT

    comment: str = ""
    default_version: str = Field(..., min_length=1, description="Version installed by default.")
    module_pathname: str | None = None
    relocatable: bool = False
    superuser: bool = True
    schema_name: str | None = Field(
        default=None,
        alias="schema",
        description="Schema the extension installs into when not relocatable.",
    )
    trusted: bool = False
    requires: tuple[str, ...] = ()

    @property
    def qualified_identifier(self) -> str:
        return "root"
