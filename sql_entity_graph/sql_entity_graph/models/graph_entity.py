"""The entity union, edge relationships and source-to-SQL type mappings."""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter

from sql_entity_graph.models.aggregate import AggregateEntity
from sql_entity_graph.models.control_file import ControlFile
from sql_entity_graph.models.extension_sql import ExtensionSqlEntity
from sql_entity_graph.models.function import FunctionEntity
from sql_entity_graph.models.operators import HashEntity, OrdEntity
from sql_entity_graph.models.postgres_type import BuiltinTypeEntity, EnumEntity, TypeEntity
from sql_entity_graph.models.schema import SchemaEntity
from sql_entity_graph.models.trigger import TriggerEntity

SqlGraphEntity = Annotated[
    ControlFile
    | SchemaEntity
    | ExtensionSqlEntity
    | FunctionEntity
    | TypeEntity
    | BuiltinTypeEntity
    | EnumEntity
    | OrdEntity
    | HashEntity
    | AggregateEntity
    | TriggerEntity,
    Field(discriminator="kind"),
]

_ENTITY_LIST_ADAPTER: TypeAdapter[list[SqlGraphEntity]] = TypeAdapter(list[SqlGraphEntity])


def parse_entities(raw: Iterable[dict[str, Any]]) -> list[SqlGraphEntity]:
    """Validate plain mappings (e.g. decoded JSON) into typed entities.

    The ``kind`` key selects the variant.
    """
    return _ENTITY_LIST_ADAPTER.validate_python(list(raw))


class SqlGraphRelationship(str, Enum):
    """Why an edge exists.  All kinds impose the same ordering constraint."""

    REQUIRED_BY = "required_by"
    REQUIRED_BY_ARG = "required_by_arg"
    REQUIRED_BY_RETURN = "required_by_return"


class SourceOnlySqlMapping(BaseModel):
    """Maps a source type spelling to the SQL type name it renders as."""

    model_config = ConfigDict(frozen=True)

    source: str
    sql: str


class SourceToSqlMapping(BaseModel):
    model_config = ConfigDict(frozen=True)

    source_to_sql: frozenset[SourceOnlySqlMapping] = frozenset()

    @classmethod
    def from_dict(cls, mapping: dict[str, str]) -> SourceToSqlMapping:
        return cls(
            source_to_sql=frozenset(
                SourceOnlySqlMapping(source=source, sql=sql) for source, sql in mapping.items()
            )
        )

    def as_dict(self) -> dict[str, str]:
        # Sorted so duplicated sources resolve the same way on every run.
        return {m.source: m.sql for m in sorted(self.source_to_sql, key=lambda m: (m.source, m.sql))}
