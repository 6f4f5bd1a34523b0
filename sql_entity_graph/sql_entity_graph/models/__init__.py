"""Entity models for the SQL entity graph."""

from sql_entity_graph.models.aggregate import AggregateArgument, AggregateEntity
from sql_entity_graph.models.base import EntityKind, GraphEntity
from sql_entity_graph.models.control_file import ControlFile
from sql_entity_graph.models.extension_sql import (
    ExtensionSqlEntity,
    FullPathRef,
    NameRef,
    PositioningRef,
    SqlDeclared,
    SqlDeclaredEntity,
    SqlDeclaredKind,
)
from sql_entity_graph.models.function import (
    FunctionArgument,
    FunctionEntity,
    FunctionReturn,
    FunctionReturnKind,
    IteratedItem,
    UsedType,
)
from sql_entity_graph.models.graph_entity import (
    SourceOnlySqlMapping,
    SourceToSqlMapping,
    SqlGraphEntity,
    SqlGraphRelationship,
    parse_entities,
)
from sql_entity_graph.models.operators import HashEntity, OrdEntity
from sql_entity_graph.models.paths import join_path, split_path
from sql_entity_graph.models.postgres_type import BuiltinTypeEntity, EnumEntity, TypeEntity
from sql_entity_graph.models.schema import SchemaEntity
from sql_entity_graph.models.trigger import TriggerEntity

__all__ = [
    "AggregateArgument",
    "AggregateEntity",
    "BuiltinTypeEntity",
    "ControlFile",
    "EntityKind",
    "EnumEntity",
    "ExtensionSqlEntity",
    "FullPathRef",
    "FunctionArgument",
    "FunctionEntity",
    "FunctionReturn",
    "FunctionReturnKind",
    "GraphEntity",
    "HashEntity",
    "IteratedItem",
    "NameRef",
    "OrdEntity",
    "PositioningRef",
    "SchemaEntity",
    "SourceOnlySqlMapping",
    "SourceToSqlMapping",
    "SqlDeclared",
    "SqlDeclaredEntity",
    "SqlDeclaredKind",
    "SqlGraphEntity",
    "SqlGraphRelationship",
    "TriggerEntity",
    "TypeEntity",
    "UsedType",
    "join_path",
    "parse_entities",
    "split_path",
]
