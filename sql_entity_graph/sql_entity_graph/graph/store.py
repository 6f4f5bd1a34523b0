"""Append-only node arena and the lookup tables threaded through each pass.

The graph is a :class:`networkx.MultiDiGraph` whose nodes are consecutive
integers.  Node data holds the entity under key ``"entity"`` and edge data
holds the :class:`SqlGraphRelationship` under key ``"relationship"``.  An
edge ``a -> b`` means *a must be emitted before b*.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import networkx as nx

from sql_entity_graph.models import (
    AggregateEntity,
    BuiltinTypeEntity,
    EntityKind,
    EnumEntity,
    ExtensionSqlEntity,
    FunctionEntity,
    HashEntity,
    OrdEntity,
    SchemaEntity,
    SqlGraphEntity,
    SqlGraphRelationship,
    TriggerEntity,
    TypeEntity,
)

# Per-kind table names, shared by the classifier buckets and NodeLookups.
KIND_TABLES: dict[EntityKind, str] = {
    EntityKind.SCHEMA: "schemas",
    EntityKind.EXTENSION_SQL: "extension_sqls",
    EntityKind.FUNCTION: "functions",
    EntityKind.TYPE: "types",
    EntityKind.ENUM: "enums",
    EntityKind.ORD: "ords",
    EntityKind.HASH: "hashes",
    EntityKind.AGGREGATE: "aggregates",
    EntityKind.TRIGGER: "triggers",
}


def add_entity_node(graph: nx.MultiDiGraph, entity: SqlGraphEntity) -> int:
    """Append *entity* to the arena and return its stable index."""
    index = graph.number_of_nodes()
    graph.add_node(index, entity=entity)
    return index


def add_dependency(
    graph: nx.MultiDiGraph,
    before: int,
    after: int,
    relationship: SqlGraphRelationship = SqlGraphRelationship.REQUIRED_BY,
) -> None:
    """Record that node *before* must be emitted ahead of node *after*."""
    graph.add_edge(before, after, relationship=relationship)


def entity_at(graph: nx.MultiDiGraph, index: int) -> SqlGraphEntity:
    return graph.nodes[index]["entity"]


@dataclass
class NodeLookups:
    """Entity-to-index tables built by the node phase.

    Each table preserves the classifier's sorted order, so scans that stop
    at the first match are deterministic.  Connector passes only read
    these tables; they never add nodes.
    """

    root: int
    bootstrap: int | None = None
    finalize: int | None = None
    schemas: dict[SchemaEntity, int] = field(default_factory=dict)
    extension_sqls: dict[ExtensionSqlEntity, int] = field(default_factory=dict)
    functions: dict[FunctionEntity, int] = field(default_factory=dict)
    types: dict[TypeEntity, int] = field(default_factory=dict)
    builtin_types: dict[str, int] = field(default_factory=dict)
    enums: dict[EnumEntity, int] = field(default_factory=dict)
    ords: dict[OrdEntity, int] = field(default_factory=dict)
    hashes: dict[HashEntity, int] = field(default_factory=dict)
    aggregates: dict[AggregateEntity, int] = field(default_factory=dict)
    triggers: dict[TriggerEntity, int] = field(default_factory=dict)

    def declared_type_or_enum(self, type_id: str) -> bool:
        """Whether a declared type or enum carries *type_id*."""
        return any(t.id_matches(type_id) for t in self.types) or any(
            e.id_matches(type_id) for e in self.enums
        )

    def index_of(self, entity: SqlGraphEntity) -> int | None:
        """Node index of a non-root *entity*, or ``None`` if it has none."""
        if isinstance(entity, BuiltinTypeEntity):
            return self.builtin_types.get(entity.full_path)
        table_name = KIND_TABLES.get(entity.kind)
        if table_name is None:
            return None
        return getattr(self, table_name).get(entity)

    def owning_schema(self, entity: SqlGraphEntity) -> SchemaEntity | None:
        """The schema *entity* is declared into, by the connector rules.

        An explicit ``schema_name`` on a function selects the declared schema
        of that name; otherwise the first schema whose module path equals the
        entity's own module path.
        """
        if isinstance(entity, FunctionEntity) and entity.schema_name is not None:
            return next((s for s in self.schemas if s.name == entity.schema_name), None)
        module_path = getattr(entity, "module_path", None)
        if module_path is None or isinstance(entity, SchemaEntity):
            return None
        return next((s for s in self.schemas if s.module_path == module_path), None)
