"""Entry point: build the SQL entity graph and query it while rendering.

:meth:`SqlGraph.build` consumes a source-to-SQL type mapping, the entity
stream produced by an upstream collector, the extension name and whether
the shared library is versioned.  Construction runs in two phases so that
references may target any entity regardless of declaration order:

1. :func:`~sql_entity_graph.graph.nodes.build_nodes` allocates one node per
   entity plus the root, anchors and builtin type placeholders.
2. :func:`~sql_entity_graph.graph.connectors.connect_all` wires the
   dependency edges kind by kind.

The finished graph is never mutated.  Renderers receive the
:class:`SqlGraph` and use its query methods (schema prefixes, declared SQL
symbols, type mappings, module pathname).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

import networkx as nx

from sql_entity_graph.config import Settings, load_settings
from sql_entity_graph.graph.classifier import classify_entities
from sql_entity_graph.graph.connectors import connect_all
from sql_entity_graph.graph.linearizer import linearize, linearize_indices
from sql_entity_graph.graph.nodes import build_nodes
from sql_entity_graph.graph.store import NodeLookups, entity_at
from sql_entity_graph.models import (
    ControlFile,
    EntityKind,
    SourceToSqlMapping,
    SqlDeclared,
    SqlDeclaredEntity,
    SqlGraphEntity,
)
from sql_entity_graph.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)

Renderer = Callable[[SqlGraphEntity, int, "SqlGraph"], str]


@dataclass(frozen=True)
class SqlGraph:
    """A completed, immutable dependency graph of SQL entities."""

    source_mappings: dict[str, str]
    control: ControlFile
    graph: nx.MultiDiGraph
    lookups: NodeLookups
    extension_name: str
    versioned_so: bool
    settings: Settings = field(default_factory=load_settings)

    # -- Construction --

    @classmethod
    @profile_operation("graph.build")
    def build(
        cls,
        sql_mappings: SourceToSqlMapping | dict[str, str],
        entities: Iterable[SqlGraphEntity],
        extension_name: str,
        versioned_so: bool,
        settings: Settings | None = None,
    ) -> SqlGraph:
        """Classify *entities*, create every node, then wire every edge.

        Raises
        ------
        StructuralInvariantError
            Missing control entity or duplicate bootstrap/finalize anchors.
        UnresolvedReferenceError
            A required reference (``requires``, explicit schema, aggregate
            support function, operator type) does not resolve.
        MissingBuiltinTypeError
            Internal error: a placeholder was not created in the node phase.
        """
        settings = settings or load_settings()
        if isinstance(sql_mappings, SourceToSqlMapping):
            source_mappings = sql_mappings.as_dict()
        else:
            source_mappings = dict(sql_mappings)

        classified = classify_entities(entities)
        graph = nx.MultiDiGraph()
        lookups = build_nodes(graph, classified)
        connect_all(graph, lookups, settings)

        logger.info(
            "Built SQL entity graph for '%s': %d nodes, %d edges",
            extension_name,
            graph.number_of_nodes(),
            graph.number_of_edges(),
        )
        return cls(
            source_mappings=source_mappings,
            control=classified.control,
            graph=graph,
            lookups=lookups,
            extension_name=extension_name,
            versioned_so=versioned_so,
            settings=settings,
        )

    # -- Node access --

    @property
    def root(self) -> int:
        return self.lookups.root

    @property
    def bootstrap(self) -> int | None:
        return self.lookups.bootstrap

    @property
    def finalize(self) -> int | None:
        return self.lookups.finalize

    @property
    def builtin_types(self) -> Mapping[str, int]:
        return MappingProxyType(self.lookups.builtin_types)

    def entity(self, index: int) -> SqlGraphEntity:
        return entity_at(self.graph, index)

    def index_of(self, entity: SqlGraphEntity) -> int | None:
        """Return the node holding *entity*, or ``None`` if it is not in the graph."""
        if entity == self.control:
            return self.root
        return self.lookups.index_of(entity)

    def kind_of(self, index: int) -> EntityKind:
        return self.entity(index).kind

    # -- Queries used by renderers --

    def schema_alias_of(self, index: int) -> str | None:
        """Name of the schema the node at *index* is emitted into.

        The owning schema wins: the one named by an explicit function
        ``schema``, else the one declared for the entity's module path.
        Schemas reached only through ``requires`` do not count.  Otherwise,
        for nodes placed after the root, a non-relocatable extension reports
        its control schema and a relocatable one reports the placeholder
        token.
        """
        owner = self.lookups.owning_schema(self.entity(index))
        if owner is not None:
            return owner.name
        if self.graph.has_edge(self.root, index):
            if self.control.relocatable:
                return self.settings.relocatable_schema_token
            return self.control.schema_name
        return None

    def schema_prefix_for(self, index: int) -> str:
        alias = self.schema_alias_of(index)
        return f"{alias}." if alias is not None else ""

    def has_sql_declared_entity(self, declared: SqlDeclared) -> SqlDeclaredEntity | None:
        for extension_sql in self.lookups.extension_sqls:
            created = extension_sql.has_sql_declared_entity(declared)
            if created is not None:
                return created
        return None

    def source_only_to_sql_type(self, ty_source: str) -> str | None:
        return self.source_mappings.get(ty_source)

    def get_module_pathname(self) -> str:
        if self.versioned_so:
            return f"{self.settings.libdir_token}/{self.extension_name}-{self.control.default_version}"
        return self.settings.module_pathname_token

    # -- Output --

    def linearize(self) -> list[SqlGraphEntity]:
        """Entities in emission order.  See :mod:`sql_entity_graph.graph.linearizer`."""
        return linearize(self.graph)

    def to_sql(self, renderer: Renderer) -> str:
        """Render each entity in emission order, skipping empty results."""
        chunks: list[str] = []
        for index in linearize_indices(self.graph):
            sql = renderer(self.entity(index), index, self)
            if sql:
                chunks.append(sql)
                chunks.append("\n")
        return "".join(chunks)
