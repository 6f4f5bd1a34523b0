"""Node phase of graph construction.

Every entity becomes exactly one node before any cross-kind edge is wired,
so connector passes can always find the node they need regardless of
declaration order.  The only edges added here are the *base* edges:

* ``root -> node`` for every node (schemas get theirs in the edge phase),
* ``bootstrap -> node`` and ``node -> finalize`` when those anchors exist.

Builtin type placeholders are created here, the first time a function or
aggregate uses a type that matches no declared type or enum.
"""

from __future__ import annotations

import logging

import networkx as nx

from sql_entity_graph.errors import StructuralInvariantError
from sql_entity_graph.graph.classifier import ClassifiedEntities
from sql_entity_graph.graph.store import NodeLookups, add_dependency, add_entity_node, entity_at
from sql_entity_graph.models import BuiltinTypeEntity, ExtensionSqlEntity, SqlGraphEntity, UsedType

logger = logging.getLogger(__name__)


def build_base_edges(graph: nx.MultiDiGraph, index: int, lookups: NodeLookups) -> None:
    add_dependency(graph, lookups.root, index)
    if lookups.bootstrap is not None:
        add_dependency(graph, lookups.bootstrap, index)
    if lookups.finalize is not None:
        add_dependency(graph, index, lookups.finalize)


def _initialize(
    graph: nx.MultiDiGraph,
    items: list,
    table: dict,
    lookups: NodeLookups,
) -> None:
    for item in items:
        index = add_entity_node(graph, item)
        table[item] = index
        build_base_edges(graph, index, lookups)


def initialize_extension_sqls(
    graph: nx.MultiDiGraph,
    extension_sqls: list[ExtensionSqlEntity],
    lookups: NodeLookups,
) -> None:
    """Add fragment nodes and discover the bootstrap/finalize anchors.

    Raises
    ------
    StructuralInvariantError
        If more than one fragment is marked ``bootstrap`` or ``finalize``.
    """
    for item in extension_sqls:
        index = add_entity_node(graph, item)
        lookups.extension_sqls[item] = index

        if item.bootstrap:
            if lookups.bootstrap is not None:
                existing = entity_at(graph, lookups.bootstrap)
                raise StructuralInvariantError(
                    f"Cannot have multiple extension SQL fragments with 'bootstrap' positioning, "
                    f"found '{item.qualified_identifier}', other was '{existing.qualified_identifier}'."
                )
            lookups.bootstrap = index
        if item.finalize:
            if lookups.finalize is not None:
                existing = entity_at(graph, lookups.finalize)
                raise StructuralInvariantError(
                    f"Cannot have multiple extension SQL fragments with 'finalize' positioning, "
                    f"found '{item.qualified_identifier}', other was '{existing.qualified_identifier}'."
                )
            lookups.finalize = index

    # Anchors are known only once every fragment has been seen.
    for item, index in lookups.extension_sqls.items():
        add_dependency(graph, lookups.root, index)
        if not item.bootstrap and lookups.bootstrap is not None:
            add_dependency(graph, lookups.bootstrap, index)
        if not item.finalize and lookups.finalize is not None:
            add_dependency(graph, index, lookups.finalize)


def initialize_schemas(graph: nx.MultiDiGraph, classified: ClassifiedEntities, lookups: NodeLookups) -> None:
    for item in classified.schemas:
        index = add_entity_node(graph, item)
        lookups.schemas[item] = index
        if lookups.bootstrap is not None:
            add_dependency(graph, lookups.bootstrap, index)
        if lookups.finalize is not None:
            add_dependency(graph, index, lookups.finalize)


def ensure_builtin_type(graph: nx.MultiDiGraph, used_ty: UsedType, lookups: NodeLookups) -> None:
    """Create a placeholder for *used_ty* unless it is declared or already exists."""
    if lookups.declared_type_or_enum(used_ty.type_id):
        return
    if used_ty.full_path in lookups.builtin_types:
        return
    index = add_entity_node(graph, BuiltinTypeEntity(full_path=used_ty.full_path))
    lookups.builtin_types[used_ty.full_path] = index
    add_dependency(graph, lookups.root, index)
    logger.debug("Created builtin type placeholder %s", used_ty.full_path)


def initialize_functions(graph: nx.MultiDiGraph, classified: ClassifiedEntities, lookups: NodeLookups) -> None:
    for item in classified.functions:
        index = add_entity_node(graph, item)
        lookups.functions[item] = index
        build_base_edges(graph, index, lookups)

        for arg in item.args:
            ensure_builtin_type(graph, arg.used_ty, lookups)
        for used_ty in item.returns.used_types():
            ensure_builtin_type(graph, used_ty, lookups)


def initialize_aggregates(graph: nx.MultiDiGraph, classified: ClassifiedEntities, lookups: NodeLookups) -> None:
    for item in classified.aggregates:
        index = add_entity_node(graph, item)
        for used_ty in item.used_types():
            ensure_builtin_type(graph, used_ty, lookups)
        lookups.aggregates[item] = index
        build_base_edges(graph, index, lookups)


def build_nodes(graph: nx.MultiDiGraph, classified: ClassifiedEntities) -> NodeLookups:
    """Run the whole node phase and return the populated lookup tables."""
    root_entity: SqlGraphEntity = classified.control
    lookups = NodeLookups(root=add_entity_node(graph, root_entity))

    initialize_extension_sqls(graph, classified.extension_sqls, lookups)
    initialize_schemas(graph, classified, lookups)
    _initialize(graph, classified.enums, lookups.enums, lookups)
    _initialize(graph, classified.types, lookups.types, lookups)
    initialize_functions(graph, classified, lookups)
    _initialize(graph, classified.ords, lookups.ords, lookups)
    _initialize(graph, classified.hashes, lookups.hashes, lookups)
    initialize_aggregates(graph, classified, lookups)
    _initialize(graph, classified.triggers, lookups.triggers, lookups)

    logger.debug(
        "Node phase complete: %d nodes, %d builtin placeholders",
        graph.number_of_nodes(),
        len(lookups.builtin_types),
    )
    return lookups
