"""Edge phase of graph construction.

One connector pass per entity kind, run after every node exists.  Passes
read the :class:`NodeLookups` tables and only ever add edges.  Unresolved
*required* references raise immediately; best-effort matches (schema by
module path, operator support functions found by naming convention) are
logged and skipped when absent.
"""

from __future__ import annotations

import logging

import networkx as nx

from sql_entity_graph.config import Settings
from sql_entity_graph.errors import MissingBuiltinTypeError, UnresolvedReferenceError
from sql_entity_graph.graph.resolver import find_positioning_ref_target
from sql_entity_graph.graph.store import NodeLookups, add_dependency, entity_at
from sql_entity_graph.models import (
    AggregateEntity,
    FunctionEntity,
    GraphEntity,
    HashEntity,
    OrdEntity,
    PositioningRef,
    SqlDeclared,
    SqlDeclaredKind,
    SqlGraphRelationship,
    UsedType,
    join_path,
)

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Shared connection helpers
# ---------------------------------------------------------------------------


def make_schema_connection(
    graph: nx.MultiDiGraph,
    kind: str,
    index: int,
    item: GraphEntity,
    module_path: str,
    lookups: NodeLookups,
) -> bool:
    """Place *item* after the schema declared for its exact module path."""
    for schema, schema_index in lookups.schemas.items():
        if schema.module_path == module_path:
            logger.debug("Adding %s after Schema edge: %s -> %s", kind, schema.module_path, item.qualified_identifier)
            add_dependency(graph, schema_index, index)
            return True
    return False


def make_type_or_enum_connection(
    graph: nx.MultiDiGraph,
    kind: str,
    index: int,
    item: GraphEntity,
    type_id: str,
    lookups: NodeLookups,
    relationship: SqlGraphRelationship = SqlGraphRelationship.REQUIRED_BY,
) -> bool:
    """Place *item* after the declared type and/or enum carrying *type_id*.

    Returns whether anything matched; the caller decides if a miss is fatal.
    """
    found = False
    for ty, ty_index in lookups.types.items():
        if ty.id_matches(type_id):
            logger.debug("Adding %s after Type edge: %s -> %s", kind, ty.full_path, item.qualified_identifier)
            add_dependency(graph, ty_index, index, relationship)
            found = True
            break
    for enum, enum_index in lookups.enums.items():
        if enum.id_matches(type_id):
            logger.debug("Adding %s after Enum edge: %s -> %s", kind, enum.full_path, item.qualified_identifier)
            add_dependency(graph, enum_index, index, relationship)
            found = True
            break
    return found


def make_function_connection(
    graph: nx.MultiDiGraph,
    kind: str,
    index: int,
    item: GraphEntity,
    full_path: str,
    lookups: NodeLookups,
) -> None:
    """Place *item* after the function at exactly *full_path*.

    Raises
    ------
    UnresolvedReferenceError
        If no declared function has that path.
    """
    for function, function_index in lookups.functions.items():
        if function.full_path == full_path:
            logger.debug("Adding %s after Function edge: %s -> %s", kind, full_path, item.qualified_identifier)
            add_dependency(graph, function_index, index)
            return

    known = sorted(f.full_path for f in lookups.functions)
    raise UnresolvedReferenceError(
        f"Did not find connection '{full_path}' for {kind} '{item.qualified_identifier}'. "
        f"Known functions: {known}",
        identifier=item.qualified_identifier,
        reference=full_path,
        location=item.location(),
    )


def _connect_requires(
    graph: nx.MultiDiGraph,
    kind: str,
    index: int,
    item: GraphEntity,
    requires: tuple[PositioningRef, ...],
    lookups: NodeLookups,
) -> None:
    for ref in requires:
        target = find_positioning_ref_target(ref, lookups)
        if target is None:
            location = item.location()
            raise UnresolvedReferenceError(
                f"Could not find 'requires' target of '{item.qualified_identifier}'"
                f"{f' ({location})' if location else ''}: {ref}",
                identifier=item.qualified_identifier,
                reference=str(ref),
                location=location,
            )
        logger.debug(
            "Adding %s after positioning ref target: %s -> %s",
            kind,
            entity_at(graph, target).qualified_identifier,
            item.qualified_identifier,
        )
        add_dependency(graph, target, index)


def _builtin_index(used_ty: UsedType, lookups: NodeLookups) -> int:
    try:
        return lookups.builtin_types[used_ty.full_path]
    except KeyError:
        raise MissingBuiltinTypeError(used_ty.full_path) from None


# ---------------------------------------------------------------------------
# Simple passes
# ---------------------------------------------------------------------------


def connect_schemas(graph: nx.MultiDiGraph, lookups: NodeLookups) -> None:
    for index in lookups.schemas.values():
        add_dependency(graph, lookups.root, index)


def connect_extension_sqls(graph: nx.MultiDiGraph, lookups: NodeLookups) -> None:
    for item, index in lookups.extension_sqls.items():
        make_schema_connection(graph, "ExtensionSql", index, item, item.module_path, lookups)
        _connect_requires(graph, "ExtensionSql", index, item, item.requires, lookups)


def connect_enums(graph: nx.MultiDiGraph, lookups: NodeLookups) -> None:
    for item, index in lookups.enums.items():
        make_schema_connection(graph, "Enum", index, item, item.module_path, lookups)


def connect_types(graph: nx.MultiDiGraph, lookups: NodeLookups) -> None:
    for item, index in lookups.types.items():
        make_schema_connection(graph, "Type", index, item, item.module_path, lookups)


def connect_triggers(graph: nx.MultiDiGraph, lookups: NodeLookups) -> None:
    for item, index in lookups.triggers.items():
        make_schema_connection(graph, "Trigger", index, item, item.module_path, lookups)


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------


def _connect_function_type(
    graph: nx.MultiDiGraph,
    item: FunctionEntity,
    index: int,
    used_ty: UsedType,
    relationship: SqlGraphRelationship,
    lookups: NodeLookups,
) -> None:
    for ty, ty_index in lookups.types.items():
        if ty.id_matches(used_ty.type_id):
            logger.debug("Adding Function after Type (%s) edge: %s -> %s", relationship.value, ty.full_path, item.full_path)
            add_dependency(graph, ty_index, index, relationship)
            return
    for enum, enum_index in lookups.enums.items():
        if enum.id_matches(used_ty.type_id):
            logger.debug("Adding Function after Enum (%s) edge: %s -> %s", relationship.value, enum.full_path, item.full_path)
            add_dependency(graph, enum_index, index, relationship)
            return

    builtin_index = _builtin_index(used_ty, lookups)
    logger.debug("Adding Function after BuiltinType (%s) edge: %s -> %s", relationship.value, used_ty.full_path, item.full_path)
    add_dependency(graph, builtin_index, index, relationship)

    as_type = SqlDeclared(kind=SqlDeclaredKind.TYPE, identifier=used_ty.full_path)
    as_enum = SqlDeclared(kind=SqlDeclaredKind.ENUM, identifier=used_ty.full_path)
    for extension_sql, ext_index in lookups.extension_sqls.items():
        if extension_sql.has_sql_declared_entity(as_type) or extension_sql.has_sql_declared_entity(as_enum):
            logger.debug(
                "Adding Function after ExtensionSql (declares %s) edge: %s -> %s",
                used_ty.full_path,
                extension_sql.full_path,
                item.full_path,
            )
            add_dependency(graph, ext_index, index, SqlGraphRelationship.REQUIRED_BY_ARG)


def connect_functions(graph: nx.MultiDiGraph, lookups: NodeLookups) -> None:
    """Wire functions to their requirements, schema, hash classes and types.

    Raises
    ------
    UnresolvedReferenceError
        For an unresolved ``requires`` entry or an explicit schema name
        that no schema declares.
    """
    for item, index in lookups.functions.items():
        _connect_requires(graph, "Function", index, item, item.requires, lookups)

        if item.schema_name is not None:
            declared = [i for s, i in lookups.schemas.items() if s.name == item.schema_name]
            if not declared:
                raise UnresolvedReferenceError(
                    f"Got manual schema = '{item.schema_name}' setting on '{item.full_path}', "
                    f"but that schema did not exist.",
                    identifier=item.full_path,
                    reference=item.schema_name,
                    location=item.location(),
                )
            for schema_index in declared:
                logger.debug("Adding Function after declared Schema edge: %s -> %s", item.schema_name, item.full_path)
                add_dependency(graph, schema_index, index)
        else:
            make_schema_connection(graph, "Function", index, item, item.module_path, lookups)

        # A hash operator class must follow its `{type}_eq` function.
        for hash_item, hash_index in lookups.hashes.items():
            if item.module_path == hash_item.module_path and item.name == hash_item.eq_fn_name():
                logger.debug("Adding Hash after Function edge: %s -> %s", item.full_path, hash_item.full_path)
                add_dependency(graph, index, hash_index)

        for arg in item.args:
            _connect_function_type(graph, item, index, arg.used_ty, SqlGraphRelationship.REQUIRED_BY_ARG, lookups)
        for used_ty in item.returns.used_types():
            _connect_function_type(graph, item, index, used_ty, SqlGraphRelationship.REQUIRED_BY_RETURN, lookups)


# ---------------------------------------------------------------------------
# Operator classes
# ---------------------------------------------------------------------------


def _connect_operator_type(
    graph: nx.MultiDiGraph,
    kind: str,
    index: int,
    item: OrdEntity | HashEntity,
    lookups: NodeLookups,
    settings: Settings,
) -> None:
    if make_type_or_enum_connection(graph, kind, index, item, item.type_id, lookups):
        return
    if settings.strict_operator_types:
        raise UnresolvedReferenceError(
            f"{kind} '{item.full_path}' is declared for type id '{item.type_id}', "
            f"but no type or enum with that id exists.",
            identifier=item.full_path,
            reference=item.type_id,
            location=item.location(),
        )
    logger.warning("%s '%s' has no declared type or enum '%s'", kind, item.full_path, item.type_id)


def connect_ords(graph: nx.MultiDiGraph, lookups: NodeLookups, settings: Settings) -> None:
    for item, index in lookups.ords.items():
        make_schema_connection(graph, "Ord", index, item, item.module_path, lookups)
        _connect_operator_type(graph, "Ord", index, item, lookups, settings)

        # The operator class references every comparison operator on the type.
        comparison_fns = set(item.comparison_fn_names())
        for function, function_index in lookups.functions.items():
            if function.module_path == item.module_path and function.name in comparison_fns:
                logger.debug("Adding Ord after Function edge: %s -> %s", function.full_path, item.full_path)
                add_dependency(graph, function_index, index)


def connect_hashes(graph: nx.MultiDiGraph, lookups: NodeLookups, settings: Settings) -> None:
    for item, index in lookups.hashes.items():
        make_schema_connection(graph, "Hash", index, item, item.module_path, lookups)
        _connect_operator_type(graph, "Hash", index, item, lookups, settings)

        hash_fn_name = item.fn_name()
        for function, function_index in lookups.functions.items():
            if function.module_path == item.module_path and function.name == hash_fn_name:
                logger.debug("Adding Hash after Function edge: %s -> %s", function.full_path, item.full_path)
                add_dependency(graph, function_index, index)
                break


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


def connect_aggregate(graph: nx.MultiDiGraph, item: AggregateEntity, index: int, lookups: NodeLookups) -> None:
    """Wire one aggregate.

    The implementing type link is advisory.  Argument and state types fall
    back to their builtin placeholder, and every support function must
    exist in the aggregate's module.
    """
    make_schema_connection(graph, "Aggregate", index, item, item.module_path, lookups)
    make_type_or_enum_connection(graph, "Aggregate", index, item, item.type_id, lookups)

    for used_ty in item.used_types():
        found = make_type_or_enum_connection(
            graph,
            "Aggregate",
            index,
            item,
            used_ty.type_id,
            lookups,
            SqlGraphRelationship.REQUIRED_BY_ARG,
        )
        if not found:
            builtin_index = _builtin_index(used_ty, lookups)
            logger.debug("Adding Aggregate after BuiltinType edge: %s -> %s", used_ty.full_path, item.full_path)
            add_dependency(graph, builtin_index, index, SqlGraphRelationship.REQUIRED_BY_ARG)

    for support_fn in item.support_functions():
        make_function_connection(
            graph,
            "Aggregate",
            index,
            item,
            join_path(item.module_path, support_fn),
            lookups,
        )


def connect_aggregates(graph: nx.MultiDiGraph, lookups: NodeLookups) -> None:
    for item, index in lookups.aggregates.items():
        connect_aggregate(graph, item, index, lookups)


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------


def connect_all(graph: nx.MultiDiGraph, lookups: NodeLookups, settings: Settings) -> None:
    """Run every connector pass in dependency-safe order."""
    connect_schemas(graph, lookups)
    connect_extension_sqls(graph, lookups)
    connect_enums(graph, lookups)
    connect_types(graph, lookups)
    connect_functions(graph, lookups)
    connect_ords(graph, lookups, settings)
    connect_hashes(graph, lookups, settings)
    connect_aggregates(graph, lookups)
    connect_triggers(graph, lookups)

    logger.debug("Edge phase complete: %d edges", graph.number_of_edges())
