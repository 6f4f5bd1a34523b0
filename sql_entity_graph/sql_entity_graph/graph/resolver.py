"""Resolve positioning references to graph nodes.

References are weak, human-authored pointers.  A :class:`FullPathRef` is
matched fuzzily: its last segment must equal the candidate's name and the
candidate's module path must *end with* the reference's prefix, which
tolerates re-exported paths.  Candidates are searched in a fixed order
(types, enums, functions, schemas, triggers) and the first hit wins, even
when a later table would also match.  A :class:`NameRef` matches the
``name`` of an extension SQL fragment exactly.
"""

from __future__ import annotations

from sql_entity_graph.graph.store import NodeLookups
from sql_entity_graph.models import FullPathRef, NameRef, PositioningRef, split_path


def _resolve_full_path(path: str, lookups: NodeLookups) -> int | None:
    module_path, last_segment = split_path(path)

    for ty, index in lookups.types.items():
        if ty.name == last_segment and ty.module_path.endswith(module_path):
            return index
    for enum, index in lookups.enums.items():
        if enum.name == last_segment and enum.module_path.endswith(module_path):
            return index
    for function, index in lookups.functions.items():
        if function.unaliased_name == last_segment and function.module_path.endswith(module_path):
            return index
    for schema, index in lookups.schemas.items():
        # A schema is addressed either by its module path or as `{module}.{name}`.
        if schema.module_path.endswith(path) or (
            schema.name == last_segment and schema.module_path.endswith(module_path)
        ):
            return index
    for trigger, index in lookups.triggers.items():
        if trigger.function_name == last_segment and trigger.module_path.endswith(module_path):
            return index
    return None


def find_positioning_ref_target(ref: PositioningRef, lookups: NodeLookups) -> int | None:
    """Best-effort lookup of the node *ref* points at.

    Never raises; callers decide whether ``None`` is fatal.
    """
    if isinstance(ref, FullPathRef):
        return _resolve_full_path(ref.path, lookups)
    if isinstance(ref, NameRef):
        for extension_sql, index in lookups.extension_sqls.items():
            if extension_sql.name == ref.name:
                return index
    return None
