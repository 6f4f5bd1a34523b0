"""Partition an unordered entity stream into per-kind buckets."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, field

from sql_entity_graph.errors import StructuralInvariantError
from sql_entity_graph.graph.store import KIND_TABLES
from sql_entity_graph.models import (
    AggregateEntity,
    ControlFile,
    EntityKind,
    EnumEntity,
    ExtensionSqlEntity,
    FunctionEntity,
    HashEntity,
    OrdEntity,
    SchemaEntity,
    SqlGraphEntity,
    TriggerEntity,
    TypeEntity,
)
from sql_entity_graph.telemetry.profiling import profile_operation

logger = logging.getLogger(__name__)


@dataclass
class ClassifiedEntities:
    """Entities grouped by kind, each list in ``sort_key()`` order."""

    control: ControlFile
    schemas: list[SchemaEntity] = field(default_factory=list)
    extension_sqls: list[ExtensionSqlEntity] = field(default_factory=list)
    functions: list[FunctionEntity] = field(default_factory=list)
    types: list[TypeEntity] = field(default_factory=list)
    enums: list[EnumEntity] = field(default_factory=list)
    ords: list[OrdEntity] = field(default_factory=list)
    hashes: list[HashEntity] = field(default_factory=list)
    aggregates: list[AggregateEntity] = field(default_factory=list)
    triggers: list[TriggerEntity] = field(default_factory=list)


@profile_operation("graph.classify")
def classify_entities(entities: Iterable[SqlGraphEntity]) -> ClassifiedEntities:
    """Sort *entities* and split them by kind.

    Raises
    ------
    StructuralInvariantError
        If there is no control entity, or more than one.
    """
    # Equal entities collapse to one; every distinct entity gets one node.
    ordered = sorted(dict.fromkeys(entities), key=lambda e: e.sort_key())

    controls = [e for e in ordered if e.kind == EntityKind.ROOT]
    if not controls:
        raise StructuralInvariantError("No control entity found.")
    if len(controls) > 1:
        raise StructuralInvariantError(f"Expected exactly one control entity, found {len(controls)}.")

    classified = ClassifiedEntities(control=controls[0])  # type: ignore[arg-type]
    for entity in ordered:
        if entity.kind == EntityKind.ROOT:
            continue
        if entity.kind == EntityKind.BUILTIN_TYPE:
            # Placeholders are synthesized by the builder, never taken from input.
            logger.debug("Discarding builtin type from input: %s", entity.qualified_identifier)
            continue
        getattr(classified, KIND_TABLES[entity.kind]).append(entity)

    logger.debug(
        "Classified %d entities: %s",
        len(ordered),
        ", ".join(f"{name}={len(getattr(classified, name))}" for name in KIND_TABLES.values()),
    )
    return classified
