"""Graph construction, reference resolution and linearization."""

from sql_entity_graph.graph.classifier import ClassifiedEntities, classify_entities
from sql_entity_graph.graph.linearizer import linearize, linearize_indices
from sql_entity_graph.graph.resolver import find_positioning_ref_target
from sql_entity_graph.graph.sql_graph import Renderer, SqlGraph
from sql_entity_graph.graph.store import NodeLookups

__all__ = [
    "ClassifiedEntities",
    "NodeLookups",
    "Renderer",
    "SqlGraph",
    "classify_entities",
    "find_positioning_ref_target",
    "linearize",
    "linearize_indices",
]
