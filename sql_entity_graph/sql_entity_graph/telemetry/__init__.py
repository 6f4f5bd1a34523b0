"""Logging and profiling support."""

from sql_entity_graph.telemetry.logging_setup import JSONFormatter, configure_logging
from sql_entity_graph.telemetry.profiling import (
    ProfileCollector,
    ProfileResult,
    profile_operation,
)

__all__ = [
    "JSONFormatter",
    "ProfileCollector",
    "ProfileResult",
    "configure_logging",
    "profile_operation",
]
