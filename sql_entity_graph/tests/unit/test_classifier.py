"""Unit tests for sql_entity_graph.graph.classifier."""

from __future__ import annotations

import pytest

from sql_entity_graph.errors import StructuralInvariantError
from sql_entity_graph.graph.classifier import classify_entities
from sql_entity_graph.models import (
    BuiltinTypeEntity,
    ControlFile,
    EnumEntity,
    ExtensionSqlEntity,
    FunctionEntity,
    SchemaEntity,
    TriggerEntity,
    TypeEntity,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _control() -> ControlFile:
    return ControlFile(default_version="1.0")


def _fn(name: str, module: str = "ext") -> FunctionEntity:
    return FunctionEntity(name=name, module_path=module, full_path=f"{module}.{name}")


def _type(name: str, module: str = "ext") -> TypeEntity:
    return TypeEntity(name=name, module_path=module, full_path=f"{module}.{name}", type_id=f"{module}.{name}")


class TestClassifyEntities:
    def test_buckets_by_kind(self):
        entities = [
            _fn("add"),
            SchemaEntity(name="s", module_path="ext.s"),
            _control(),
            _type("Dog"),
            EnumEntity(name="Mood", module_path="ext", full_path="ext.Mood", type_id="ext.Mood"),
            TriggerEntity(function_name="audit", module_path="ext", full_path="ext.audit"),
            ExtensionSqlEntity(name="setup", module_path="ext", full_path="ext.setup", sql=""),
        ]
        classified = classify_entities(entities)
        assert classified.control == _control()
        assert [s.name for s in classified.schemas] == ["s"]
        assert [f.name for f in classified.functions] == ["add"]
        assert [t.name for t in classified.types] == ["Dog"]
        assert [e.name for e in classified.enums] == ["Mood"]
        assert [t.function_name for t in classified.triggers] == ["audit"]
        assert [x.name for x in classified.extension_sqls] == ["setup"]
        assert classified.ords == []
        assert classified.hashes == []
        assert classified.aggregates == []

    def test_buckets_are_sorted(self):
        classified = classify_entities([_fn("zeta"), _control(), _fn("alpha"), _fn("mid")])
        assert [f.name for f in classified.functions] == ["alpha", "mid", "zeta"]

    def test_sorting_is_independent_of_input_order(self):
        entities = [_fn("b"), _type("T"), _control(), _fn("a")]
        forward = classify_entities(entities)
        backward = classify_entities(list(reversed(entities)))
        assert forward.functions == backward.functions
        assert forward.types == backward.types

    def test_missing_control_raises(self):
        with pytest.raises(StructuralInvariantError, match="No control entity found"):
            classify_entities([_fn("add")])

    def test_multiple_controls_raise(self):
        with pytest.raises(StructuralInvariantError, match="exactly one control entity"):
            classify_entities([_control(), ControlFile(default_version="2.0")])

    def test_builtin_types_discarded(self):
        classified = classify_entities([_control(), BuiltinTypeEntity(full_path="i32")])
        assert classified.types == []
        assert classified.functions == []

    def test_equal_entities_collapse(self):
        classified = classify_entities([_control(), _fn("add"), _fn("add")])
        assert len(classified.functions) == 1

    def test_accepts_generator(self):
        classified = classify_entities(e for e in [_control(), _fn("add")])
        assert len(classified.functions) == 1
