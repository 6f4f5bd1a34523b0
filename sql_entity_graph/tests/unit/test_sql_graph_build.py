"""Unit tests for SqlGraph.build: node phase and connector passes."""

from __future__ import annotations

import networkx as nx
import pytest

from sql_entity_graph.config import Settings
from sql_entity_graph.errors import (
    MissingBuiltinTypeError,
    StructuralInvariantError,
    UnresolvedReferenceError,
)
from sql_entity_graph.graph import SqlGraph
from sql_entity_graph.graph.classifier import classify_entities
from sql_entity_graph.graph.connectors import connect_functions
from sql_entity_graph.graph.nodes import build_nodes
from sql_entity_graph.models import (
    AggregateArgument,
    AggregateEntity,
    BuiltinTypeEntity,
    ControlFile,
    EnumEntity,
    ExtensionSqlEntity,
    FullPathRef,
    FunctionArgument,
    FunctionEntity,
    FunctionReturn,
    FunctionReturnKind,
    HashEntity,
    IteratedItem,
    NameRef,
    OrdEntity,
    SchemaEntity,
    SqlDeclaredEntity,
    SqlDeclaredKind,
    SqlGraphRelationship,
    TriggerEntity,
    TypeEntity,
    UsedType,
)

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

CONTROL = ControlFile(default_version="1.0")


def _build(*entities, settings: Settings | None = None) -> SqlGraph:
    return SqlGraph.build({}, [CONTROL, *entities], "ext", False, settings=settings)


def _used(path: str) -> UsedType:
    return UsedType(ty_source=path.rsplit(".", 1)[-1], full_path=path, type_id=path)


def _type(name: str, module: str = "ext") -> TypeEntity:
    return TypeEntity(name=name, module_path=module, full_path=f"{module}.{name}", type_id=f"{module}.{name}")


def _enum(name: str, module: str = "ext") -> EnumEntity:
    return EnumEntity(name=name, module_path=module, full_path=f"{module}.{name}", type_id=f"{module}.{name}")


def _fn(
    name: str,
    module: str = "ext",
    args: tuple[str, ...] = (),
    returns: str | None = None,
    **kwargs,
) -> FunctionEntity:
    fn_return = FunctionReturn()
    if returns is not None:
        fn_return = FunctionReturn(kind=FunctionReturnKind.TYPE, ty=_used(returns))
    return FunctionEntity(
        name=name,
        module_path=module,
        full_path=f"{module}.{name}",
        args=tuple(FunctionArgument(pattern=f"arg{i}", used_ty=_used(a)) for i, a in enumerate(args)),
        returns=fn_return,
        **kwargs,
    )


def _sql(name: str, module: str = "ext", **kwargs) -> ExtensionSqlEntity:
    return ExtensionSqlEntity(name=name, module_path=module, full_path=f"{module}.{name}", sql=f"-- {name}", **kwargs)


def _aggregate(name: str = "DogAgg", module: str = "ext", **kwargs) -> AggregateEntity:
    fields = dict(name=name, module_path=module, full_path=f"{module}.{name}", type_id=f"{module}.{name}", sfunc="state")
    fields.update(kwargs)
    return AggregateEntity(**fields)


def _idx(graph: SqlGraph, entity) -> int:
    index = graph.index_of(entity)
    assert index is not None, f"{entity.qualified_identifier} is not in the graph"
    return index


def _relationships(graph: SqlGraph, before, after) -> set[SqlGraphRelationship]:
    data = graph.graph.get_edge_data(_idx(graph, before), _idx(graph, after), default={})
    return {attrs["relationship"] for attrs in data.values()}


def _builtin(graph: SqlGraph, path: str) -> BuiltinTypeEntity:
    return graph.entity(graph.builtin_types[path])


# ---------------------------------------------------------------------------
# Root and anchors
# ---------------------------------------------------------------------------


class TestRootAndAnchors:
    def test_root_precedes_every_node(self):
        graph = _build(SchemaEntity(name="s", module_path="ext.s"), _type("Dog"), _fn("add", args=("i32",)))
        for index in graph.graph.nodes:
            if index != graph.root:
                assert graph.graph.has_edge(graph.root, index)

    def test_two_bootstraps_raise(self):
        with pytest.raises(StructuralInvariantError, match="bootstrap"):
            _build(_sql("a", bootstrap=True), _sql("b", bootstrap=True))

    def test_two_finalizes_raise(self):
        with pytest.raises(StructuralInvariantError, match="finalize"):
            _build(_sql("a", finalize=True), _sql("b", finalize=True))

    def test_duplicate_anchor_error_names_both(self):
        with pytest.raises(StructuralInvariantError) as excinfo:
            _build(_sql("a", bootstrap=True), _sql("b", bootstrap=True))
        assert "ext.a" in str(excinfo.value)
        assert "ext.b" in str(excinfo.value)

    def test_no_anchors(self):
        dog = _type("Dog")
        graph = _build(dog, _sql("plain"))
        assert graph.bootstrap is None
        assert graph.finalize is None
        assert list(graph.graph.predecessors(_idx(graph, dog))) == [graph.root]
        assert list(graph.graph.successors(_idx(graph, dog))) == []

    def test_bootstrap_precedes_and_finalize_follows(self):
        boot = _sql("boot", bootstrap=True)
        fin = _sql("fin", finalize=True)
        schema = SchemaEntity(name="s", module_path="ext.s")
        dog = _type("Dog")
        add = _fn("add")
        graph = _build(boot, fin, schema, dog, add)

        for entity in (schema, dog, add):
            assert graph.graph.has_edge(graph.bootstrap, _idx(graph, entity))
            assert graph.graph.has_edge(_idx(graph, entity), graph.finalize)
        assert graph.graph.has_edge(graph.bootstrap, graph.finalize)
        assert not graph.graph.has_edge(graph.bootstrap, graph.bootstrap)
        assert not graph.graph.has_edge(graph.finalize, graph.finalize)

        order = graph.linearize()
        assert order[0] == CONTROL
        assert order[1] == boot
        assert order[-1] == fin


# ---------------------------------------------------------------------------
# Builtin type placeholders
# ---------------------------------------------------------------------------


class TestBuiltinPlaceholders:
    def test_shared_placeholder_for_same_path(self):
        f = _fn("f", args=("i32",))
        g = _fn("g", args=("i32",))
        graph = _build(f, g)

        builtins = [e for e in graph.linearize() if isinstance(e, BuiltinTypeEntity)]
        assert builtins == [BuiltinTypeEntity(full_path="i32")]
        placeholder = _builtin(graph, "i32")
        assert _relationships(graph, placeholder, f) == {SqlGraphRelationship.REQUIRED_BY_ARG}
        assert _relationships(graph, placeholder, g) == {SqlGraphRelationship.REQUIRED_BY_ARG}

    def test_return_and_iterated_placeholders(self):
        iterated = FunctionEntity(
            name="rows",
            module_path="ext",
            full_path="ext.rows",
            returns=FunctionReturn(
                kind=FunctionReturnKind.ITERATED,
                iterated=(IteratedItem(name="a", ty=_used("i64")), IteratedItem(name="b", ty=_used("text"))),
            ),
        )
        graph = _build(_fn("f", returns="bool"), iterated)
        assert set(graph.builtin_types) == {"bool", "i64", "text"}
        assert _relationships(graph, _builtin(graph, "i64"), iterated) == {SqlGraphRelationship.REQUIRED_BY_RETURN}

    def test_declared_type_gets_no_placeholder(self):
        graph = _build(_type("Dog"), _enum("Mood"), _fn("f", args=("ext.Dog", "ext.Mood")))
        assert dict(graph.builtin_types) == {}

    def test_placeholders_exist_before_connector_passes(self):
        graph = nx.MultiDiGraph()
        classified = classify_entities(
            [
                CONTROL,
                _fn("f", args=("i32",), returns="text"),
                _aggregate(args=(AggregateArgument(used_ty=_used("f64")),), mstype=_used("internal")),
            ]
        )
        lookups = build_nodes(graph, classified)
        assert set(lookups.builtin_types) == {"i32", "text", "f64", "internal"}

    def test_missing_placeholder_is_internal_error(self):
        graph = nx.MultiDiGraph()
        lookups = build_nodes(graph, classify_entities([CONTROL, _fn("f", args=("i32",))]))
        lookups.builtin_types.clear()
        with pytest.raises(MissingBuiltinTypeError, match="i32"):
            connect_functions(graph, lookups)

    def test_missing_placeholder_error_is_runtime_error(self):
        assert issubclass(MissingBuiltinTypeError, RuntimeError)


# ---------------------------------------------------------------------------
# Schema membership
# ---------------------------------------------------------------------------


class TestSchemaMembership:
    def test_entities_in_schema_module_follow_schema(self):
        schema = SchemaEntity(name="animals", module_path="ext.animals")
        dog = _type("Dog", "ext.animals")
        mood = _enum("Mood", "ext.animals")
        trigger = TriggerEntity(function_name="audit", module_path="ext.animals", full_path="ext.animals.audit")
        fragment = _sql("setup", "ext.animals")
        graph = _build(schema, dog, mood, trigger, fragment)
        for entity in (dog, mood, trigger, fragment):
            assert _relationships(graph, schema, entity) == {SqlGraphRelationship.REQUIRED_BY}

    def test_schema_membership_is_exact(self):
        schema = SchemaEntity(name="animals", module_path="ext.animals")
        dog = _type("Dog", "ext.animals.dogs")
        graph = _build(schema, dog)
        assert not graph.graph.has_edge(_idx(graph, schema), _idx(graph, dog))

    def test_unscoped_entity_is_not_an_error(self):
        graph = _build(_type("Dog", "ext.elsewhere"))
        assert graph.graph.number_of_nodes() == 2

    def test_schema_follows_root(self):
        schema = SchemaEntity(name="animals", module_path="ext.animals")
        graph = _build(schema)
        assert graph.graph.has_edge(graph.root, _idx(graph, schema))

    def test_explicit_function_schema(self):
        by_path = SchemaEntity(name="animals", module_path="ext.animals")
        named = SchemaEntity(name="math", module_path="ext.math")
        fn = _fn("add", "ext.animals", schema="math")
        graph = _build(by_path, named, fn)
        assert graph.graph.has_edge(_idx(graph, named), _idx(graph, fn))
        assert not graph.graph.has_edge(_idx(graph, by_path), _idx(graph, fn))

    def test_missing_explicit_schema_is_fatal(self):
        with pytest.raises(UnresolvedReferenceError, match="did not exist") as excinfo:
            _build(_fn("add", schema="nowhere"))
        assert excinfo.value.reference == "nowhere"
        assert excinfo.value.identifier == "ext.add"


# ---------------------------------------------------------------------------
# Extension SQL
# ---------------------------------------------------------------------------


class TestExtensionSqlConnections:
    def test_requires_by_path_and_name(self):
        dog = _type("Dog")
        first = _sql("first")
        second = _sql("second", requires=(FullPathRef(path="ext.Dog"), NameRef(name="first")))
        graph = _build(dog, first, second)
        assert graph.graph.has_edge(_idx(graph, dog), _idx(graph, second))
        assert graph.graph.has_edge(_idx(graph, first), _idx(graph, second))

    def test_unresolved_requires_reports_location(self):
        fragment = _sql("broken", requires=(FullPathRef(path="ext.Missing"),), file="src/lib.rs", line=42)
        with pytest.raises(UnresolvedReferenceError) as excinfo:
            _build(fragment)
        message = str(excinfo.value)
        assert "ext.broken" in message
        assert "src/lib.rs:42" in message
        assert "ext.Missing" in message
        assert excinfo.value.location == "src/lib.rs:42"

    def test_unresolved_name_ref_is_quoted(self):
        with pytest.raises(UnresolvedReferenceError, match='"ghost"'):
            _build(_sql("broken", requires=(NameRef(name="ghost"),)))

    def test_declared_sql_type_orders_function_after_fragment(self):
        fragment = _sql(
            "complex_type",
            creates=(SqlDeclaredEntity(kind=SqlDeclaredKind.TYPE, sql="complex", name="ext.Complex"),),
        )
        fn = _fn("magnitude", args=("ext.Complex",))
        graph = _build(fragment, fn)
        assert _relationships(graph, fragment, fn) == {SqlGraphRelationship.REQUIRED_BY_ARG}
        # The placeholder edge is kept alongside the fragment edge.
        assert graph.graph.has_edge(graph.builtin_types["ext.Complex"], _idx(graph, fn))

    def test_declared_sql_enum_on_return(self):
        fragment = _sql(
            "mood_type",
            creates=(SqlDeclaredEntity(kind=SqlDeclaredKind.ENUM, sql="mood", name="ext.Mood"),),
        )
        fn = _fn("current_mood", returns="ext.Mood")
        graph = _build(fragment, fn)
        assert graph.graph.has_edge(_idx(graph, fragment), _idx(graph, fn))


# ---------------------------------------------------------------------------
# Functions
# ---------------------------------------------------------------------------


class TestFunctionConnections:
    def test_type_argument_and_return(self):
        dog = _type("Dog")
        fn = _fn("clone_dog", args=("ext.Dog",), returns="ext.Dog")
        graph = _build(dog, fn)
        assert _relationships(graph, dog, fn) == {
            SqlGraphRelationship.REQUIRED_BY_ARG,
            SqlGraphRelationship.REQUIRED_BY_RETURN,
        }

    def test_enum_argument(self):
        mood = _enum("Mood")
        fn = _fn("describe", args=("ext.Mood",))
        graph = _build(mood, fn)
        assert _relationships(graph, mood, fn) == {SqlGraphRelationship.REQUIRED_BY_ARG}

    def test_requires_resolved(self):
        helper = _fn("helper")
        fn = _fn("main", requires=(FullPathRef(path="ext.helper"),))
        graph = _build(helper, fn)
        assert graph.graph.has_edge(_idx(graph, helper), _idx(graph, fn))

    def test_unresolved_requires_is_fatal(self):
        with pytest.raises(UnresolvedReferenceError, match="ext.ghost"):
            _build(_fn("main", requires=(FullPathRef(path="ext.ghost"),)))

    def test_eq_function_precedes_hash(self):
        dog = _type("Dog")
        hash_entity = HashEntity(name="Dog", module_path="ext", full_path="ext.Dog", type_id="ext.Dog")
        eq = _fn("dog_eq", args=("ext.Dog", "ext.Dog"), returns="bool")
        graph = _build(dog, hash_entity, eq)
        assert graph.graph.has_edge(_idx(graph, eq), _idx(graph, hash_entity))

    def test_eq_function_in_other_module_ignored(self):
        dog = _type("Dog")
        hash_entity = HashEntity(name="Dog", module_path="ext", full_path="ext.Dog", type_id="ext.Dog")
        eq = _fn("dog_eq", "ext.other")
        graph = _build(dog, hash_entity, eq)
        assert not graph.graph.has_edge(_idx(graph, eq), _idx(graph, hash_entity))


# ---------------------------------------------------------------------------
# Operator classes
# ---------------------------------------------------------------------------


class TestOperatorConnections:
    def test_ord_follows_type_and_comparison_functions(self):
        dog = _type("Dog")
        ord_entity = OrdEntity(name="Dog", module_path="ext", full_path="ext.Dog", type_id="ext.Dog")
        comparisons = [_fn(f"dog_{suffix}") for suffix in ("cmp", "lt", "le", "eq", "gt", "ge")]
        unrelated = _fn("dog_bark")
        graph = _build(dog, ord_entity, unrelated, *comparisons)

        assert graph.graph.has_edge(_idx(graph, dog), _idx(graph, ord_entity))
        for fn in comparisons:
            assert graph.graph.has_edge(_idx(graph, fn), _idx(graph, ord_entity))
        assert not graph.graph.has_edge(_idx(graph, unrelated), _idx(graph, ord_entity))

    def test_ord_without_comparison_functions_builds(self):
        dog = _type("Dog")
        ord_entity = OrdEntity(name="Dog", module_path="ext", full_path="ext.Dog", type_id="ext.Dog")
        graph = _build(dog, ord_entity, _fn("unrelated"))
        predecessors = set(graph.graph.predecessors(_idx(graph, ord_entity)))
        assert predecessors == {graph.root, _idx(graph, dog)}
        assert ord_entity in graph.linearize()

    def test_hash_follows_hash_function(self):
        dog = _type("Dog")
        hash_entity = HashEntity(name="Dog", module_path="ext", full_path="ext.Dog", type_id="ext.Dog")
        hash_fn = _fn("dog_hash", args=("ext.Dog",), returns="i32")
        graph = _build(dog, hash_entity, hash_fn)
        assert graph.graph.has_edge(_idx(graph, hash_fn), _idx(graph, hash_entity))

    def test_operator_on_enum(self):
        mood = _enum("Mood")
        ord_entity = OrdEntity(name="Mood", module_path="ext", full_path="ext.Mood", type_id="ext.Mood")
        graph = _build(mood, ord_entity)
        assert graph.graph.has_edge(_idx(graph, mood), _idx(graph, ord_entity))

    def test_missing_operator_type_is_fatal_by_default(self):
        ord_entity = OrdEntity(name="Ghost", module_path="ext", full_path="ext.Ghost", type_id="ext.Ghost")
        with pytest.raises(UnresolvedReferenceError, match="no type or enum"):
            _build(ord_entity, settings=Settings(strict_operator_types=True))

    def test_missing_operator_type_tolerated_when_not_strict(self, caplog: pytest.LogCaptureFixture):
        hash_entity = HashEntity(name="Ghost", module_path="ext", full_path="ext.Ghost", type_id="ext.Ghost")
        with caplog.at_level("WARNING", logger="sql_entity_graph.graph.connectors"):
            graph = _build(hash_entity, settings=Settings(strict_operator_types=False))
        assert hash_entity in graph.linearize()
        assert "ext.Ghost" in caplog.text


# ---------------------------------------------------------------------------
# Aggregates
# ---------------------------------------------------------------------------


class TestAggregateConnections:
    def test_support_functions_precede_aggregate(self):
        functions = [_fn(name) for name in ("state", "finish", "combine", "ser", "deser", "mstate", "minv", "mfinish")]
        aggregate = _aggregate(
            finalfunc="finish",
            combinefunc="combine",
            serialfunc="ser",
            deserialfunc="deser",
            msfunc="mstate",
            minvfunc="minv",
            mfinalfunc="mfinish",
        )
        graph = _build(aggregate, *functions)
        for fn in functions:
            assert graph.graph.has_edge(_idx(graph, fn), _idx(graph, aggregate))

    def test_missing_sfunc_is_fatal(self):
        with pytest.raises(UnresolvedReferenceError, match="ext.state") as excinfo:
            _build(_aggregate(), _fn("unrelated"))
        assert excinfo.value.identifier == "ext.DogAgg"
        assert "ext.unrelated" in str(excinfo.value)

    def test_missing_optional_support_function_is_fatal(self):
        with pytest.raises(UnresolvedReferenceError, match="ext.finish"):
            _build(_aggregate(finalfunc="finish"), _fn("state"))

    def test_support_function_must_share_module(self):
        with pytest.raises(UnresolvedReferenceError):
            _build(_aggregate(), _fn("state", "ext.other"))

    def test_argument_types(self):
        dog = _type("Dog")
        aggregate = _aggregate(
            args=(AggregateArgument(used_ty=_used("ext.Dog")), AggregateArgument(used_ty=_used("i32"))),
            direct_args=(AggregateArgument(used_ty=_used("f64")),),
            mstype=_used("internal"),
        )
        graph = _build(dog, aggregate, _fn("state"))
        assert SqlGraphRelationship.REQUIRED_BY_ARG in _relationships(graph, dog, aggregate)
        for path in ("i32", "f64", "internal"):
            assert graph.graph.has_edge(graph.builtin_types[path], _idx(graph, aggregate))

    def test_implementing_type_is_advisory(self):
        aggregate = _aggregate(type_id="undeclared")
        graph = _build(aggregate, _fn("state"))
        assert aggregate in graph.linearize()

    def test_implementing_type_links_when_declared(self):
        state_type = _type("DogAgg")
        aggregate = _aggregate()
        graph = _build(state_type, aggregate, _fn("state"))
        assert graph.graph.has_edge(_idx(graph, state_type), _idx(graph, aggregate))
