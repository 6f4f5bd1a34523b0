"""Unit tests for sql_entity_graph.telemetry.profiling."""

from __future__ import annotations

import pytest

from sql_entity_graph.telemetry.profiling import ProfileCollector, ProfileResult, profile_operation


@pytest.fixture(autouse=True)
def _reset_collector():
    ProfileCollector.reset()
    yield
    ProfileCollector.reset()


class TestProfileCollector:
    def test_singleton(self):
        assert ProfileCollector.get_instance() is ProfileCollector.get_instance()

    def test_reset_drops_instance(self):
        first = ProfileCollector.get_instance()
        ProfileCollector.reset()
        assert ProfileCollector.get_instance() is not first

    def test_stats(self):
        collector = ProfileCollector()
        for duration in (1.0, 2.0, 6.0):
            collector.record(ProfileResult(operation="op", duration_ms=duration))
        collector.record(ProfileResult(operation="op", duration_ms=3.0, failed=True))
        assert collector.get_stats("op") == {
            "operation": "op",
            "count": 4,
            "failures": 1,
            "mean_ms": 3.0,
            "min_ms": 1.0,
            "max_ms": 6.0,
        }

    def test_unknown_operation(self):
        assert ProfileCollector().get_stats("missing") is None

    def test_keeps_most_recent(self):
        collector = ProfileCollector(max_results=2)
        for duration in (10.0, 1.0, 2.0):
            collector.record(ProfileResult(operation="op", duration_ms=duration))
        stats = collector.get_stats("op")
        assert stats["count"] == 2
        assert stats["max_ms"] == 2.0

    def test_operations_sorted(self):
        collector = ProfileCollector()
        collector.record(ProfileResult(operation="b", duration_ms=1.0))
        collector.record(ProfileResult(operation="a", duration_ms=1.0))
        assert collector.operations() == ["a", "b"]


class TestProfileOperation:
    def test_records_success(self):
        @profile_operation("unit.add")
        def add(a, b):
            return a + b

        assert add(2, 3) == 5
        stats = ProfileCollector.get_instance().get_stats("unit.add")
        assert stats["count"] == 1
        assert stats["failures"] == 0

    def test_records_failure_and_reraises(self):
        @profile_operation("unit.fail")
        def fail():
            raise KeyError("x")

        with pytest.raises(KeyError):
            fail()
        assert ProfileCollector.get_instance().get_stats("unit.fail")["failures"] == 1

    def test_preserves_metadata(self):
        @profile_operation("unit.named")
        def named():
            """Docstring."""

        assert named.__name__ == "named"
        assert named.__doc__ == "Docstring."

    def test_logs_duration(self, caplog: pytest.LogCaptureFixture):
        @profile_operation("unit.logged")
        def noop():
            return None

        with caplog.at_level("DEBUG", logger="sql_entity_graph.telemetry.profiling"):
            noop()
        assert "PROFILE unit.logged" in caplog.text
