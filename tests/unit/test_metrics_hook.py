"""Tests for the MetricsHook protocol and its wiring.

Covers:
  - Protocol conformance (isinstance, structural subtyping)
  - Every documented metric name is emitted by a reconciliation run
  - Tags and values of the paragraph op counters
"""
from __future__ import annotations

from parakeys.config import ParakeysConfig
from parakeys.observability.metrics import MetricsHook, NoopMetricsHook
from parakeys.reconciler import Reconciler

DOCUMENTED = {
    "parakeys.diff_duration_ms",
    "parakeys.reconcile_duration_ms",
    "parakeys.paragraph_ops_total",
    "parakeys.keys_minted_total",
    "parakeys.minted_key_length_max",
    "parakeys.bootstrap_total",
    "parakeys.rebuild_total",
}


class TestMetricsHookProtocol:
    def test_noop_is_instance(self):
        assert isinstance(NoopMetricsHook(), MetricsHook)

    def test_recording_hook_is_instance(self, metrics):
        assert isinstance(metrics, MetricsHook)

    def test_class_missing_gauge_is_not_instance(self):
        class PartialHook:
            def increment(self, name, value=1, tags=None):
                pass

            def timing(self, name, ms, tags=None):
                pass

        assert not isinstance(PartialHook(), MetricsHook)


class TestEmittedMetrics:
    def test_every_documented_name_is_emitted(self, metrics, monkeypatch):
        from parakeys.errors import ParakeysConsistencyError

        reconciler = Reconciler(ParakeysConfig(metrics=metrics, inconsistency_policy="rebuild"))
        first = reconciler.reconcile("Foo\n\n", "doc")
        second = reconciler.reconcile("Foo\n\nBar\n\n", "doc", first.snapshot, first.retained_keys)

        def fail(snapshot, new_text):
            raise ParakeysConsistencyError()

        monkeypatch.setattr(reconciler._planner, "plan", fail)
        reconciler.reconcile("Baz\n\n", "doc", second.snapshot, second.retained_keys)
        assert metrics.names() == DOCUMENTED

    def test_op_counters_are_tagged(self, recording_config, metrics):
        reconciler = Reconciler(recording_config)
        old = {"doc:0": "Foo", "doc:2": "Bar"}
        reconciler.reconcile("Foo\n\nBaz\n\nQux\n\n", "doc", old, sorted(old))
        tags = {
            c["tags"]["op"]
            for c in metrics.increments
            if c["name"] == "parakeys.paragraph_ops_total"
        }
        assert "keep" in tags
        assert tags <= {"keep", "update", "replace", "insert", "delete"}

    def test_bootstrap_skips_diff(self, recording_config, metrics):
        Reconciler(recording_config).reconcile("Foo\n\n", "doc")
        assert metrics.names() == {"parakeys.bootstrap_total", "parakeys.reconcile_duration_ms"}

    def test_noop_default(self):
        result = Reconciler(ParakeysConfig()).reconcile("Foo\n\n", "doc")
        assert result.bootstrapped
