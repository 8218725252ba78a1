"""Shared test fixtures for the parakeys test suite."""

from __future__ import annotations

from typing import Any

import pytest

from parakeys.config import ParakeysConfig
from parakeys.diff.differ import TextDiffer
from parakeys.diff.executor import KeyExecutor
from parakeys.diff.planner import ReconcilePlanner
from parakeys.reconciler import Reconciler


class RecordingMetricsHook:
    """A metrics backend that records all calls for assertion."""

    def __init__(self) -> None:
        self.increments: list[dict[str, Any]] = []
        self.timings: list[dict[str, Any]] = []
        self.gauges: list[dict[str, Any]] = []

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.increments.append({"name": name, "value": value, "tags": tags})

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.timings.append({"name": name, "ms": ms, "tags": tags})

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        self.gauges.append({"name": name, "value": value, "tags": tags})

    def names(self) -> set[str]:
        return {
            c["name"] for c in (*self.increments, *self.timings, *self.gauges)
        }


@pytest.fixture
def config() -> ParakeysConfig:
    """Default test configuration."""
    return ParakeysConfig()


@pytest.fixture
def metrics() -> RecordingMetricsHook:
    return RecordingMetricsHook()


@pytest.fixture
def recording_config(metrics: RecordingMetricsHook) -> ParakeysConfig:
    """Configuration wired to a :class:`RecordingMetricsHook`."""
    return ParakeysConfig(metrics=metrics)


@pytest.fixture
def differ(config: ParakeysConfig) -> TextDiffer:
    return TextDiffer(config)


@pytest.fixture
def planner(config: ParakeysConfig, differ: TextDiffer) -> ReconcilePlanner:
    return ReconcilePlanner(config, differ)


@pytest.fixture
def executor(config: ParakeysConfig) -> KeyExecutor:
    return KeyExecutor(config)


@pytest.fixture
def reconciler(config: ParakeysConfig) -> Reconciler:
    """Reconciler using the default test config."""
    return Reconciler(config)
