"""Metrics hook protocol and no-op default implementation.

parakeys reports counters and timings for every reconciliation run.  By
default a :class:`NoopMetricsHook` swallows them; pass any object that
satisfies :class:`MetricsHook` as ``ParakeysConfig(metrics=...)`` to route
them to StatsD, Prometheus or a test recorder.

Emitted metric names:

* ``parakeys.diff_duration_ms``        -- timing
* ``parakeys.reconcile_duration_ms``   -- timing
* ``parakeys.paragraph_ops_total``     -- counter, tagged by ``op``
* ``parakeys.keys_minted_total``       -- counter
* ``parakeys.minted_key_length_max`` -- gauge, longest key minted in a run
* ``parakeys.bootstrap_total``         -- counter
* ``parakeys.rebuild_total``           -- counter
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class MetricsHook(Protocol):
    """Protocol that any metrics backend must satisfy.

    All methods accept an optional *tags* dict of string keys and values.
    """

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Increment the counter *name* by *value*."""
        ...

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Record a duration of *ms* milliseconds under *name*."""
        ...

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        """Set the gauge *name* to *value*."""
        ...


class NoopMetricsHook:
    """Metrics backend that discards every data point.

    Used when no backend is configured so call sites never need a
    ``None`` check.
    """

    __slots__ = ()

    def increment(
        self,
        name: str,
        value: int = 1,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def timing(
        self,
        name: str,
        ms: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass

    def gauge(
        self,
        name: str,
        value: float,
        tags: dict[str, str] | None = None,
    ) -> None:
        pass
