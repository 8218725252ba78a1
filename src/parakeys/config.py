"""Configuration for parakeys.

:class:`ParakeysConfig` is a frozen-friendly dataclass that captures every
tuneable knob of the reconciler.  Instances are passed to
:class:`~parakeys.reconciler.Reconciler` and to the file helpers in
:mod:`parakeys.store`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

DEFAULT_MAX_DIFF_DURATION: float = 60.0
"""Default wall-clock budget (seconds) for computing one edit script."""


@dataclass
class ParakeysConfig:
    """Complete configuration for a reconciler.

    Every parameter has a sensible default, so ``ParakeysConfig()`` is a
    valid configuration.

    Parameters
    ----------
    max_diff_duration:
        Caps the wall-clock time (seconds) spent computing an edit script.
        When the budget runs out the differ returns a coarser, non-minimal
        script instead of failing; paragraph classification may then be
        coarser as well.
    inconsistency_policy:
        What to do when the edit script cannot be lined up with the stored
        paragraphs.

        * ``"raise"``: raise :class:`ParakeysConsistencyError`.
        * ``"rebuild"``: log a warning and give every paragraph of the new
          text a freshly minted key.  Old keys stay retained.
    backup_previous:
        When persisting with :func:`parakeys.store.save_state`, copy the
        previous snapshot file to ``<stem>.json.old`` first.
    metrics:
        Optional :class:`~parakeys.observability.MetricsHook` backend.
    debug_dump_diff:
        Log the normalized edit script at ``DEBUG`` level on every run.
    """

    # ── Diffing ─────────────────────────────────────────────────────────
    max_diff_duration: float = DEFAULT_MAX_DIFF_DURATION

    # ── Failure handling ────────────────────────────────────────────────
    inconsistency_policy: Literal["raise", "rebuild"] = "raise"

    # ── Persistence ─────────────────────────────────────────────────────
    backup_previous: bool = True

    # ── Observability ──────────────────────────────────────────────────
    metrics: Any | None = None

    # ── Debug ───────────────────────────────────────────────────────────
    debug_dump_diff: bool = False

    def __post_init__(self) -> None:
        """Validate configuration after initialization."""
        if self.max_diff_duration <= 0:
            raise ValueError(
                f"max_diff_duration must be > 0, got {self.max_diff_duration}"
            )
        if self.inconsistency_policy not in ("raise", "rebuild"):
            raise ValueError(
                "inconsistency_policy must be 'raise' or 'rebuild', "
                f"got {self.inconsistency_policy!r}"
            )
