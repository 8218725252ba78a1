"""Diff engine for paragraph reconciliation.

Exports
-------
TextDiffer
    Computes edit scripts and edit distances under a time budget.
normalize
    Re-cuts a raw edit script at paragraph boundaries.
ReconcilePlanner
    Lines up stored paragraphs with a new text and plans operations.
KeyExecutor
    Applies a plan, minting keys for new paragraphs.
collect_changes
    Compares two snapshots for change reporting.
"""

from .differ import TextDiffer
from .executor import KeyExecutor, collect_changes
from .normalizer import normalize
from .planner import ReconcilePlanner

__all__ = [
    "KeyExecutor",
    "ReconcilePlanner",
    "TextDiffer",
    "collect_changes",
    "normalize",
]
