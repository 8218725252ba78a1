"""parakeys: stable paragraph keys for documents that keep changing.

Public re-exports
-----------------

* **Reconciler:** :class:`Reconciler`, :func:`reconcile`
* **File sync:** :func:`sync_file`, :func:`load_state`, :func:`save_state`
* **Configuration:** :class:`ParakeysConfig`
* **Errors:** Every :class:`ParakeysError` subclass and :class:`ErrorCode`
* **Models:** Result dataclasses and enums

Usage::

    from parakeys import sync_file

    result = sync_file("docs/guide.md")
    for change in result.changes:
        print(change.kind.value, change.key)
"""

from __future__ import annotations

# ── Codec and ordering ──────────────────────────────────────────────────
from parakeys.codec import render, segment

# ── Configuration ───────────────────────────────────────────────────────
from parakeys.config import DEFAULT_MAX_DIFF_DURATION, ParakeysConfig

# ── Errors ──────────────────────────────────────────────────────────────
from parakeys.errors import (
    ErrorCode,
    ParakeysConsistencyError,
    ParakeysError,
    ParakeysKeySpaceError,
    ParakeysMalformedInputError,
    ParakeysStoreError,
)

# ── Models ──────────────────────────────────────────────────────────────
from parakeys.models import (
    ChangeKind,
    ChangeReport,
    ParagraphChange,
    ParagraphOp,
    ParagraphOpType,
    ReconcileResult,
    Span,
    SpanOp,
)
from parakeys.ordering import KeyIndex

# ── Reconciler ──────────────────────────────────────────────────────────
from parakeys.reconciler import Reconciler, reconcile

# ── File sync ───────────────────────────────────────────────────────────
from parakeys.store import StatePaths, load_state, save_state, state_paths, sync_file

# ── Public surface ──────────────────────────────────────────────────────

__all__ = [
    # Reconciler
    "Reconciler",
    "reconcile",
    # File sync
    "StatePaths",
    "state_paths",
    "load_state",
    "save_state",
    "sync_file",
    # Codec and ordering
    "segment",
    "render",
    "KeyIndex",
    # Configuration
    "ParakeysConfig",
    "DEFAULT_MAX_DIFF_DURATION",
    # Errors
    "ParakeysError",
    "ErrorCode",
    "ParakeysMalformedInputError",
    "ParakeysConsistencyError",
    "ParakeysKeySpaceError",
    "ParakeysStoreError",
    # Models
    "ChangeKind",
    "ChangeReport",
    "ParagraphChange",
    "ParagraphOp",
    "ParagraphOpType",
    "ReconcileResult",
    "Span",
    "SpanOp",
]
