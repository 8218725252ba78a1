"""Key executor: apply a paragraph plan and mint the missing keys.

Takes the operation plan produced by :class:`ReconcilePlanner` and builds
the new snapshot.  Surviving keys (``KEEP`` and ``UPDATE``) are taken as
they are; every ``INSERT`` and ``REPLACE`` gets a key from
:meth:`KeyIndex.between`, bracketed by the key emitted just before it and
the next surviving key.  Where either neighbour is missing, the namespace
bounds ``"<ns>:"`` and ``"<ns>:\\x7f"`` stand in.
"""

from __future__ import annotations

from collections import Counter
from typing import Any

from parakeys.codec import KEY_SEPARATOR
from parakeys.config import ParakeysConfig
from parakeys.models import (
    ChangeKind,
    ChangeReport,
    ParagraphChange,
    ParagraphOp,
    ParagraphOpType,
)
from parakeys.observability import NoopMetricsHook
from parakeys.ordering import CEILING, KeyIndex

_SURVIVING = (ParagraphOpType.KEEP, ParagraphOpType.UPDATE)
_MINTING = (ParagraphOpType.INSERT, ParagraphOpType.REPLACE)


class KeyExecutor:
    """Builds the new snapshot and retained keys from a plan.

    Parameters
    ----------
    config:
        Reconciler configuration (metrics backend).
    """

    def __init__(self, config: ParakeysConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()

    def execute(
        self,
        ops: list[ParagraphOp],
        namespace: str,
        snapshot: dict[str, str],
        retained: list[str],
    ) -> tuple[dict[str, str], list[str]]:
        """Apply *ops* and return ``(new_snapshot, new_retained_keys)``.

        Parameters
        ----------
        ops:
            Plan in document order.
        namespace:
            Namespace of the document's keys.
        snapshot:
            The previous snapshot.  Its keys stay reserved.
        retained:
            The previous retained keys.

        Returns
        -------
        tuple[dict[str, str], list[str]]
            The new snapshot and the sorted union of every key ever used.
        """
        surviving = [op.key for op in ops if op.op_type in _SURVIVING and op.key]
        index = KeyIndex()
        for key in (*surviving, *snapshot, *retained):
            index.insert(key)

        lower = namespace + KEY_SEPARATOR
        upper = lower + CEILING
        next_surviving = _next_surviving_keys(ops, upper)

        new_snapshot: dict[str, str] = {}
        minted: list[str] = []
        last = lower

        for i, op in enumerate(ops):
            if op.op_type in _SURVIVING:
                new_snapshot[op.key] = op.new_text
                last = op.key
            elif op.op_type in _MINTING:
                prev = last
                if op.op_type == ParagraphOpType.REPLACE and op.key and op.key > prev:
                    prev = op.key
                key = index.between(prev, next_surviving[i])
                new_snapshot[key] = op.new_text
                minted.append(key)
                last = key

        _emit_op_metrics(self._metrics, ops, minted)
        retained_keys = sorted({*retained, *snapshot, *minted})
        return new_snapshot, retained_keys


def _next_surviving_keys(ops: list[ParagraphOp], upper: str) -> list[str]:
    """For each op, the first surviving key after it (or *upper*)."""
    result = [upper] * len(ops)
    nxt = upper
    for i in range(len(ops) - 1, -1, -1):
        result[i] = nxt
        if ops[i].op_type in _SURVIVING and ops[i].key:
            nxt = ops[i].key
    return result


def collect_changes(old: dict[str, str], new: dict[str, str]) -> ChangeReport:
    """Compare two snapshots key by key.

    The report is diagnostic only; nothing in a reconciliation reads it.
    """
    report = ChangeReport()
    for key in sorted(old):
        if key not in new:
            report.removed.append(
                ParagraphChange(ChangeKind.REMOVED, key, old_text=old[key])
            )
    for key in sorted(new):
        if key not in old:
            report.added.append(
                ParagraphChange(ChangeKind.ADDED, key, new_text=new[key])
            )
        elif old[key] != new[key]:
            report.changed.append(
                ParagraphChange(ChangeKind.CHANGED, key, old_text=old[key], new_text=new[key])
            )
    return report


def _emit_op_metrics(metrics: Any, ops: list[ParagraphOp], minted: list[str]) -> None:
    """Emit ``paragraph_ops_total`` grouped by op, ``keys_minted_total`` and
    the length of the longest minted key."""
    op_counts: Counter[str] = Counter(op.op_type.value for op in ops)
    for op_type_val, count in op_counts.items():
        metrics.increment(
            "parakeys.paragraph_ops_total", count, tags={"op": op_type_val},
        )
    if minted:
        metrics.increment("parakeys.keys_minted_total", len(minted))
        metrics.gauge("parakeys.minted_key_length_max", max(len(k) for k in minted))
