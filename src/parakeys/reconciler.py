"""Paragraph key reconciler.

:class:`Reconciler` is the entry point of the package.  It takes the new
text of a document together with the snapshot and retained keys of the
previous run, and returns the next snapshot and retained keys.

Usage::

    from parakeys import Reconciler

    reconciler = Reconciler(max_diff_duration=10.0)
    first = reconciler.reconcile("Hello\\n\\nWorld\\n\\n", "guide")
    second = reconciler.reconcile(
        "Hello\\n\\nBrave new\\n\\nWorld\\n\\n",
        "guide",
        snapshot=first.snapshot,
        retained_keys=first.retained_keys,
    )
    second.paragraphs()  # ['Hello', 'Brave new', 'World']
"""

from __future__ import annotations

import time
from collections.abc import Iterable
from typing import Any

from parakeys.codec import KEY_SEPARATOR, segment, split_key, split_paragraphs
from parakeys.config import ParakeysConfig
from parakeys.diff.differ import TextDiffer
from parakeys.diff.executor import KeyExecutor, collect_changes
from parakeys.diff.planner import ReconcilePlanner
from parakeys.errors import ParakeysConsistencyError, ParakeysMalformedInputError
from parakeys.models import ParagraphOp, ParagraphOpType, ReconcileResult
from parakeys.observability import NoopMetricsHook, get_logger
from parakeys.ordering import CEILING, FLOOR

log = get_logger("parakeys.reconciler")


class Reconciler:
    """Keeps paragraph keys stable across edits of a document.

    Parameters
    ----------
    config:
        Configuration.  When omitted, one is built from *kwargs*.
    **kwargs:
        Forwarded to :class:`ParakeysConfig` when *config* is ``None``.
    """

    def __init__(self, config: ParakeysConfig | None = None, **kwargs: Any) -> None:
        self._config = config if config is not None else ParakeysConfig(**kwargs)
        self._metrics = (
            self._config.metrics if self._config.metrics is not None else NoopMetricsHook()
        )
        self._differ = TextDiffer(self._config)
        self._planner = ReconcilePlanner(self._config, self._differ)
        self._executor = KeyExecutor(self._config)

    @property
    def config(self) -> ParakeysConfig:
        return self._config

    def reconcile(
        self,
        new_text: str,
        namespace: str,
        snapshot: dict[str, str] | None = None,
        retained_keys: Iterable[str] | None = None,
    ) -> ReconcileResult:
        """Compute the next snapshot of a document.

        Parameters
        ----------
        new_text:
            The new raw text of the document.
        namespace:
            Key prefix for a document without history, usually the file
            name without extension.  When stored keys exist, their
            namespace is used instead, so a renamed document keeps its
            keys.
        snapshot:
            The previous snapshot, or ``None`` on the first run.
        retained_keys:
            Every key used so far, or ``None`` on the first run.

        Returns
        -------
        ReconcileResult
            The new snapshot, the new retained keys and the changes.

        Raises
        ------
        ParakeysMalformedInputError
            If the namespace, a stored key or a stored value is invalid.
        ParakeysConsistencyError
            If the edit script cannot be lined up with the stored text and
            ``inconsistency_policy`` is ``"raise"``.
        """
        t0 = time.monotonic()
        old = dict(snapshot or {})
        retained = list(retained_keys or [])
        _validate(namespace, old, retained)
        stored = _stored_namespace(old, retained)
        if stored is not None:
            namespace = stored

        bootstrapped = not old and not retained
        if bootstrapped:
            new_snapshot = segment(new_text, namespace)
            new_retained = sorted(new_snapshot)
            self._metrics.increment("parakeys.bootstrap_total")
        else:
            try:
                ops = self._planner.plan(old, new_text)
            except ParakeysConsistencyError as exc:
                if self._config.inconsistency_policy != "rebuild":
                    raise
                log.warning(
                    "edit script inconsistent, re-keying every paragraph",
                    extra={"extra_fields": {
                        "namespace": namespace,
                        "error": exc.message,
                        "context": exc.context,
                    }},
                )
                self._metrics.increment("parakeys.rebuild_total")
                ops = _rebuild_plan(old, new_text)
            new_snapshot, new_retained = self._executor.execute(
                ops, namespace, old, retained,
            )

        changes = collect_changes(old, new_snapshot)
        for change in changes:
            log.debug(
                f"paragraph {change.kind.value}",
                extra={"extra_fields": {
                    "key": change.key,
                    "old": change.old_text,
                    "new": change.new_text,
                }},
            )

        self._metrics.timing(
            "parakeys.reconcile_duration_ms", (time.monotonic() - t0) * 1000,
        )
        return ReconcileResult(
            snapshot=new_snapshot,
            retained_keys=new_retained,
            changes=changes,
            bootstrapped=bootstrapped,
        )


def reconcile(
    new_text: str,
    namespace: str,
    snapshot: dict[str, str] | None = None,
    retained_keys: Iterable[str] | None = None,
    config: ParakeysConfig | None = None,
) -> ReconcileResult:
    """Reconcile with a one-off :class:`Reconciler`.

    See :meth:`Reconciler.reconcile` for the parameters.
    """
    return Reconciler(config).reconcile(new_text, namespace, snapshot, retained_keys)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _validate(namespace: str, snapshot: dict[str, str], retained: list[str]) -> None:
    """Reject inputs the reconciler cannot work with."""
    if KEY_SEPARATOR in namespace:
        raise ParakeysMalformedInputError(
            f"Namespace must not contain {KEY_SEPARATOR!r}: {namespace!r}",
            context={"namespace": namespace, "reason": "separator_in_namespace"},
        )

    namespaces: set[str] = set()
    for key in (*snapshot, *retained):
        if not isinstance(key, str) or KEY_SEPARATOR not in key:
            raise ParakeysMalformedInputError(
                f"Key has no namespace separator: {key!r}",
                context={"key": key, "reason": "missing_separator"},
            )
        prefix, suffix = split_key(key)
        if not suffix:
            raise ParakeysMalformedInputError(
                f"Key has an empty suffix: {key!r}",
                context={"key": key, "reason": "empty_suffix"},
            )
        bad = next((c for c in suffix if not FLOOR <= c < CEILING), None)
        if bad is not None:
            raise ParakeysMalformedInputError(
                f"Key suffix contains {bad!r}, outside the key alphabet: {key!r}",
                context={"key": key, "reason": "character_out_of_range"},
            )
        namespaces.add(prefix)

    if len(namespaces) > 1:
        raise ParakeysMalformedInputError(
            "Stored keys belong to more than one namespace",
            context={"namespace": sorted(namespaces), "reason": "mixed_namespaces"},
        )

    for key, value in snapshot.items():
        if not isinstance(value, str):
            raise ParakeysMalformedInputError(
                f"Snapshot value for {key!r} is not a string",
                context={"key": key, "reason": "non_string_value"},
            )


def _stored_namespace(snapshot: dict[str, str], retained: list[str]) -> str | None:
    for key in (*snapshot, *retained):
        return split_key(key)[0]
    return None


def _rebuild_plan(snapshot: dict[str, str], new_text: str) -> list[ParagraphOp]:
    """Delete every stored key and insert every paragraph afresh."""
    ops = [
        ParagraphOp(ParagraphOpType.DELETE, key, old_text=snapshot[key])
        for key in sorted(snapshot)
    ]
    ops.extend(
        ParagraphOp(ParagraphOpType.INSERT, new_text=text)
        for text in split_paragraphs(new_text)
    )
    return ops
