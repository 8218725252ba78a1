"""Text differ: a thin wrapper over ``diff-match-patch``.

The library is treated as an oracle.  :class:`TextDiffer` feeds it both
texts with ``\\r\\n`` collapsed to ``\\n``, bounds the bisect search with a
wall-clock deadline and converts the library's ``(op, text)`` tuples into
:class:`~parakeys.models.Span` values.  When the deadline passes the library
stops searching and returns a coarser, still valid script.
"""

from __future__ import annotations

import time

from diff_match_patch import diff_match_patch

from parakeys.config import ParakeysConfig
from parakeys.models import Span, SpanOp
from parakeys.observability import NoopMetricsHook

_OPS: dict[int, SpanOp] = {
    diff_match_patch.DIFF_EQUAL: SpanOp.EQUAL,
    diff_match_patch.DIFF_INSERT: SpanOp.INSERT,
    diff_match_patch.DIFF_DELETE: SpanOp.DELETE,
}


def normalize_newlines(text: str) -> str:
    """Collapse ``\\r\\n`` line endings to ``\\n``."""
    return text.replace("\r\n", "\n")


class TextDiffer:
    """Computes edit scripts and edit distances within a time budget.

    Parameters
    ----------
    config:
        Configuration; ``max_diff_duration`` bounds every diff.
    """

    def __init__(self, config: ParakeysConfig) -> None:
        self._config = config
        self._metrics = config.metrics if config.metrics is not None else NoopMetricsHook()
        self._dmp = diff_match_patch()
        self._dmp.Diff_Timeout = config.max_diff_duration

    def diff(self, old: str, new: str) -> list[Span]:
        """Return the edit script turning *old* into *new*.

        Both texts are newline-normalised first; the ``EQUAL``/``DELETE``
        spans rebuild ``normalize_newlines(old)`` and the ``EQUAL``/``INSERT``
        spans rebuild ``normalize_newlines(new)``.
        """
        t0 = time.monotonic()
        raw = self._raw_diff(normalize_newlines(old), normalize_newlines(new))
        self._metrics.timing(
            "parakeys.diff_duration_ms", (time.monotonic() - t0) * 1000,
        )
        return [Span(_OPS[op], text) for op, text in raw if text]

    def distance(self, a: str, b: str) -> int:
        """Return the Levenshtein distance between *a* and *b* in code points."""
        return self._dmp.diff_levenshtein(self._raw_diff(a, b))

    def _raw_diff(self, old: str, new: str) -> list[tuple[int, str]]:
        # diff_main strips the common prefix and suffix and settles short
        # texts itself before it bisects under the deadline.
        deadline = time.time() + self._config.max_diff_duration
        return self._dmp.diff_main(old, new, False, deadline)
