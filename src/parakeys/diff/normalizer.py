"""Diff normalizer: re-cut a raw edit script at paragraph boundaries.

The differ knows nothing about paragraphs.  Before the planner can walk the
script paragraph by paragraph, three pure passes are applied in order:

1. :func:`coalesce` merges neighbouring spans of the same operation.
2. :func:`rebalance_newlines` fixes the usual off-by-one where an inserted
   line steals the newline of the paragraph separator that follows it.
3. :func:`cut_at_paragraphs` splits every span after each ``\\n\\n`` so a
   span either ends exactly at a paragraph boundary or is the tail of one.
"""

from __future__ import annotations

from parakeys.codec import PARAGRAPH_SEPARATOR
from parakeys.models import Span, SpanOp


def coalesce(spans: list[Span]) -> list[Span]:
    """Merge consecutive spans that share an operation."""
    merged: list[Span] = []
    for span in spans:
        if merged and merged[-1].op == span.op:
            merged[-1] = Span(span.op, merged[-1].text + span.text)
        else:
            merged.append(span)
    return merged


def rebalance_newlines(spans: list[Span]) -> list[Span]:
    """Shift newlines down through ``EQUAL, INSERT, EQUAL`` triples.

    When a line (not a whole paragraph) is inserted, the script tends to
    end the paragraph with ``\\n``, end the insertion with ``\\n`` and start
    the next paragraph with the remaining ``\\n``.  The trailing newline of
    the first span moves to the head of the insertion and the trailing
    newline of the insertion moves to the head of the last span, which puts
    the ``\\n\\n`` back in front of the next paragraph.
    """
    out = list(spans)
    for i in range(2, len(out)):
        first, inserted, last = out[i - 2], out[i - 1], out[i]
        if (
            first.op == SpanOp.EQUAL
            and inserted.op == SpanOp.INSERT
            and last.op == SpanOp.EQUAL
            and last.text.startswith("\n")
            and inserted.text.endswith("\n")
            and first.text.endswith("\n")
        ):
            out[i - 2] = Span(SpanOp.EQUAL, first.text[:-1])
            out[i - 1] = Span(SpanOp.INSERT, "\n" + inserted.text[:-1])
            out[i] = Span(SpanOp.EQUAL, "\n" + last.text)
    return out


def cut_at_paragraphs(
    spans: list[Span],
    separator: str = PARAGRAPH_SEPARATOR,
) -> list[Span]:
    """Split spans after every *separator*, keeping it on the left fragment.

    A leading fragment is glued to the previous output span when that span
    has the same operation and does not end at a boundary.  Empty
    fragments are dropped.
    """
    out: list[Span] = []
    for span in spans:
        pieces = span.text.split(separator)
        for i, piece in enumerate(pieces):
            if i < len(pieces) - 1:
                piece += separator
            if not piece:
                continue
            if (
                i == 0
                and out
                and out[-1].op == span.op
                and not out[-1].text.endswith(separator)
            ):
                out[-1] = Span(span.op, out[-1].text + piece)
                continue
            out.append(Span(span.op, piece))
    return out


def normalize(spans: list[Span], separator: str = PARAGRAPH_SEPARATOR) -> list[Span]:
    """Apply :func:`coalesce`, :func:`rebalance_newlines` and
    :func:`cut_at_paragraphs` in order."""
    return cut_at_paragraphs(rebalance_newlines(coalesce(spans)), separator)
