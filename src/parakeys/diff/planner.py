"""Reconcile planner: line up stored paragraphs with the new text.

Given the previous snapshot of a document and its new raw text, the planner
produces a list of :class:`ParagraphOp` operations in document order.  It
never mints keys; that is the executor's job.

The old snapshot is rendered back to text and diffed against the new text.
The normalized edit script is then walked one stored paragraph (a *unit*:
the paragraph plus its ``\\n\\n`` separator, or a bare blank run) at a time:

* An inserted span that ends at a paragraph boundary, met before a unit,
  holds whole new paragraphs.  They become ``INSERT`` ops in front of the
  unit.
* A span that equals the unit exactly is a ``KEEP`` (equal) or a
  ``DELETE`` (deleted).
* Anything else opens a *group*: spans are consumed until the unit's old
  text is used up and the new side has reached a paragraph boundary.  When
  the old text runs out first (the separator was deleted, so paragraphs were
  merged), the next unit is absorbed into the group.  The group's new text
  is split into paragraphs, the one closest to the first stored paragraph
  of the group keeps its key and the rest are inserted around it.

Every group ends on a paragraph boundary of the new text, so concatenating
the paragraphs of all groups gives exactly the paragraphs of the new text,
in order.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from parakeys.codec import (
    PARAGRAPH_SEPARATOR,
    is_blank_run,
    render,
    render_value,
    sorted_keys,
    split_paragraphs,
)
from parakeys.config import ParakeysConfig
from parakeys.errors import ParakeysConsistencyError
from parakeys.models import ParagraphOp, ParagraphOpType, Span, SpanOp
from parakeys.observability import get_logger

from .differ import TextDiffer, normalize_newlines
from .normalizer import normalize

log = get_logger("parakeys.planner")


@dataclass
class _Carry:
    """Whitespace a group left unconsumed, handed to the next group.

    ``old`` is stored separator text the edit script has not covered yet;
    ``new`` is new-side whitespace that belongs in front of the next group.
    """

    old: str = ""
    new: str = ""

    def __bool__(self) -> bool:
        return bool(self.old or self.new)


@dataclass
class _Group:
    """Stored units covered by one stretch of the edit script."""

    members: list[int] = field(default_factory=list)
    new_text: str = ""
    pristine: bool = True


class ReconcilePlanner:
    """Plans paragraph operations for a reconciliation run.

    Parameters
    ----------
    config:
        Reconciler configuration (diff time budget, debug flags).
    differ:
        Optional :class:`TextDiffer`; one is built from *config* when
        omitted.
    """

    def __init__(self, config: ParakeysConfig, differ: TextDiffer | None = None) -> None:
        self._config = config
        self._differ = differ if differ is not None else TextDiffer(config)

    def plan(self, snapshot: dict[str, str], new_text: str) -> list[ParagraphOp]:
        """Compute the operations that turn *snapshot* into *new_text*.

        Operation types:

        - **KEEP**: the paragraph is unchanged; the stored text is kept
          verbatim.
        - **UPDATE**: the paragraph was edited in place; the key survives.
        - **REPLACE**: the paragraph was rewritten; its key is dropped and
          the new text is inserted right after it.
        - **INSERT**: a new paragraph.
        - **DELETE**: a stored paragraph (or blank run) that is gone.

        Parameters
        ----------
        snapshot:
            The previous snapshot, key to paragraph.
        new_text:
            The new raw text of the document.

        Returns
        -------
        list[ParagraphOp]
            Operations in document order.  The ``new_text`` of the
            non-``DELETE`` ops, in order, are exactly the paragraphs of
            *new_text* (plus the blank runs that were kept).

        Raises
        ------
        ParakeysConsistencyError
            If the edit script does not line up with the stored text.
        """
        keys = sorted_keys(snapshot)
        units = [normalize_newlines(render_value(snapshot[k])) for k in keys]
        spans = normalize(self._differ.diff(render(snapshot), new_text))

        if self._config.debug_dump_diff:
            log.debug(
                "normalized edit script",
                extra={"extra_fields": {
                    "spans": [(s.op.value, s.text) for s in spans],
                }},
            )

        walk = _Walk(self._differ, snapshot, keys, units, spans)
        return walk.run()


class _Walk:
    """One pass of the stored units against a normalized edit script."""

    def __init__(
        self,
        differ: TextDiffer,
        snapshot: dict[str, str],
        keys: list[str],
        units: list[str],
        spans: list[Span],
    ) -> None:
        self._differ = differ
        self._snapshot = snapshot
        self._keys = keys
        self._units = units
        self._spans = list(spans)
        self._si = 0
        self._first_paragraph = next(
            (i for i in range(len(keys)) if self._is_paragraph(i)), None,
        )
        self.ops: list[ParagraphOp] = []

    def run(self) -> list[ParagraphOp]:
        carry = _Carry()
        i = 0
        while i < len(self._units):
            key = self._keys[i]
            unit = self._units[i]

            if not unit:
                # Empty values have no text in the document.
                self._delete(i)
                i += 1
                continue

            span = self._peek()
            if span is not None and span.op == SpanOp.INSERT and span.text.endswith(PARAGRAPH_SEPARATOR):
                for text in split_paragraphs(carry.new + span.text):
                    self._insert(text)
                carry.new = ""
                self._si += 1
                continue

            if not carry and span is not None and span.text == unit:
                if span.op == SpanOp.EQUAL:
                    self.ops.append(ParagraphOp(
                        ParagraphOpType.KEEP, key,
                        old_text=self._snapshot[key], new_text=self._snapshot[key],
                    ))
                    self._si += 1
                    i += 1
                    continue
                if span.op == SpanOp.DELETE:
                    self._delete(i)
                    self._si += 1
                    i += 1
                    continue

            group, carry = self._take_group(i, carry)
            self._classify(group)
            i = group.members[-1] + 1

        self._trailing(carry)
        return self.ops

    # ------------------------------------------------------------------
    # Span cursor
    # ------------------------------------------------------------------

    def _is_paragraph(self, index: int) -> bool:
        return bool(self._snapshot[self._keys[index]].strip())

    def _peek(self) -> Span | None:
        if self._si < len(self._spans):
            return self._spans[self._si]
        return None

    def _consume_old(self, old_rest: str, span: Span) -> tuple[str, str]:
        """Match the old side of *span* against *old_rest*.

        Returns the consumed text and what is left of *old_rest*.  A span
        running past *old_rest* is split and its tail stays under the
        cursor.
        """
        if old_rest.startswith(span.text):
            self._si += 1
            return span.text, old_rest[len(span.text):]
        if old_rest and span.text.startswith(old_rest):
            self._spans[self._si] = Span(span.op, span.text[len(old_rest):])
            return old_rest, ""
        raise ParakeysConsistencyError(
            "Edit script does not match the stored text",
            context={
                "expected": old_rest[:80],
                "actual": span.text[:80],
                "span_index": self._si,
            },
        )

    # ------------------------------------------------------------------
    # Groups
    # ------------------------------------------------------------------

    def _take_group(self, start: int, carry: _Carry) -> tuple[_Group, _Carry]:
        group = _Group(members=[start], new_text=carry.new)
        old_rest = carry.old + self._units[start]

        while True:
            exhausted = self._si >= len(self._spans)
            closed = bool(group.new_text.strip()) and group.new_text.endswith(PARAGRAPH_SEPARATOR)
            drained = not old_rest and not group.new_text.strip()
            if not old_rest.strip() and (closed or drained or exhausted):
                break
            if exhausted:
                raise ParakeysConsistencyError(
                    "Stored text is not covered by the edit script",
                    context={
                        "key": self._keys[group.members[-1]],
                        "expected": old_rest[:80],
                    },
                )

            span = self._spans[self._si]
            if not old_rest and span.op != SpanOp.INSERT:
                nxt = group.members[-1] + 1
                if nxt < len(self._units):
                    # The separator is gone: the next paragraph merged in.
                    group.members.append(nxt)
                    old_rest = self._units[nxt]
                    continue

            if span.op == SpanOp.INSERT:
                group.new_text += span.text
                group.pristine = False
                self._si += 1
                continue

            text, old_rest = self._consume_old(old_rest, span)
            if span.op == SpanOp.EQUAL:
                group.new_text += text
            else:
                group.pristine = False

        if group.new_text.strip():
            return group, _Carry(old=old_rest)
        return group, _Carry(old=old_rest, new=group.new_text)

    def _classify(self, group: _Group) -> None:
        owner = next((i for i in group.members if self._is_paragraph(i)), None)
        pieces = split_paragraphs(group.new_text)

        for i in group.members:
            if i == owner:
                self._classify_owner(i, pieces)
            elif (
                group.pristine
                and len(group.members) == 1
                and is_blank_run(self._snapshot[self._keys[i]])
            ):
                key = self._keys[i]
                self.ops.append(ParagraphOp(
                    ParagraphOpType.KEEP, key,
                    old_text=self._snapshot[key], new_text=self._snapshot[key],
                ))
            else:
                self._delete(i)

        if owner is None:
            # Only blank runs were covered; whatever text replaced them is new.
            for text in pieces:
                self._insert(text)

    def _classify_owner(self, index: int, pieces: list[str]) -> None:
        key = self._keys[index]
        stored = self._snapshot[key]
        if not pieces:
            self._delete(index)
            return

        old = normalize_newlines(stored)
        distances = [self._differ.distance(old, piece) for piece in pieces]
        pick = distances.index(min(distances))
        candidate = pieces[pick]

        for text in pieces[:pick]:
            self._insert(text)

        if old.strip() == candidate.strip():
            op = ParagraphOp(ParagraphOpType.KEEP, key, old_text=stored, new_text=stored)
        else:
            bigger = max(len(old), len(candidate))
            smaller = min(len(old), len(candidate))
            threshold = (bigger - smaller) + bigger // 2
            if index == self._first_paragraph or distances[pick] < threshold:
                op_type = ParagraphOpType.UPDATE
            else:
                op_type = ParagraphOpType.REPLACE
            op = ParagraphOp(op_type, key, old_text=stored, new_text=candidate)
        self.ops.append(op)

        for text in pieces[pick + 1:]:
            self._insert(text)

    def _trailing(self, carry: _Carry) -> None:
        """Turn the spans after the last stored unit into insertions."""
        old_rest = carry.old
        new_text = carry.new
        while self._si < len(self._spans):
            span = self._spans[self._si]
            if span.op == SpanOp.INSERT:
                new_text += span.text
                self._si += 1
                continue
            text, old_rest = self._consume_old(old_rest, span)
            if span.op == SpanOp.EQUAL:
                new_text += text

        if old_rest.strip():
            raise ParakeysConsistencyError(
                "Stored text is not covered by the edit script",
                context={"expected": old_rest[:80]},
            )
        for text in split_paragraphs(new_text):
            self._insert(text)

    # ------------------------------------------------------------------
    # Op helpers
    # ------------------------------------------------------------------

    def _insert(self, text: str) -> None:
        self.ops.append(ParagraphOp(ParagraphOpType.INSERT, new_text=text))

    def _delete(self, index: int) -> None:
        key = self._keys[index]
        self.ops.append(ParagraphOp(
            ParagraphOpType.DELETE, key, old_text=self._snapshot[key],
        ))
