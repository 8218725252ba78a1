"""Tests for the reconcile planner.

Each case uses texts whose edit script is unambiguous, so the planned
operations can be asserted exactly.
"""

from __future__ import annotations

import io
import logging

import pytest

from parakeys.codec import segment
from parakeys.config import ParakeysConfig
from parakeys.diff.differ import TextDiffer
from parakeys.diff.planner import ReconcilePlanner
from parakeys.errors import ErrorCode, ParakeysConsistencyError
from parakeys.models import ParagraphOpType, Span, SpanOp
from parakeys.observability import StructuredFormatter

KEEP = ParagraphOpType.KEEP
UPDATE = ParagraphOpType.UPDATE
REPLACE = ParagraphOpType.REPLACE
INSERT = ParagraphOpType.INSERT
DELETE = ParagraphOpType.DELETE


def summary(ops):
    return [(op.op_type, op.key, op.new_text) for op in ops]


class _FixedDiffer(TextDiffer):
    """Returns a canned edit script."""

    def __init__(self, spans):
        super().__init__(ParakeysConfig())
        self._spans = spans

    def diff(self, old, new):
        return list(self._spans)


class TestPlanBasics:
    def test_unchanged(self, planner):
        ops = planner.plan({"d:0": "Foo", "d:2": "Bar"}, "Foo\n\nBar\n\n")
        assert summary(ops) == [(KEEP, "d:0", "Foo"), (KEEP, "d:2", "Bar")]

    def test_append(self, planner):
        ops = planner.plan({"d:0": "Foo"}, "Foo\n\nBar\n\n")
        assert summary(ops) == [(KEEP, "d:0", "Foo"), (INSERT, None, "Bar")]

    def test_prepend(self, planner):
        ops = planner.plan({"d:0": "Foo"}, "Bar\n\nFoo\n\n")
        assert summary(ops) == [(INSERT, None, "Bar"), (KEEP, "d:0", "Foo")]

    def test_delete(self, planner):
        ops = planner.plan({"d:0": "Foo", "d:2": "Bar"}, "Foo\n\n")
        assert summary(ops) == [(KEEP, "d:0", "Foo"), (DELETE, "d:2", "")]

    def test_delete_everything(self, planner):
        ops = planner.plan({"d:0": "Foo", "d:2": "Bar"}, "")
        assert [op.op_type for op in ops] == [DELETE, DELETE]

    def test_unterminated_new_text(self, planner):
        ops = planner.plan({"d:0": "Foo"}, "Foo")
        assert summary(ops) == [(KEEP, "d:0", "Foo")]

    def test_delete_carries_old_text(self, planner):
        ops = planner.plan({"d:0": "Foo", "d:2": "Bar"}, "Foo\n\n")
        assert ops[1].old_text == "Bar"


class TestClassification:
    def test_small_edit_is_update(self, planner):
        ops = planner.plan(
            {"d:0": "Intro", "d:2": "Hello world"},
            "Intro\n\nHello brave world\n\n",
        )
        assert summary(ops) == [
            (KEEP, "d:0", "Intro"),
            (UPDATE, "d:2", "Hello brave world"),
        ]
        assert ops[1].old_text == "Hello world"

    def test_rewrite_is_replace(self, planner):
        ops = planner.plan(
            {"d:0": "Intro", "d:2": "aaaaaaaaaa"},
            "Intro\n\nbbbbbbbbbb\n\n",
        )
        assert summary(ops) == [
            (KEEP, "d:0", "Intro"),
            (REPLACE, "d:2", "bbbbbbbbbb"),
        ]

    def test_first_paragraph_is_always_updated(self, planner):
        ops = planner.plan({"d:0": "aaaaaaaaaa"}, "bbbbbbbbbb\n\n")
        assert summary(ops) == [(UPDATE, "d:0", "bbbbbbbbbb")]

    def test_whitespace_only_change_keeps_stored_text(self, planner):
        ops = planner.plan({"d:0": "Intro", "d:2": "Foo"}, "Intro\n\n   Foo\n\n")
        assert summary(ops) == [(KEEP, "d:0", "Intro"), (KEEP, "d:2", "Foo")]

    def test_split_paragraph(self, planner):
        ops = planner.plan({"d:0": "Intro", "d:2": "Foo bar"}, "Intro\n\nFoo\n\nbar\n\n")
        assert summary(ops) == [
            (KEEP, "d:0", "Intro"),
            (UPDATE, "d:2", "Foo"),
            (INSERT, None, "bar"),
        ]

    def test_merged_paragraphs(self, planner):
        ops = planner.plan({"d:0": "Foo", "d:2": "Bar"}, "Foo Bar\n\n")
        assert summary(ops) == [(UPDATE, "d:0", "Foo Bar"), (DELETE, "d:2", "")]


class TestBlankRuns:
    def test_blank_runs_are_stable(self, planner):
        snap = segment("Hello\n\n\n\n\nWorld\n", "d")
        ops = planner.plan(snap, "Hello\n\n\n\n\nWorld\n\n")
        assert all(op.op_type == KEEP for op in ops)
        assert [op.key for op in ops] == sorted(snap)

    def test_removed_blank_lines_delete_the_run(self, planner):
        snap = segment("Hello\n\n\nWorld\n", "d")
        ops = planner.plan(snap, "Hello\n\nWorld\n\n")
        assert summary(ops) == [
            (KEEP, "d:0", "Hello"),
            (DELETE, "d:2", ""),
            (KEEP, "d:3", "World"),
        ]


class TestConsistency:
    def test_mismatched_script_raises(self):
        planner = ReconcilePlanner(
            ParakeysConfig(), _FixedDiffer([Span(SpanOp.EQUAL, "Nope\n\n")]),
        )
        with pytest.raises(ParakeysConsistencyError) as exc_info:
            planner.plan({"d:0": "Foo"}, "Nope\n\n")
        assert exc_info.value.code == ErrorCode.CONSISTENCY_ERROR
        assert exc_info.value.context["actual"] == "Nope\n\n"

    def test_uncovered_text_raises(self):
        planner = ReconcilePlanner(ParakeysConfig(), _FixedDiffer([]))
        with pytest.raises(ParakeysConsistencyError):
            planner.plan({"d:0": "Foo"}, "")

    def test_trailing_old_text_raises(self):
        spans = [Span(SpanOp.EQUAL, "Foo\n\n"), Span(SpanOp.DELETE, "Extra")]
        planner = ReconcilePlanner(ParakeysConfig(), _FixedDiffer(spans))
        with pytest.raises(ParakeysConsistencyError):
            planner.plan({"d:0": "Foo"}, "Foo\n\n")


class TestDebugDump:
    def test_spans_logged_when_enabled(self):
        logger = logging.getLogger("parakeys.planner")
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        handler.setFormatter(StructuredFormatter())
        old_level = logger.level
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        try:
            ReconcilePlanner(ParakeysConfig(debug_dump_diff=True)).plan(
                {"d:0": "Foo"}, "Foo\n\nBar\n\n",
            )
        finally:
            logger.removeHandler(handler)
            logger.setLevel(old_level)
        assert "normalized edit script" in stream.getvalue()
        assert '"spans"' in stream.getvalue()

    def test_silent_by_default(self):
        logger = logging.getLogger("parakeys.planner")
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        old_level = logger.level
        logger.addHandler(handler)
        logger.setLevel(logging.DEBUG)
        try:
            ReconcilePlanner(ParakeysConfig()).plan({"d:0": "Foo"}, "Foo\n\n")
        finally:
            logger.removeHandler(handler)
            logger.setLevel(old_level)
        assert stream.getvalue() == ""
