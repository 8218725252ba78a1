"""Tests for JSON persistence and file sync."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

from parakeys.config import ParakeysConfig
from parakeys.errors import ErrorCode, ParakeysStoreError
from parakeys.models import ReconcileResult
from parakeys.store import load_state, save_state, state_paths, sync_file


class TestStatePaths:
    def test_layout(self):
        paths = state_paths("docs/guide.md")
        assert paths.text == Path("docs/guide.md")
        assert paths.snapshot == Path("docs/guide.json")
        assert paths.retained == Path("docs/guide.usedKeys.json")
        assert paths.backup == Path("docs/guide.json.old")
        assert paths.namespace == "guide"

    def test_no_extension(self):
        paths = state_paths("notes")
        assert paths.snapshot == Path("notes.json")
        assert paths.namespace == "notes"


class TestLoadState:
    def test_missing_files_mean_no_history(self, tmp_path):
        assert load_state(state_paths(tmp_path / "doc.md")) == (None, None)

    def test_reads_both_files(self, tmp_path):
        paths = state_paths(tmp_path / "doc.md")
        paths.snapshot.write_text(json.dumps({"doc:0": "Foo"}), encoding="utf-8")
        paths.retained.write_text(json.dumps(["doc:0", "doc:2"]), encoding="utf-8")
        assert load_state(paths) == ({"doc:0": "Foo"}, ["doc:0", "doc:2"])

    def test_invalid_json(self, tmp_path):
        paths = state_paths(tmp_path / "doc.md")
        paths.snapshot.write_text("{not json", encoding="utf-8")
        with pytest.raises(ParakeysStoreError) as exc_info:
            load_state(paths)
        assert exc_info.value.code == ErrorCode.STORE_ERROR
        assert exc_info.value.context["path"] == str(paths.snapshot)
        assert isinstance(exc_info.value.cause, json.JSONDecodeError)

    def test_wrong_shape(self, tmp_path):
        paths = state_paths(tmp_path / "doc.md")
        paths.retained.write_text(json.dumps({"doc:0": 1}), encoding="utf-8")
        with pytest.raises(ParakeysStoreError, match="JSON array"):
            load_state(paths)


class TestSaveState:
    def test_writes_sorted_json(self, tmp_path):
        paths = state_paths(tmp_path / "doc.md")
        result = ReconcileResult(snapshot={"doc:2": "B", "doc:0": "Ä"}, retained_keys=["doc:0", "doc:2"])
        save_state(paths, result)
        raw = paths.snapshot.read_text(encoding="utf-8")
        assert raw.index("doc:0") < raw.index("doc:2")
        assert "Ä" in raw
        assert raw.endswith("\n")
        assert json.loads(paths.retained.read_text(encoding="utf-8")) == ["doc:0", "doc:2"]
        assert not paths.backup.exists()

    def test_backs_up_previous_snapshot(self, tmp_path):
        paths = state_paths(tmp_path / "doc.md")
        save_state(paths, ReconcileResult(snapshot={"doc:0": "old"}, retained_keys=["doc:0"]))
        save_state(paths, ReconcileResult(snapshot={"doc:0": "new"}, retained_keys=["doc:0"]))
        assert json.loads(paths.backup.read_text(encoding="utf-8")) == {"doc:0": "old"}
        assert json.loads(paths.snapshot.read_text(encoding="utf-8")) == {"doc:0": "new"}

    def test_backup_can_be_disabled(self, tmp_path):
        paths = state_paths(tmp_path / "doc.md")
        save_state(paths, ReconcileResult(snapshot={"doc:0": "old"}))
        save_state(paths, ReconcileResult(snapshot={"doc:0": "new"}), backup=False)
        assert not paths.backup.exists()


class TestSyncFile:
    def test_first_and_second_run(self, tmp_path):
        doc = tmp_path / "guide.md"
        doc.write_text("Hello\n\nWorld\n\n", encoding="utf-8")
        first = sync_file(doc)
        assert first.bootstrapped
        assert first.snapshot == {"guide:0": "Hello", "guide:2": "World"}

        doc.write_text("Hello\n\nBrave new\n\nWorld\n\n", encoding="utf-8")
        second = sync_file(doc)
        assert not second.bootstrapped
        assert second.paragraphs() == ["Hello", "Brave new", "World"]
        assert second.snapshot["guide:0"] == "Hello"
        assert second.snapshot["guide:2"] == "World"

        paths = state_paths(doc)
        stored = json.loads(paths.snapshot.read_text(encoding="utf-8"))
        assert stored == second.snapshot
        assert json.loads(paths.backup.read_text(encoding="utf-8")) == first.snapshot

    def test_no_backup_when_disabled(self, tmp_path):
        doc = tmp_path / "guide.md"
        doc.write_text("Hello\n\n", encoding="utf-8")
        config = ParakeysConfig(backup_previous=False)
        sync_file(doc, config)
        sync_file(doc, config)
        assert not state_paths(doc).backup.exists()

    def test_missing_document(self, tmp_path):
        with pytest.raises(ParakeysStoreError) as exc_info:
            sync_file(tmp_path / "absent.md")
        assert exc_info.value.context["operation"] == "read"

    def test_changes_are_logged(self, tmp_path):
        records: list[logging.LogRecord] = []

        class _Collect(logging.Handler):
            def emit(self, record):
                records.append(record)

        handler = _Collect()
        logger = logging.getLogger("parakeys.store")
        logger.addHandler(handler)
        try:
            doc = tmp_path / "guide.md"
            doc.write_text("Hello\n\n", encoding="utf-8")
            sync_file(doc)
        finally:
            logger.removeHandler(handler)

        assert [r.getMessage() for r in records] == ["paragraph added"]
        assert records[0].extra_fields["key"] == "guide:0"
        assert records[0].levelno == logging.INFO
