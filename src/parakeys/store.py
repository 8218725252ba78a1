"""JSON persistence beside the document.

A document ``docs/guide.md`` keeps its state in three files next to it:

* ``docs/guide.json`` -- the snapshot, key to paragraph.
* ``docs/guide.usedKeys.json`` -- the retained keys, a sorted list.
* ``docs/guide.json.old`` -- the snapshot of the run before, as a backup.

:func:`sync_file` reads the text, reconciles it against the stored state,
logs every change at ``INFO`` and writes the new state back.
"""

from __future__ import annotations

import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from parakeys.config import ParakeysConfig
from parakeys.errors import ParakeysStoreError
from parakeys.models import ReconcileResult
from parakeys.observability import get_logger
from parakeys.reconciler import Reconciler

log = get_logger("parakeys.store", level=logging.INFO)


@dataclass(frozen=True)
class StatePaths:
    """Locations of the persisted state of one document."""

    text: Path
    snapshot: Path
    retained: Path
    backup: Path

    @property
    def namespace(self) -> str:
        """Default key namespace: the document's file name without extension."""
        return self.text.stem


def state_paths(text_path: str | Path) -> StatePaths:
    """Return the state file locations for the document at *text_path*."""
    text = Path(text_path)
    stem = text.with_suffix("")
    return StatePaths(
        text=text,
        snapshot=stem.with_name(stem.name + ".json"),
        retained=stem.with_name(stem.name + ".usedKeys.json"),
        backup=stem.with_name(stem.name + ".json.old"),
    )


def _read_json(path: Path):
    try:
        with path.open(encoding="utf-8") as fh:
            return json.load(fh)
    except FileNotFoundError:
        return None
    except json.JSONDecodeError as exc:
        raise ParakeysStoreError(
            f"Invalid JSON in {path}",
            context={"path": str(path), "operation": "read"},
            cause=exc,
        ) from exc
    except OSError as exc:
        raise ParakeysStoreError(
            f"Cannot read {path}",
            context={"path": str(path), "operation": "read"},
            cause=exc,
        ) from exc


def _write_json(path: Path, data) -> None:
    try:
        with path.open("w", encoding="utf-8") as fh:
            json.dump(data, fh, ensure_ascii=False, indent=2, sort_keys=True)
            fh.write("\n")
    except OSError as exc:
        raise ParakeysStoreError(
            f"Cannot write {path}",
            context={"path": str(path), "operation": "write"},
            cause=exc,
        ) from exc


def load_state(paths: StatePaths) -> tuple[dict[str, str] | None, list[str] | None]:
    """Load ``(snapshot, retained_keys)``.

    A missing file yields ``None`` for that half, meaning "no history".

    Raises
    ------
    ParakeysStoreError
        If a file cannot be read, is not valid JSON or has the wrong shape.
    """
    snapshot = _read_json(paths.snapshot)
    if snapshot is not None and not isinstance(snapshot, dict):
        raise ParakeysStoreError(
            f"{paths.snapshot} must hold a JSON object",
            context={"path": str(paths.snapshot), "operation": "read"},
        )
    retained = _read_json(paths.retained)
    if retained is not None and not isinstance(retained, list):
        raise ParakeysStoreError(
            f"{paths.retained} must hold a JSON array",
            context={"path": str(paths.retained), "operation": "read"},
        )
    return snapshot, retained


def save_state(paths: StatePaths, result: ReconcileResult, backup: bool = True) -> None:
    """Persist *result*, keeping the previous snapshot file as a backup."""
    if backup and paths.snapshot.exists():
        try:
            shutil.copyfile(paths.snapshot, paths.backup)
        except OSError as exc:
            raise ParakeysStoreError(
                f"Cannot back up {paths.snapshot}",
                context={"path": str(paths.backup), "operation": "backup"},
                cause=exc,
            ) from exc
    _write_json(paths.snapshot, result.snapshot)
    _write_json(paths.retained, result.retained_keys)


def sync_file(text_path: str | Path, config: ParakeysConfig | None = None) -> ReconcileResult:
    """Reconcile the document at *text_path* with its stored state.

    Parameters
    ----------
    text_path:
        Path of the document (read as UTF-8).
    config:
        Optional configuration; ``backup_previous`` controls the backup.

    Returns
    -------
    ReconcileResult
        The result that was written to disk.
    """
    config = config if config is not None else ParakeysConfig()
    paths = state_paths(text_path)
    try:
        text = paths.text.read_text(encoding="utf-8")
    except OSError as exc:
        raise ParakeysStoreError(
            f"Cannot read {paths.text}",
            context={"path": str(paths.text), "operation": "read"},
            cause=exc,
        ) from exc

    snapshot, retained = load_state(paths)
    result = Reconciler(config).reconcile(text, paths.namespace, snapshot, retained)

    for change in result.changes:
        log.info(
            f"paragraph {change.kind.value}",
            extra={"extra_fields": {
                "path": str(paths.text),
                "key": change.key,
                "old": change.old_text,
                "new": change.new_text,
            }},
        )

    save_state(paths, result, backup=config.backup_previous)
    return result
