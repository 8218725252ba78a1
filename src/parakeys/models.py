"""Public data models for parakeys.

Every enum, edit-script type, planned paragraph operation and result type
referenced by the public API lives here.  All types are plain dataclasses
with no behaviour beyond structural equality (and hashing where frozen).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class SpanOp(str, Enum):
    """Operation of one span of an edit script."""

    EQUAL = "equal"
    """Text present in both the old and the new document."""

    INSERT = "insert"
    """Text only present in the new document."""

    DELETE = "delete"
    """Text only present in the old document."""


class ParagraphOpType(str, Enum):
    """Operation types emitted by the reconciliation planner."""

    KEEP = "keep"
    """Paragraph is unchanged; the key and the text survive as they are."""

    UPDATE = "update"
    """Paragraph was edited in place; the key survives and the text changes."""

    REPLACE = "replace"
    """Paragraph was rewritten beyond recognition; the old key is dropped
    and the new text gets a freshly minted key right after it."""

    INSERT = "insert"
    """A new paragraph that gets a freshly minted key."""

    DELETE = "delete"
    """A removed paragraph; its key disappears from the snapshot but stays
    retained."""


class ChangeKind(str, Enum):
    """Kind of a change reported after a reconciliation run."""

    ADDED = "added"
    REMOVED = "removed"
    CHANGED = "changed"


# ---------------------------------------------------------------------------
# Edit script
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Span:
    """One span of an edit script.

    Concatenating the ``EQUAL`` and ``DELETE`` spans of a script rebuilds
    the old text; concatenating the ``EQUAL`` and ``INSERT`` spans rebuilds
    the new text.
    """

    op: SpanOp
    text: str


# ---------------------------------------------------------------------------
# Planner output
# ---------------------------------------------------------------------------

@dataclass
class ParagraphOp:
    """A single operation in a reconciliation plan.

    Attributes
    ----------
    op_type:
        The kind of operation.
    key:
        The existing key for ``KEEP``, ``UPDATE``, ``DELETE`` and
        ``REPLACE``.  ``None`` for ``INSERT``.
    old_text:
        The stored text of *key*, if any.
    new_text:
        The paragraph text in the new document.  Empty for ``DELETE``.
    """

    op_type: ParagraphOpType
    key: str | None = None
    old_text: str = ""
    new_text: str = ""


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ParagraphChange:
    """A single added, removed or changed paragraph.

    Attributes
    ----------
    kind:
        What happened to the paragraph.
    key:
        The paragraph key.
    old_text:
        The previous text (empty for ``ADDED``).
    new_text:
        The current text (empty for ``REMOVED``).
    """

    kind: ChangeKind
    key: str
    old_text: str = ""
    new_text: str = ""


@dataclass
class ChangeReport:
    """Diagnostic summary of a reconciliation run.

    It is computed from the old and new snapshots after the fact and never
    feeds back into the result.
    """

    added: list[ParagraphChange] = field(default_factory=list)
    removed: list[ParagraphChange] = field(default_factory=list)
    changed: list[ParagraphChange] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.added or self.removed or self.changed)

    def __iter__(self):
        yield from self.removed
        yield from self.added
        yield from self.changed


@dataclass
class ReconcileResult:
    """Output of a reconciliation run, to be persisted by the caller.

    Attributes
    ----------
    snapshot:
        Mapping of key to paragraph text.  Sorting the keys yields the
        document order.
    retained_keys:
        Sorted list of every key used for the document so far, including
        keys whose paragraphs were deleted.
    changes:
        Added, removed and changed paragraphs compared to the previous
        snapshot.
    bootstrapped:
        ``True`` when there was no prior history and the snapshot was built
        directly from the text.
    """

    snapshot: dict[str, str] = field(default_factory=dict)
    retained_keys: list[str] = field(default_factory=list)
    changes: ChangeReport = field(default_factory=ChangeReport)
    bootstrapped: bool = False

    def paragraphs(self) -> list[str]:
        """Return the snapshot values in key order."""
        return [self.snapshot[k] for k in sorted(self.snapshot)]
