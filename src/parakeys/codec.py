"""Paragraph codec: text <-> key-addressed paragraph snapshot.

:func:`segment` cuts a text into trimmed paragraphs separated by blank
lines and keys each one by ``"<namespace>:<line>"``, the zero-padded index
of the line the paragraph starts on.  The padding width is the digit count
of the total line count, so plain string ordering of the keys equals the
document order.

Blank lines beyond the first separator are kept as *blank-run* entries
(values made only of ``\\n``, one per blank line) keyed at the line where
the run starts.  :func:`render` writes paragraphs followed by the
``\\n\\n`` separator and blank runs as their bare newlines, which makes
``render(segment(...))`` stable under repeated round trips.
"""

from __future__ import annotations

from collections.abc import Iterator

KEY_SEPARATOR = ":"
"""Separates the namespace from the ordering suffix of a key."""

PARAGRAPH_SEPARATOR = "\n\n"
"""Written after every paragraph by :func:`render`."""


def make_key(namespace: str, line: int, width: int) -> str:
    """Build the key of a paragraph starting on *line*.

    >>> make_key("docs/intro", 7, 3)
    'docs/intro:007'
    """
    return f"{namespace}{KEY_SEPARATOR}{line:0{width}d}"


def split_key(key: str) -> tuple[str, str]:
    """Split *key* into ``(namespace, suffix)``.

    The namespace never contains the separator, so the first separator
    ends it.  A key without separator yields an empty suffix.
    """
    namespace, _, suffix = key.partition(KEY_SEPARATOR)
    return namespace, suffix


def sorted_keys(snapshot: dict[str, str]) -> list[str]:
    """Return the keys of *snapshot* in document order."""
    return sorted(snapshot)


def is_blank_run(value: str) -> bool:
    """Return ``True`` if *value* is a blank-run entry."""
    return bool(value) and not value.strip("\n")


def _scan(text: str) -> Iterator[tuple[int, str]]:
    """Yield ``(start_line, value)`` for every paragraph and blank run."""
    lines = text.split("\n") if text else []
    if len(lines) > 1 and lines[-1] == "":
        # A final newline terminates the last line.
        lines.pop()

    buffer: list[str] = []
    start = 0
    blank_start = 0
    blank_run = 0

    for index, line in enumerate(lines):
        if line.strip():
            if blank_run:
                yield blank_start, "\n" * blank_run
                blank_run = 0
            if not buffer:
                start = index
            buffer.append(line)
            continue

        if buffer:
            # The first blank line after a paragraph is its separator.
            yield start, "\n".join(buffer).strip()
            buffer = []
            continue

        if not blank_run:
            blank_start = index
        blank_run += 1

    if buffer:
        yield start, "\n".join(buffer).strip()
    if blank_run:
        yield blank_start, "\n" * blank_run


def segment(text: str, namespace: str) -> dict[str, str]:
    """Split *text* into a key-addressed paragraph snapshot.

    Parameters
    ----------
    text:
        Raw document text.
    namespace:
        Key prefix, typically the document path without extension.

    Returns
    -------
    dict[str, str]
        Mapping of key to trimmed paragraph (or blank-run entry).

    Examples
    --------
    >>> segment("Hello\\n\\nWorld\\n\\n", "doc")
    {'doc:0': 'Hello', 'doc:2': 'World'}
    """
    width = len(str(len(text.split("\n"))))
    return {
        make_key(namespace, line, width): value
        for line, value in _scan(text)
    }


def split_paragraphs(text: str) -> list[str]:
    """Return the trimmed paragraphs of *text* in order, blank runs dropped."""
    return [value for _, value in _scan(text) if not is_blank_run(value)]


def render_value(value: str) -> str:
    """Return the text one snapshot value occupies in a rendered document."""
    if not value or is_blank_run(value):
        return value
    return value + PARAGRAPH_SEPARATOR


def render(snapshot: dict[str, str]) -> str:
    """Render *snapshot* back to text, in key order.

    Trimming makes the round trip lossy, but ``segment`` of the rendered
    text yields the same values again.
    """
    return "".join(render_value(snapshot[key]) for key in sorted_keys(snapshot))
