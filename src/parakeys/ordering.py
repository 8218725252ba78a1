"""Order-maintenance index: mint keys that sort between two existing keys.

:class:`KeyIndex` is a character trie over every key the document has ever
used.  Each node knows whether a key ends on it and the height of its
subtree (the longest remaining key suffix below it).  :meth:`KeyIndex.between`
walks the shared prefix of the two bracket keys and, at the first differing
character, either takes an unused character (one character longer than the
prefix, the shortest possible key) or descends into the shallowest existing
subtree.  The result is inserted before it is returned, so the index never
hands out the same key twice.

Among unused characters, the one right after ``prev`` wins when ``prev``
still has a character at that position, the one right before ``next_``
when only ``next_`` does, and the middle of the alphabet otherwise.  A run
of inserts at one spot (appending, prepending, always after the title)
therefore adds one character per few dozen keys.

Suffix characters come from the printable ASCII range ``[FLOOR, CEILING)``.
Minted keys never end with :data:`FLOOR`, which leaves room to insert below
any of them later.
"""

from __future__ import annotations

from collections.abc import Iterable

from parakeys.errors import ParakeysKeySpaceError, ParakeysMalformedInputError

FLOOR = "!"
"""Smallest character a key suffix may contain."""

CEILING = "\x7f"
"""First character above the suffix alphabet (exclusive bound)."""


class _Node:
    __slots__ = ("children", "height", "is_leaf")

    def __init__(self) -> None:
        self.children: dict[str, _Node] = {}
        self.height = 0
        self.is_leaf = False


def _child(node: _Node | None, char: str) -> _Node | None:
    if node is None:
        return None
    return node.children.get(char)


def _height(node: _Node | None) -> int:
    return node.height if node is not None else 0


class KeyIndex:
    """Trie of used keys that generates new keys between existing ones.

    Parameters
    ----------
    keys:
        Optional initial keys to insert.
    """

    def __init__(self, keys: Iterable[str] = ()) -> None:
        self._root = _Node()
        self._size = 0
        for key in keys:
            self.insert(key)

    def __len__(self) -> int:
        return self._size

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        node: _Node | None = self._root
        for char in key:
            node = _child(node, char)
            if node is None:
                return False
        return node.is_leaf

    def insert(self, key: str) -> None:
        """Add *key* to the index.  Inserting a known key is a no-op."""
        path = [self._root]
        node = self._root
        for char in key:
            nxt = node.children.get(char)
            if nxt is None:
                nxt = node.children[char] = _Node()
            node = nxt
            path.append(node)

        if not node.is_leaf:
            node.is_leaf = True
            self._size += 1
        for depth, ancestor in enumerate(path):
            ancestor.height = max(ancestor.height, len(key) - depth)

    def between(self, prev: str, next_: str) -> str:
        """Mint a key strictly greater than *prev* and less than *next_*.

        An empty *prev* means "below every key", an empty *next_* means
        "above every key".  The returned key is inserted into the index.

        Raises
        ------
        ParakeysMalformedInputError
            If *next_* is not greater than *prev*.
        ParakeysKeySpaceError
            If no key made of alphabet characters fits between the two.
        """
        if next_ and prev >= next_:
            raise ParakeysMalformedInputError(
                f"Cannot mint a key between {prev!r} and {next_!r}",
                context={"prev": prev, "next": next_, "reason": "unordered"},
            )
        key = self._between(self._root, prev, next_, prev, next_)
        self.insert(key)
        return key

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _between(
        self,
        node: _Node | None,
        prev: str,
        next_: str,
        lower: str,
        upper: str,
    ) -> str:
        prefix: list[str] = []
        while prev and next_ and prev[0] == next_[0]:
            prefix.append(prev[0])
            node = _child(node, prev[0])
            prev, next_ = prev[1:], next_[1:]

        low = prev[:1]
        high = next_[:1]
        first = max(ord(low) if low else 0, ord(FLOOR))
        last = ord(high) if high else max(ord(CEILING), first + 1)
        bounded = bool(high) and high != CEILING
        children = node.children if node is not None else {}

        fresh = [
            chr(code)
            for code in range(first, last)
            if chr(code) not in children and chr(code) != low and chr(code) != FLOOR
        ]
        if fresh:
            if low:
                target = first + 1
            elif bounded:
                target = last - 1
            else:
                target = (first + last) // 2
            choice = min(fresh, key=lambda c: (abs(ord(c) - target), c))
            return "".join(prefix) + choice

        options = [
            chr(code)
            for code in range(first, last)
            if chr(code) in children or chr(code) == low or chr(code) == FLOOR
        ]
        if options:
            choice = min(options, key=lambda c: (_height(_child(node, c)), c))
            rest = prev[1:] if choice == low else ""
            return "".join(prefix) + choice + self._between(
                _child(node, choice), rest, "", lower, upper,
            )

        if len(next_) > 1:
            # Nothing fits below the next key's character: go under it.
            return "".join(prefix) + high + self._between(
                _child(node, high), "", next_[1:], lower, upper,
            )

        raise ParakeysKeySpaceError(
            f"No key fits between {lower!r} and {upper!r}",
            context={"prev": lower, "next": upper},
        )
