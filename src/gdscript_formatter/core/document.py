from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable
from dataclasses import dataclass

from tree_sitter import Node, Parser, Point, Query, QueryCursor, Tree

from gdscript_formatter.core.parser import get_gdscript_parser, parse_source

logger = logging.getLogger(__name__)

Replacement = bytes | Callable[[re.Match[bytes]], bytes]


@dataclass(frozen=True)
class TextEdit:
    """One contiguous replacement plus the coordinates tree-sitter needs to shift nodes."""

    start_byte: int
    old_end_byte: int
    new_end_byte: int
    start_point: Point
    old_end_point: Point
    new_end_point: Point

    def apply_to(self, tree: Tree) -> None:
        tree.edit(
            start_byte=self.start_byte,
            old_end_byte=self.old_end_byte,
            new_end_byte=self.new_end_byte,
            start_point=self.start_point,
            old_end_point=self.old_end_point,
            new_end_point=self.new_end_point,
        )


def advance_point(point: Point, chunk: bytes) -> Point:
    """Move a (row, column) cursor over ``chunk``: newlines bump the row, other bytes the column."""
    newlines = chunk.count(b"\n")
    if newlines == 0:
        return Point(point[0], point[1] + len(chunk))
    return Point(point[0] + newlines, len(chunk) - chunk.rfind(b"\n") - 1)


class SyntaxDocument:
    """The buffer under transformation and the tree that describes it.

    Every mutating method leaves ``tree`` parsed from ``source``. Nodes must be
    fetched again from ``root`` after any mutation.
    """

    def __init__(self, source: bytes, tree: Tree, parser: Parser) -> None:
        self._source = source
        self._tree = tree
        self._parser = parser

    @classmethod
    def parse(cls, text: str | bytes) -> SyntaxDocument:
        source = text.encode("utf-8") if isinstance(text, str) else text
        parser = get_gdscript_parser()
        return cls(source, parse_source(source, parser=parser), parser)

    @property
    def source(self) -> bytes:
        return self._source

    @property
    def text(self) -> str:
        return self._source.decode("utf-8")

    @property
    def tree(self) -> Tree:
        return self._tree

    @property
    def root(self) -> Node:
        return self._tree.root_node

    def point_at(self, byte: int) -> Point:
        row = self._source.count(b"\n", 0, byte)
        return Point(row, byte - self.line_start(byte))

    def line_start(self, byte: int) -> int:
        return self._source.rfind(b"\n", 0, byte) + 1

    def is_inside_string(self, byte: int) -> bool:
        node: Node | None = self.root.descendant_for_byte_range(byte, byte)
        while node is not None:
            if node.type == "string":
                return True
            node = node.parent
        return False

    def matches(self, query: Query) -> list[tuple[int, dict[str, list[Node]]]]:
        cursor = QueryCursor(query)
        return cursor.matches(self.root)

    def replace_all(self, pattern: re.Pattern[bytes], replacement: Replacement, *, count: int = 0) -> int:
        """Replace non-overlapping matches of ``pattern`` outside string literals.

        A match is skipped when its start byte lies in a ``string`` node.
        Zero-width matches are never edited. ``count`` limits the number of
        applied replacements (0 means all). Returns the number applied.
        """
        source = self._source
        pieces: list[bytes] = []
        edits: list[TextEdit] = []
        last_end = 0
        cursor = Point(0, 0)

        for match in pattern.finditer(source):
            start, end = match.span()
            if start == end or self.is_inside_string(start):
                continue
            new_text = replacement(match) if callable(replacement) else match.expand(replacement)

            start_point = advance_point(cursor, source[last_end:start])
            old_end_point = advance_point(start_point, source[start:end])
            new_end_point = advance_point(start_point, new_text)
            edits.append(
                TextEdit(
                    start_byte=start,
                    old_end_byte=end,
                    new_end_byte=start + len(new_text),
                    start_point=start_point,
                    old_end_point=old_end_point,
                    new_end_point=new_end_point,
                )
            )
            pieces.append(source[last_end:start])
            pieces.append(new_text)
            last_end = end
            cursor = old_end_point
            if count and len(edits) == count:
                break

        if not edits:
            return 0

        pieces.append(source[last_end:])
        self._commit(b"".join(pieces), edits)
        logger.debug("Replaced %d match(es) of %r", len(edits), pattern.pattern)
        return len(edits)

    def insert_many(self, insertions: Iterable[tuple[int, bytes]]) -> int:
        """Insert text at several byte offsets of the current buffer.

        Offsets refer to the buffer before any of these insertions. They are
        applied from the highest offset down so pending offsets stay valid.
        """
        ordered = sorted({(offset, text) for offset, text in insertions if text}, reverse=True)
        if not ordered:
            return 0

        source = self._source
        edits: list[TextEdit] = []
        for offset, text in ordered:
            start_point = self.point_at(offset)
            edits.append(
                TextEdit(
                    start_byte=offset,
                    old_end_byte=offset,
                    new_end_byte=offset + len(text),
                    start_point=start_point,
                    old_end_point=start_point,
                    new_end_point=advance_point(start_point, text),
                )
            )
            source = source[:offset] + text + source[offset:]

        # ``_commit`` applies edits last-first, so hand them over in ascending order.
        self._commit(source, list(reversed(edits)))
        return len(edits)

    def reparse(self) -> None:
        self._tree = parse_source(self._source, self._tree, self._parser)

    def replace_text(self, text: str | bytes) -> None:
        """Swap in an unrelated buffer (formatter or reorder output) with a fresh parse."""
        self._source = text.encode("utf-8") if isinstance(text, str) else text
        self._tree = parse_source(self._source, parser=self._parser)

    def _commit(self, new_source: bytes, edits: list[TextEdit]) -> None:
        # Edits carry pre-edit coordinates, so the tree takes them from the end backwards.
        for edit in reversed(edits):
            edit.apply_to(self._tree)
        self._source = new_source
        self.reparse()
