"""Vertical spacing between declarations.

Functions, constructors and inner classes get two blank lines before them when
they follow another declaration, and so do member declarations that follow a
function, constructor or class. Comments and annotations that document the
following declaration move down with it; a trailing comment on the line of the
first declaration stays where it is.

Insertion points are computed against the unedited buffer and applied from the
end of the file backwards, so applying one never shifts another.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from tree_sitter import Node

from gdscript_formatter.core.document import SyntaxDocument
from gdscript_formatter.core.parser import load_query

logger = logging.getLogger(__name__)

BLANK_LINES = 2

_SPACING_QUERIES = ("spacing_definitions", "spacing_members")


@dataclass(frozen=True, order=True)
class Insertion:
    offset: int
    newlines: int
    line_ending: bytes = b"\n"

    @property
    def text(self) -> bytes:
        return self.line_ending * self.newlines


def find_insertion_points(document: SyntaxDocument) -> list[Insertion]:
    """Return the missing blank lines, highest offset first."""
    anchors: dict[int, Node] = {}
    for query_name in _SPACING_QUERIES:
        for _, captures in document.matches(load_query(query_name)):
            first = captures["first"][0]
            second = captures["second"][0]
            anchor = _anchor(document.source, first, captures.get("comment", []), second)
            if anchor.start_point.row > _last_row(first):
                anchors.setdefault(anchor.start_byte, anchor)

    line_ending = b"\r\n" if b"\r\n" in document.source else b"\n"
    insertions: set[Insertion] = set()
    for anchor in anchors.values():
        offset = document.line_start(anchor.start_byte)
        missing = BLANK_LINES - _blank_lines_before(document.source, offset)
        if missing > 0:
            insertions.add(Insertion(offset=offset, newlines=missing, line_ending=line_ending))

    return sorted(insertions, reverse=True)


def apply_two_blank_lines(document: SyntaxDocument) -> int:
    """Insert the missing blank lines into ``document``. Returns the number of insertion points."""
    insertions = find_insertion_points(document)
    applied = document.insert_many((insertion.offset, insertion.text) for insertion in insertions)
    logger.debug("Spacing pass inserted blank lines at %d point(s)", applied)
    return applied


def _anchor(source: bytes, first: Node, interleaved: list[Node], second: Node) -> Node:
    # Comments on the first declaration's last line are trailing comments.
    standalone = [node for node in interleaved if node.start_point.row > _last_row(first)]
    if not standalone:
        return second
    if not _documents(source, standalone[-1], second):
        return standalone[0]

    block_start = len(standalone) - 1
    while block_start > 0 and _directly_above(standalone[block_start - 1], standalone[block_start]):
        block_start -= 1
    return standalone[block_start]


def _documents(source: bytes, node: Node, declaration: Node) -> bool:
    if not _directly_above(node, declaration):
        return False
    if node.type == "annotation":
        return True
    return source[node.start_byte : node.end_byte].startswith(b"##")


def _directly_above(upper: Node, lower: Node) -> bool:
    return lower.start_point.row == _last_row(upper) + 1


def _last_row(node: Node) -> int:
    row, column = node.end_point
    if column == 0 and row > node.start_point.row:
        return row - 1
    return row


def _blank_lines_before(source: bytes, line_start: int) -> int:
    count = 0
    # Index of the newline that ends the line above.
    end = line_start - 1
    while end > 0:
        start = source.rfind(b"\n", 0, end) + 1
        if source[start:end] not in (b"", b"\r"):
            break
        count += 1
        end = start - 1
    return count
