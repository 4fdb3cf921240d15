"""Structural fingerprints for safe mode.

A fingerprint keeps the shape of a syntax tree and the grammar id of every
node. The input fingerprint is normalized with rules that describe structural
changes the pipeline makes on purpose, then compared with the fingerprint of
the output.

Normalization rules are a whitelist. When the formatting ruleset starts to
produce a new, intended tree shape, it needs a new rule here and a bump of
``RULESET_VERSION``; otherwise safe mode rejects the output.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import Protocol

from tree_sitter import Language, Node, Tree

RULESET_VERSION = 1

_LINE_END = re.compile(rb"[ \t\r]*(?:\n|\Z)")


@dataclass(frozen=True)
class Fingerprint:
    grammar_id: int
    kind: str
    is_named: bool
    row: int
    end_row: int
    ends_line: bool = False
    text: str | None = None
    children: tuple[Fingerprint, ...] = ()


def build_fingerprint(node: Node, source: bytes, *, keep_text: bool = False) -> Fingerprint:
    children = tuple(build_fingerprint(child, source, keep_text=keep_text) for child in node.children)
    text = None
    if keep_text and not children:
        text = source[node.start_byte : node.end_byte].decode("utf-8", errors="replace")
    return Fingerprint(
        grammar_id=node.grammar_id,
        kind=node.type,
        is_named=node.is_named,
        row=node.start_point.row,
        end_row=node.end_point.row,
        ends_line=_ends_line(source, node.end_byte),
        text=text,
        children=children,
    )


def _ends_line(source: bytes, end_byte: int) -> bool:
    return _LINE_END.match(source, end_byte) is not None


def _map_bottom_up(fingerprint: Fingerprint, rewrite: Callable[[Fingerprint], Fingerprint]) -> Fingerprint:
    children = tuple(_map_bottom_up(child, rewrite) for child in fingerprint.children)
    if children != fingerprint.children:
        fingerprint = replace(fingerprint, children=children)
    return rewrite(fingerprint)


class NormalizationRule(Protocol):
    name: str
    version: int

    def apply(self, fingerprint: Fingerprint, language: Language) -> Fingerprint: ...


class StripTrailingSemicolons:
    """Postprocessing deletes semicolons at the end of a line."""

    name = "strip-trailing-semicolons"
    version = 1

    def apply(self, fingerprint: Fingerprint, language: Language) -> Fingerprint:
        def rewrite(node: Fingerprint) -> Fingerprint:
            kept = tuple(child for child in node.children if not _is_trailing_semicolon(child))
            if len(kept) == len(node.children):
                return node
            return replace(node, children=kept)

        return _map_bottom_up(fingerprint, rewrite)


def _is_trailing_semicolon(node: Fingerprint) -> bool:
    return node.kind == ";" and not node.is_named and node.ends_line


class InlineLeadingAnnotations:
    """Annotations on their own lines above a variable end up on the variable's line.

    Before formatting they are siblings of the variable statement; after
    formatting they parse as its children.
    """

    name = "inline-leading-annotations"
    version = 1

    def __init__(self, target_kinds: Iterable[str] = ("variable_statement",), wrapper_kind: str = "annotations"):
        self.target_kinds = frozenset(target_kinds)
        self.wrapper_kind = wrapper_kind

    def apply(self, fingerprint: Fingerprint, language: Language) -> Fingerprint:
        wrapper_id = language.id_for_node_kind(self.wrapper_kind, True)

        def rewrite(node: Fingerprint) -> Fingerprint:
            children = list(node.children)
            merged: list[Fingerprint] = []
            changed = False
            index = 0
            while index < len(children):
                run_end = index
                while run_end < len(children) and children[run_end].kind == "annotation":
                    run_end += 1
                target = children[run_end] if run_end < len(children) else None
                run = children[index:run_end]
                if run and target is not None and self._joins(merged, run, target):
                    merged.append(self._inline(run, target, wrapper_id))
                    changed = True
                    index = run_end + 1
                elif run:
                    merged.extend(run)
                    index = run_end
                else:
                    merged.append(children[index])
                    index += 1
            if not changed:
                return node
            return replace(node, children=tuple(merged))

        return _map_bottom_up(fingerprint, rewrite)

    def _joins(self, preceding: list[Fingerprint], run: list[Fingerprint], target: Fingerprint) -> bool:
        if target.kind not in self.target_kinds:
            return False
        if preceding and preceding[-1].end_row >= run[0].row:
            return False
        rows = [*run, target]
        return all(lower.row == upper.end_row + 1 for upper, lower in zip(rows, rows[1:]))

    def _inline(self, run: list[Fingerprint], target: Fingerprint, wrapper_id: int | None) -> Fingerprint:
        children = list(target.children)
        if children and children[0].kind == self.wrapper_kind:
            existing = children[0]
            children[0] = replace(existing, children=(*run, *existing.children))
        elif wrapper_id:
            wrapper = Fingerprint(
                grammar_id=wrapper_id,
                kind=self.wrapper_kind,
                is_named=True,
                row=run[0].row,
                end_row=run[-1].end_row,
                children=tuple(run),
            )
            children.insert(0, wrapper)
        else:
            children[:0] = run
        return replace(target, row=run[0].row, children=tuple(children))


PIPELINE_RULES: tuple[NormalizationRule, ...] = (StripTrailingSemicolons(),)


def normalize(fingerprint: Fingerprint, rules: Sequence[NormalizationRule], language: Language) -> Fingerprint:
    for rule in rules:
        fingerprint = rule.apply(fingerprint, language)
    return fingerprint


def first_mismatch(left: Fingerprint, right: Fingerprint, *, compare_text: bool = False) -> str | None:
    """Describe the first structural difference found depth-first, or return None."""
    if left.grammar_id != right.grammar_id:
        return f"root changed from {left.kind} to {right.kind}"

    stack = [(left, right)]
    while stack:
        before, after = stack.pop()
        if len(before.children) != len(after.children):
            return (
                f"{before.kind} on line {before.row + 1} had {len(before.children)} children "
                f"and now has {len(after.children)}"
            )
        for before_child, after_child in zip(before.children, after.children):
            if before_child.grammar_id != after_child.grammar_id:
                return f"{before_child.kind} on line {before_child.row + 1} became {after_child.kind}"
            if compare_text and before_child.kind != "comment" and before_child.text != after_child.text:
                return f"{before_child.kind} on line {before_child.row + 1} changed text"
        stack.extend(reversed(list(zip(before.children, after.children))))
    return None


def fingerprints_equivalent(left: Fingerprint, right: Fingerprint, *, compare_text: bool = False) -> bool:
    return first_mismatch(left, right, compare_text=compare_text) is None


def verify(original: Fingerprint, output_tree: Tree, output_source: bytes, *, compare_text: bool = False) -> bool:
    output = build_fingerprint(output_tree.root_node, output_source, keep_text=compare_text)
    return fingerprints_equivalent(original, output, compare_text=compare_text)
