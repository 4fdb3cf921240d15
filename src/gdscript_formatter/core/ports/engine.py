from collections.abc import Sequence
from typing import Protocol

from tree_sitter import Tree

from gdscript_formatter.config import IndentPolicy
from gdscript_formatter.core.fingerprint import NormalizationRule


class FormattingEngine(Protocol):
    normalization_rules: Sequence[NormalizationRule]

    def format(self, tree: Tree, source: bytes, indent: IndentPolicy) -> bytes: ...
