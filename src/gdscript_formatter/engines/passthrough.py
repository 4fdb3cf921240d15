from tree_sitter import Tree

from gdscript_formatter.config import IndentPolicy
from gdscript_formatter.core.fingerprint import NormalizationRule


class PassthroughEngine:
    """Return the source unchanged so that only the corrective passes run.

    Implements the ``FormattingEngine`` protocol.
    """

    normalization_rules: tuple[NormalizationRule, ...] = ()

    def format(self, tree: Tree, source: bytes, indent: IndentPolicy) -> bytes:
        return source
