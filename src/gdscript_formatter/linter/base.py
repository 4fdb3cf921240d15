from tree_sitter import Node

from gdscript_formatter.core.parser import node_text
from gdscript_formatter.models import LintIssue, LintSeverity

PARAMETER_KINDS = frozenset({"identifier", "typed_parameter", "default_parameter", "typed_default_parameter"})
LAYOUT_KINDS = frozenset({"_newline", "_indent", "_dedent", "comment"})


class Rule:
    """A lint check.

    The linter calls ``check_source`` once for rules without target node
    kinds, ``check_node`` for every node whose kind is in
    ``target_node_kinds`` and ``finalize`` after the tree walk, for rules that
    collect state while visiting nodes.
    """

    name: str = ""
    target_node_kinds: frozenset[str] = frozenset()

    def check_source(self, text: str) -> list[LintIssue]:
        return []

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        return []

    def finalize(self) -> list[LintIssue]:
        return []

    def issue(self, node: Node, severity: LintSeverity, message: str, rule: str | None = None) -> LintIssue:
        row, column = node.start_point
        return LintIssue(line=row + 1, column=column + 1, rule=rule or self.name, severity=severity, message=message)


def callee_name(node: Node, source: bytes) -> str | None:
    """Name of the called function when ``node`` is a ``call``."""
    if node.type != "call" or node.child_count == 0:
        return None
    return node_text(node.children[0], source)


def parameter_name(node: Node, source: bytes) -> str:
    if node.type == "identifier":
        return node_text(node, source)
    if node.child_count:
        return node_text(node.children[0], source)
    return ""


def parameters(function: Node, source: bytes) -> list[tuple[str, Node]]:
    params = function.child_by_field_name("parameters")
    if params is None:
        return []
    found = []
    for child in params.children:
        if child.type in PARAMETER_KINDS:
            name = parameter_name(child, source)
            if name:
                found.append((name, child))
    return found
