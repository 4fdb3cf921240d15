"""Rules that look at code shape rather than names."""

from collections import defaultdict

from tree_sitter import Node

from gdscript_formatter.config import LinterConfig
from gdscript_formatter.core.parser import node_text
from gdscript_formatter.linter.base import LAYOUT_KINDS, Rule, callee_name, parameters
from gdscript_formatter.models import LintIssue, LintSeverity

COMPARISON_OPERATORS = frozenset({"==", "!=", "<", ">", "<=", ">="})
STANDALONE_KINDS = frozenset({"binary_operator", "integer", "float", "string", "true", "false", "null"})
TAB_WIDTH = 4


class DuplicatedLoadRule(Rule):
    """Collects every ``load``/``preload`` path and reports those loaded more than once."""

    name = "duplicated-load"
    target_node_kinds = frozenset({"call"})

    def __init__(self) -> None:
        self._locations: dict[str, list[Node]] = defaultdict(list)

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        if callee_name(node, source) not in ("load", "preload"):
            return []
        arguments = node.child_by_field_name("arguments")
        if arguments is None:
            return []
        for argument in arguments.children:
            if argument.type == "string":
                self._locations[node_text(argument, source)].append(argument)
        return []

    def finalize(self) -> list[LintIssue]:
        issues = [
            self.issue(node, LintSeverity.WARNING, f"Duplicated load of '{path}'. Consider extracting to a constant.")
            for path, nodes in self._locations.items()
            if len(nodes) > 1
            for node in nodes
        ]
        self._locations.clear()
        return issues


class StandaloneExpressionRule(Rule):
    name = "standalone-expression"
    target_node_kinds = frozenset({"expression_statement"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        if node.child_count == 0:
            return []
        expression = node.children[0]
        if expression.type not in STANDALONE_KINDS:
            return []
        text = node_text(expression, source)
        return [
            self.issue(
                expression,
                LintSeverity.WARNING,
                f"Standalone expression '{text}' is not assigned or used, the line may have no effect",
            )
        ]


class UnnecessaryPassRule(Rule):
    name = "unnecessary-pass"
    target_node_kinds = frozenset({"body", "class_body"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        passes = [child for child in node.children if child.type == "pass_statement"]
        others = [child for child in node.children if child.type != "pass_statement" and child.type not in LAYOUT_KINDS]
        if not passes or not others:
            return []
        return [
            self.issue(pass_node, LintSeverity.WARNING, "Unnecessary 'pass' statement when other statements are present")
            for pass_node in passes
        ]


class UnusedArgumentRule(Rule):
    """Arguments never referenced in the body. Names starting with ``_`` are exempt."""

    name = "unused-argument"
    target_node_kinds = frozenset({"function_definition"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        body = node.child_by_field_name("body")
        if body is None:
            return []
        used = _identifiers(body, source)
        return [
            self.issue(
                param,
                LintSeverity.WARNING,
                f"Function argument '{name}' is unused. Consider removing it or prefixing with '_'",
            )
            for name, param in parameters(node, source)
            if not name.startswith("_") and name not in used
        ]


def _identifiers(root: Node, source: bytes) -> set[str]:
    found: set[str] = set()
    stack = [root]
    while stack:
        node = stack.pop()
        if node.type == "identifier":
            found.add(node_text(node, source))
        stack.extend(node.children)
    return found


class ComparisonWithItselfRule(Rule):
    name = "comparison-with-itself"
    target_node_kinds = frozenset({"binary_operator"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        left = node.child_by_field_name("left")
        operator = node.child_by_field_name("op")
        right = node.child_by_field_name("right")
        if left is None or operator is None or right is None:
            return []
        if node_text(operator, source) not in COMPARISON_OPERATORS:
            return []
        if node_text(left, source) != node_text(right, source):
            return []
        return [
            self.issue(
                node,
                LintSeverity.WARNING,
                f"Redundant comparison '{node_text(node, source)}' - comparing expression with itself",
            )
        ]


class PrivateAccessRule(Rule):
    name = "private-access"
    target_node_kinds = frozenset({"attribute"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        # attribute: object "." member
        if node.child_count < 3:
            return []
        owner = node_text(node.children[0], source)
        if owner in ("self", "super"):
            return []

        member = node.children[2]
        if member.type == "attribute_call" and member.child_count:
            name_node = member.children[0]
            name = node_text(name_node, source)
            message = f"Private method '{name}' should not be called from outside its class"
        elif member.type == "identifier":
            name_node = member
            name = node_text(member, source)
            message = f"Private variable '{name}' should not be accessed from outside its class"
        else:
            return []

        if not name.startswith("_"):
            return []
        return [self.issue(name_node, LintSeverity.ERROR, message)]


class MaxLineLengthRule(Rule):
    """Tabs count as four columns."""

    name = "max-line-length"

    def __init__(self, max_line_length: int = 100) -> None:
        self.max_line_length = max_line_length

    def check_source(self, text: str) -> list[LintIssue]:
        issues = []
        for line_number, line in enumerate(text.split("\n"), start=1):
            line = line.removesuffix("\r")
            width = len(line) + line.count("\t") * (TAB_WIDTH - 1)
            if width > self.max_line_length:
                issues.append(
                    LintIssue(
                        line=line_number,
                        column=self.max_line_length + 1,
                        rule=self.name,
                        severity=LintSeverity.WARNING,
                        message=(
                            f"Line is too long. Found {width} characters, maximum allowed is {self.max_line_length}"
                        ),
                    )
                )
        return issues

    @classmethod
    def from_config(cls, config: LinterConfig) -> "MaxLineLengthRule":
        return cls(config.max_line_length)


class NoElseReturnRule(Rule):
    name = "no-else-return"
    target_node_kinds = frozenset({"if_statement"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        body = node.child_by_field_name("body")
        if_returns = body is not None and _ends_with_return(body)
        all_return = if_returns
        issues = []

        for child in node.children:
            if child.type == "elif_clause":
                if if_returns:
                    issues.append(
                        self.issue(
                            child,
                            LintSeverity.WARNING,
                            "Unnecessary 'elif' after 'if' block that ends with 'return'. Use 'if' instead",
                        )
                    )
                elif_body = child.child_by_field_name("body")
                if elif_body is not None and not _ends_with_return(elif_body):
                    all_return = False
            elif child.type == "else_clause" and all_return:
                issues.append(
                    self.issue(
                        child,
                        LintSeverity.WARNING,
                        "Unnecessary 'else' after 'if'/'elif' blocks that end with 'return'",
                    )
                )
        return issues


def _ends_with_return(body: Node) -> bool:
    statements = [child for child in body.children if child.type not in LAYOUT_KINDS]
    return bool(statements) and statements[-1].type == "return_statement"
