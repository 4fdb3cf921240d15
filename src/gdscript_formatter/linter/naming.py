"""Naming convention rules."""

from tree_sitter import Node

from gdscript_formatter.core.parser import node_text
from gdscript_formatter.linter.base import Rule, callee_name, parameters
from gdscript_formatter.linter.patterns import (
    constant_case,
    matches_any,
    pascal_case,
    private_constant_case,
    private_snake_case,
    snake_case,
)
from gdscript_formatter.models import LintIssue, LintSeverity


def _name_node(node: Node) -> Node | None:
    return node.child_by_field_name("name")


class ClassNameRule(Rule):
    name = "class-name"
    target_node_kinds = frozenset({"class_name_statement", "class_definition"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        name_node = _name_node(node)
        if name_node is None:
            return []
        name = node_text(name_node, source)
        if matches_any(name, pascal_case()):
            return []
        return [self.issue(name_node, LintSeverity.ERROR, f"Class name '{name}' should be in PascalCase format")]


class FunctionNameRule(Rule):
    name = "function-name"
    target_node_kinds = frozenset({"function_definition"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        name_node = _name_node(node)
        if name_node is None:
            return []
        name = node_text(name_node, source)
        if matches_any(name, snake_case(), private_snake_case()):
            return []
        return [
            self.issue(
                name_node,
                LintSeverity.ERROR,
                f"Function name '{name}' should be in snake_case, _private_snake_case format",
            )
        ]


class SignalNameRule(Rule):
    name = "signal-name"
    target_node_kinds = frozenset({"signal_statement"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        name_node = _name_node(node)
        if name_node is None:
            return []
        name = node_text(name_node, source)
        if matches_any(name, snake_case()):
            return []
        return [self.issue(name_node, LintSeverity.ERROR, f"Signal name '{name}' should be in snake_case format")]


class VariableNameRule(Rule):
    """Variables holding ``load``/``preload`` results may also use PascalCase."""

    name = "variable-name"
    target_node_kinds = frozenset({"variable_statement", "export_variable_statement", "onready_variable_statement"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        name_node = _name_node(node)
        if name_node is None:
            return []
        name = node_text(name_node, source)
        value = node.child_by_field_name("value")

        if value is not None and callee_name(value, source) in ("load", "preload"):
            if matches_any(name, pascal_case(), snake_case(), private_snake_case()):
                return []
            return [
                self.issue(
                    name_node,
                    LintSeverity.ERROR,
                    f"Variable name '{name}' should be in PascalCase, snake_case or _private_snake_case format",
                    rule="load-variable-name",
                )
            ]

        if matches_any(name, snake_case(), private_snake_case()):
            return []
        return [
            self.issue(
                name_node,
                LintSeverity.ERROR,
                f"Variable name '{name}' should be in snake_case or _private_snake_case format",
            )
        ]


class FunctionArgumentNameRule(Rule):
    name = "function-argument-name"
    target_node_kinds = frozenset({"function_definition"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        return [
            self.issue(
                param,
                LintSeverity.ERROR,
                f"Function argument '{name}' should be in snake_case or _private_snake_case format",
            )
            for name, param in parameters(node, source)
            if not matches_any(name, snake_case(), private_snake_case())
        ]


class LoopVariableNameRule(Rule):
    name = "loop-variable-name"
    target_node_kinds = frozenset({"for_statement"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        left = node.child_by_field_name("left")
        if left is None:
            return []
        if left.type == "identifier":
            name = node_text(left, source)
        elif left.type == "typed_parameter" and left.child_count:
            name = node_text(left.children[0], source)
        else:
            return []
        if not name or matches_any(name, snake_case()):
            return []
        return [self.issue(left, LintSeverity.ERROR, f"Loop variable '{name}' should be in snake_case format")]


class EnumNameRule(Rule):
    name = "enum-name"
    target_node_kinds = frozenset({"enum_definition"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        name_node = _name_node(node)
        if name_node is None:
            return []
        name = node_text(name_node, source)
        if matches_any(name, pascal_case()):
            return []
        return [self.issue(name_node, LintSeverity.ERROR, f"Enum name '{name}' should be in PascalCase format")]


class EnumMemberNameRule(Rule):
    name = "enum-member-name"
    target_node_kinds = frozenset({"enum_definition"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        body = node.child_by_field_name("body")
        if body is None:
            return []
        issues = []
        for member in body.children:
            if member.type != "enumerator":
                continue
            name_node = member.child_by_field_name("left")
            if name_node is None:
                continue
            name = node_text(name_node, source)
            if name and not matches_any(name, constant_case()):
                issues.append(
                    self.issue(
                        name_node, LintSeverity.ERROR, f"Enum element name '{name}' should be in CONSTANT_CASE format"
                    )
                )
        return issues


class ConstantNameRule(Rule):
    """Constants holding a ``preload`` result may also use PascalCase."""

    name = "constant-name"
    target_node_kinds = frozenset({"const_statement"})

    def check_node(self, node: Node, source: bytes) -> list[LintIssue]:
        name_node = _name_node(node)
        if name_node is None:
            return []
        name = node_text(name_node, source)
        value = node.child_by_field_name("value")

        if value is not None and callee_name(value, source) == "preload":
            if matches_any(name, pascal_case(), constant_case(), private_constant_case()):
                return []
            message = f"Preload constant name '{name}' should be in PascalCase or CONSTANT_CASE format"
        else:
            if matches_any(name, constant_case(), private_constant_case()):
                return []
            message = f"Constant name '{name}' should be in CONSTANT_CASE format"
        return [self.issue(name_node, LintSeverity.ERROR, message)]
