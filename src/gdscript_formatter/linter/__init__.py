from gdscript_formatter.linter.base import Rule
from gdscript_formatter.linter.engine import GDScriptLinter, lint_gdscript
from gdscript_formatter.linter.ignore import parse_ignore_patterns, should_ignore_rule
from gdscript_formatter.linter.registry import (
    ALL_RULES,
    all_rule_names,
    parse_disabled_rules,
    validate_rule_names,
)

__all__ = [
    "ALL_RULES",
    "GDScriptLinter",
    "Rule",
    "all_rule_names",
    "lint_gdscript",
    "parse_disabled_rules",
    "parse_ignore_patterns",
    "should_ignore_rule",
    "validate_rule_names",
]
