import logging
from collections import defaultdict

from tree_sitter import Node

from gdscript_formatter.config import LinterConfig
from gdscript_formatter.core.parser import get_gdscript_parser, parse_source
from gdscript_formatter.linter.base import Rule
from gdscript_formatter.linter.ignore import IgnoreMap, parse_ignore_patterns, should_ignore_rule
from gdscript_formatter.linter.registry import create_rules
from gdscript_formatter.models import LintIssue

logger = logging.getLogger(__name__)


class GDScriptLinter:
    """Run every enabled rule over one parse of a script.

    Rules declare the node kinds they care about, so the tree is walked once
    and each node is handed only to the rules registered for its kind.
    """

    def __init__(self, config: LinterConfig | None = None) -> None:
        self.config = config or LinterConfig()
        self._parser = get_gdscript_parser()

    def lint(self, source: str, file_path: str = "") -> list[LintIssue]:
        encoded = source.encode("utf-8")
        tree = parse_source(encoded, parser=self._parser)
        ignore_map = parse_ignore_patterns(source)
        rules = create_rules(self.config)

        dispatch: dict[str, list[Rule]] = defaultdict(list)
        source_only: list[Rule] = []
        for rule in rules:
            if not rule.target_node_kinds:
                source_only.append(rule)
            for kind in rule.target_node_kinds:
                dispatch[kind].append(rule)

        issues: list[LintIssue] = []
        for rule in source_only:
            issues.extend(_visible(rule.check_source(source), ignore_map))
        self._walk(tree.root_node, encoded, dispatch, ignore_map, issues)
        for rule in rules:
            issues.extend(_visible(rule.finalize(), ignore_map))

        issues.sort(key=lambda issue: (issue.line, issue.column))
        logger.debug("Linted %s: %d issue(s)", file_path or "<source>", len(issues))
        return issues

    def _walk(
        self,
        root: Node,
        source: bytes,
        dispatch: dict[str, list[Rule]],
        ignore_map: IgnoreMap,
        issues: list[LintIssue],
    ) -> None:
        stack = [root]
        while stack:
            node = stack.pop()
            for rule in dispatch.get(node.type, ()):
                issues.extend(_visible(rule.check_node(node, source), ignore_map))
            stack.extend(reversed(node.children))


def _visible(issues: list[LintIssue], ignore_map: IgnoreMap) -> list[LintIssue]:
    return [issue for issue in issues if not should_ignore_rule(ignore_map, issue.line, issue.rule)]


def lint_gdscript(source: str, file_path: str = "", config: LinterConfig | None = None) -> list[LintIssue]:
    return GDScriptLinter(config).lint(source, file_path)
