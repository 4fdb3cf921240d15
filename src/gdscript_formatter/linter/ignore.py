"""``gdlint-ignore`` comment directives.

``# gdlint-ignore-next-line rule-a, rule-b`` silences the listed rules on the
following line; ``gdlint-ignore-line`` and plain ``gdlint-ignore`` apply to
the line that holds the comment. Without a rule list every rule is silenced.
"""

import re

NEXT_LINE = "gdlint-ignore-next-line"
CURRENT_LINE = "gdlint-ignore-line"
PLAIN = "gdlint-ignore"

_DIRECTIVES = (NEXT_LINE, CURRENT_LINE, PLAIN)
_RULE_SEPARATOR = re.compile(r"[,\s]+")

IgnoreMap = dict[int, set[str]]


def parse_ignore_comment(comment: str) -> tuple[str, set[str]] | None:
    """Return the directive found in ``comment`` and its rule names (empty means all rules)."""
    for directive in _DIRECTIVES:
        start = comment.find(directive)
        if start < 0:
            continue
        rules_part = comment[start + len(directive) :].strip()
        rules = {rule for rule in _RULE_SEPARATOR.split(rules_part) if rule}
        return directive, rules
    return None


def parse_ignore_patterns(text: str) -> IgnoreMap:
    ignore_map: IgnoreMap = {}
    for line_number, line in enumerate(text.split("\n"), start=1):
        comment_start = line.find("#")
        if comment_start < 0:
            continue
        parsed = parse_ignore_comment(line[comment_start:])
        if parsed is None:
            continue
        directive, rules = parsed
        target = line_number + 1 if directive == NEXT_LINE else line_number
        ignore_map.setdefault(target, set()).update(rules)
    return ignore_map


def should_ignore_rule(ignore_map: IgnoreMap, line: int, rule: str) -> bool:
    ignored = ignore_map.get(line)
    if ignored is None:
        return False
    return not ignored or rule in ignored
