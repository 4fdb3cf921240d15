from collections.abc import Callable, Iterable

from gdscript_formatter.config import LinterConfig
from gdscript_formatter.linter.base import Rule
from gdscript_formatter.linter.checks import (
    ComparisonWithItselfRule,
    DuplicatedLoadRule,
    MaxLineLengthRule,
    NoElseReturnRule,
    PrivateAccessRule,
    StandaloneExpressionRule,
    UnnecessaryPassRule,
    UnusedArgumentRule,
)
from gdscript_formatter.linter.naming import (
    ClassNameRule,
    ConstantNameRule,
    EnumMemberNameRule,
    EnumNameRule,
    FunctionArgumentNameRule,
    FunctionNameRule,
    LoopVariableNameRule,
    SignalNameRule,
    VariableNameRule,
)

RuleFactory = Callable[[LinterConfig], Rule]

# Rules run in this order; a disabled rule is never instantiated.
ALL_RULES: dict[str, RuleFactory] = {
    "duplicated-load": lambda _config: DuplicatedLoadRule(),
    "standalone-expression": lambda _config: StandaloneExpressionRule(),
    "unnecessary-pass": lambda _config: UnnecessaryPassRule(),
    "unused-argument": lambda _config: UnusedArgumentRule(),
    "comparison-with-itself": lambda _config: ComparisonWithItselfRule(),
    "private-access": lambda _config: PrivateAccessRule(),
    "max-line-length": MaxLineLengthRule.from_config,
    "no-else-return": lambda _config: NoElseReturnRule(),
    "function-name": lambda _config: FunctionNameRule(),
    "class-name": lambda _config: ClassNameRule(),
    "signal-name": lambda _config: SignalNameRule(),
    "variable-name": lambda _config: VariableNameRule(),
    "function-argument-name": lambda _config: FunctionArgumentNameRule(),
    "loop-variable-name": lambda _config: LoopVariableNameRule(),
    "enum-name": lambda _config: EnumNameRule(),
    "enum-member-name": lambda _config: EnumMemberNameRule(),
    "constant-name": lambda _config: ConstantNameRule(),
}


def all_rule_names() -> list[str]:
    return list(ALL_RULES)


def parse_disabled_rules(rules: str) -> set[str]:
    """Split a comma separated rule list, e.g. from ``--disable``."""
    return {name.strip() for name in rules.split(",") if name.strip()}


def validate_rule_names(names: Iterable[str]) -> None:
    unknown = sorted(set(names) - set(ALL_RULES))
    if unknown:
        raise ValueError(f"Unknown lint rule(s): {', '.join(unknown)}. Available rules: {', '.join(ALL_RULES)}")


def create_rules(config: LinterConfig) -> list[Rule]:
    return [factory(config) for name, factory in ALL_RULES.items() if name not in config.disabled_rules]
