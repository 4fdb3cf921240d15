"""Naming conventions from the GDScript style guide."""

import re
from functools import cache


@cache
def snake_case() -> re.Pattern[str]:
    return re.compile(r"^[a-z][a-z0-9_]*$")


@cache
def private_snake_case() -> re.Pattern[str]:
    return re.compile(r"^_[a-z][a-z0-9_]*$")


@cache
def pascal_case() -> re.Pattern[str]:
    return re.compile(r"^[A-Z][a-zA-Z0-9]*$")


@cache
def constant_case() -> re.Pattern[str]:
    return re.compile(r"^[A-Z][A-Z0-9_]*$")


@cache
def private_constant_case() -> re.Pattern[str]:
    return re.compile(r"^_[A-Z][A-Z0-9_]*$")


def matches_any(name: str, *patterns: re.Pattern[str]) -> bool:
    return any(pattern.match(name) for pattern in patterns)
